"""Room view builders used by REST and WS responses."""

from __future__ import annotations

from rpsroom.rooms.registry import Room


def room_state(room: Room) -> dict[str, object]:
    return {
        "roomId": room.room_id,
        "playerCount": len(room.players),
        "players": room.player_ids,
        "choicesCount": len(room.pending_moves),
    }


def room_detail(room: Room) -> dict[str, object]:
    return {**room_state(room), "phase": room.phase.value}
