"""Room coordinator: admission, move collection and round resolution.

Every operation is keyed by the connection handle. Validation failures raise
a RoomError subclass and leave room state untouched; the transport maps them
to an ERROR frame for the originating connection only. Events for a room are
handed to the notifier while that room's lock is held, so every member sees
one room's events in the order the state changed.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from rpsroom.api.room_views import room_state
from rpsroom.game.outcome import Move
from rpsroom.game.outcome import Outcome
from rpsroom.game.outcome import parse_move
from rpsroom.game.outcome import resolve
from rpsroom.rooms import models
from rpsroom.rooms.notify import Notifier
from rpsroom.rooms.notify import RoomBroadcaster
from rpsroom.rooms.registry import MAX_ROOM_PLAYERS
from rpsroom.rooms.registry import Room
from rpsroom.rooms.registry import RoomError
from rpsroom.rooms.registry import RoomNotFoundError
from rpsroom.rooms.registry import RoomPhase
from rpsroom.rooms.registry import RoomRegistry
from rpsroom.rooms.sessions import ClientSession
from rpsroom.rooms.sessions import SessionTable

logger = logging.getLogger(__name__)

READY_MESSAGE = "2 players ready. Make your choice!"
OPPONENT_LEFT_MESSAGE = "Your opponent left the room."


class RoomIdRequiredError(RoomError):
    code = "ROOM_ID_REQUIRED"
    default_message = "roomId required"


class NotInRoomError(RoomError):
    code = "NOT_IN_ROOM"
    default_message = "not in a room"


class NeedTwoPlayersError(RoomError):
    code = "NEED_TWO_PLAYERS"
    default_message = "need two players"


class InvalidChoiceError(RoomError):
    code = "INVALID_CHOICE"
    default_message = "invalid choice"


class AlreadyPlayedError(RoomError):
    code = "ALREADY_PLAYED"
    default_message = "already played this round"


@dataclass(frozen=True, slots=True)
class RoundResult:
    """Outcome of one resolved round; broadcast once and never stored."""

    room_id: str
    choices: dict[str, Move]
    winner_id: str | None

    @property
    def draw(self) -> bool:
        return self.winner_id is None

    def to_payload(self) -> dict[str, Any]:
        return {
            "choices": {client_id: move.value for client_id, move in self.choices.items()},
            "winnerId": self.winner_id,
            "draw": self.draw,
        }


class RoomCoordinator:
    """Per-room state machine driven by inbound client messages."""

    def __init__(self, registry: RoomRegistry, sessions: SessionTable, notifier: Notifier) -> None:
        self._registry = registry
        self._sessions = sessions
        self._broadcaster = RoomBroadcaster(registry, notifier)

    @property
    def registry(self) -> RoomRegistry:
        return self._registry

    @property
    def sessions(self) -> SessionTable:
        return self._sessions

    def connect(self, connection: Any) -> str:
        """Open a session for a new connection and greet it with its client id."""
        client_id = self._sessions.create(connection)
        logger.info("client %s connected", client_id)
        self._broadcaster.send(connection, models.WELCOME, {"clientId": client_id})
        return client_id

    def create_room(self, connection: Any) -> str | None:
        """Allocate an empty room; the caller is not joined to it."""
        if self._sessions.lookup(connection) is None:
            return None
        room = self._registry.create()
        self._broadcaster.send(connection, models.ROOM_CREATED, {"roomId": room.room_id})
        return room.room_id

    def join(self, connection: Any, raw_room_id: Any) -> Room | None:
        """Join (creating on demand) a room; return it, or None when not admitted."""
        session = self._sessions.lookup(connection)
        if session is None:
            return None
        room_id = "" if raw_room_id is None else str(raw_room_id).strip()
        if not room_id:
            raise RoomIdRequiredError()

        with session.lock:
            while True:
                target = self._registry.ensure(room_id)
                rooms = [target]
                if session.room_id is not None and session.room_id != room_id:
                    previous = self._registry.get(session.room_id)
                    if previous is not None:
                        rooms.append(previous)

                with self._registry.lock_rooms(rooms):
                    # lost a race with delete_if_empty between ensure and lock
                    if not self._registry.is_registered(target):
                        continue
                    return self._admit(session, connection, target)

    def leave(self, connection: Any) -> None:
        """Explicit leave; always acknowledged with LEFT."""
        session = self._sessions.lookup(connection)
        if session is None:
            return
        with session.lock:
            self._detach(session, connection)
        self._broadcaster.send(connection, models.LEFT, {})

    def disconnect(self, connection: Any) -> None:
        """Run the leave cleanup for a dropped connection and forget its session."""
        session = self._sessions.lookup(connection)
        if session is None:
            return
        with session.lock:
            self._detach(session, connection)
            self._sessions.remove(connection)
        logger.info("client %s disconnected", session.client_id)

    def submit_move(self, connection: Any, raw_choice: Any) -> RoundResult | None:
        """Record one move; return the RoundResult when it completes the round."""
        session = self._sessions.lookup(connection)
        if session is None:
            return None

        with session.lock:
            if session.room_id is None:
                raise NotInRoomError()
            room = self._registry.get(session.room_id)
            if room is None:
                raise RoomNotFoundError()

            with self._registry.lock_room(room):
                if not self._registry.is_registered(room):
                    raise RoomNotFoundError()
                if session.client_id not in room.players:
                    raise NotInRoomError()
                if room.phase not in (RoomPhase.READY, RoomPhase.AWAITING_SECOND):
                    raise NeedTwoPlayersError()
                move = parse_move(raw_choice)
                if move is None:
                    raise InvalidChoiceError()
                if session.client_id in room.pending_moves:
                    raise AlreadyPlayedError()

                room.pending_moves[session.client_id] = move
                self._broadcaster.broadcast(
                    room.room_id,
                    models.CHOICE_RECEIVED,
                    {"choicesCount": len(room.pending_moves)},
                )
                if len(room.pending_moves) < MAX_ROOM_PLAYERS:
                    return None

                result = self._resolve_round(room)
                self._broadcaster.broadcast(room.room_id, models.ROUND_RESULT, result.to_payload())
                room.pending_moves.clear()
                self._broadcast_room_update(room)
                return result

    def _admit(self, session: ClientSession, connection: Any, target: Room) -> Room | None:
        if session.client_id in target.players:
            self._broadcaster.send(
                connection,
                models.JOINED,
                {"roomId": target.room_id, "clientId": session.client_id},
            )
            self._broadcaster.send(connection, models.ROOM_UPDATE, room_state(target))
            return target

        if target.is_full:
            logger.debug("client %s rejected from full room %s", session.client_id, target.room_id)
            self._broadcaster.send(connection, models.ROOM_FULL, {"roomId": target.room_id})
            return None

        if session.room_id is not None:
            self._detach(session, connection)

        target.players[session.client_id] = connection
        self._sessions.attach(connection, target.room_id)
        if target.is_full:
            # a fresh pairing never inherits a move made against a departed opponent
            target.pending_moves.clear()

        self._broadcaster.send(
            connection,
            models.JOINED,
            {"roomId": target.room_id, "clientId": session.client_id},
        )
        self._broadcast_room_update(target)
        if target.phase is RoomPhase.READY:
            self._broadcaster.broadcast(target.room_id, models.READY, {"message": READY_MESSAGE})
        logger.info("client %s joined room %s (%s)", session.client_id, target.room_id, target.phase.value)
        return target

    def _detach(self, session: ClientSession, connection: Any) -> None:
        room_id = session.room_id
        if room_id is None:
            return
        self._sessions.attach(connection, None)
        room = self._registry.get(room_id)
        if room is None:
            return

        with self._registry.lock_room(room):
            if not self._registry.is_registered(room):
                return
            room.players.pop(session.client_id, None)
            # the remaining player's own pending move is kept
            room.pending_moves.pop(session.client_id, None)
            if room.players:
                self._broadcast_room_update(room)
                self._broadcaster.broadcast(
                    room.room_id,
                    models.OPPONENT_LEFT,
                    {"message": OPPONENT_LEFT_MESSAGE},
                )
            self._registry.delete_if_empty(room.room_id)
        logger.info("client %s left room %s", session.client_id, room_id)

    def _broadcast_room_update(self, room: Room) -> None:
        self._broadcaster.broadcast(room.room_id, models.ROOM_UPDATE, room_state(room))

    @staticmethod
    def _resolve_round(room: Room) -> RoundResult:
        # join order fixes the A/B roles
        id_a, id_b = list(room.players)
        choices = {id_a: room.pending_moves[id_a], id_b: room.pending_moves[id_b]}
        outcome = resolve(choices[id_a], choices[id_b])
        winner_id = None
        if outcome is Outcome.A_WINS:
            winner_id = id_a
        elif outcome is Outcome.B_WINS:
            winner_id = id_b
        logger.info("room %s round resolved: %s", room.room_id, outcome.value)
        return RoundResult(room_id=room.room_id, choices=choices, winner_id=winner_id)


__all__ = [
    "AlreadyPlayedError",
    "InvalidChoiceError",
    "NeedTwoPlayersError",
    "NotInRoomError",
    "OPPONENT_LEFT_MESSAGE",
    "READY_MESSAGE",
    "RoomCoordinator",
    "RoomIdRequiredError",
    "RoundResult",
]
