"""Read-only room REST routes."""

from __future__ import annotations

from fastapi import APIRouter

import rpsroom.runtime as runtime
from rpsroom.api.errors import raise_api_error
from rpsroom.api.room_views import room_detail
from rpsroom.rooms.registry import RoomNotFoundError

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/rooms")
def list_rooms() -> list[dict[str, object]]:
    """Return every live room."""
    return [room_detail(room) for room in runtime.room_registry.list_rooms()]


@router.get("/api/rooms/{room_id}")
def get_room_detail(room_id: str) -> dict[str, object]:
    """Return one room detail."""
    try:
        room = runtime.room_registry.get_room(room_id)
    except RoomNotFoundError as exc:
        raise_api_error(
            status_code=404,
            code=exc.code,
            message=RoomNotFoundError.default_message,
            detail={"room_id": room_id},
        )
    return room_detail(room)
