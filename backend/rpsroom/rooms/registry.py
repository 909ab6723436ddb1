"""In-memory room domain models and registry."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
import logging
import threading
from typing import Any

from rpsroom.core.ids import new_id
from rpsroom.game.outcome import Move

logger = logging.getLogger(__name__)

MAX_ROOM_PLAYERS = 2
DEFAULT_ROOM_ID_LENGTH = 6


class RoomError(Exception):
    """Base class for room-domain errors reported back to one client."""

    code = "ROOM_ERROR"
    default_message = "room error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class RoomNotFoundError(RoomError):
    """Raised when a referenced room no longer exists."""

    code = "ROOM_NOT_FOUND"
    default_message = "room not found"


class RoomPhase(str, Enum):
    """Round phase of one room, derived from player and pending-move counts."""

    EMPTY = "empty"
    WAITING = "waiting"
    READY = "ready"
    AWAITING_SECOND = "awaiting_second"


@dataclass(slots=True, eq=False)
class Room:
    """Room aggregate state."""

    room_id: str
    # client_id -> connection handle, in join order
    players: dict[str, Any] = field(default_factory=dict)
    pending_moves: dict[str, Move] = field(default_factory=dict)
    lock: Any = field(default_factory=threading.RLock, repr=False)

    @property
    def player_ids(self) -> list[str]:
        return list(self.players)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_ROOM_PLAYERS

    @property
    def phase(self) -> RoomPhase:
        if not self.players:
            return RoomPhase.EMPTY
        if len(self.players) < MAX_ROOM_PLAYERS:
            return RoomPhase.WAITING
        if not self.pending_moves:
            return RoomPhase.READY
        return RoomPhase.AWAITING_SECOND


class RoomRegistry:
    """In-memory registry of live rooms keyed by room id."""

    def __init__(
        self,
        room_id_length: int = DEFAULT_ROOM_ID_LENGTH,
        id_factory: Callable[[int], str] = new_id,
    ) -> None:
        if room_id_length < 1:
            raise ValueError("room_id_length must be >= 1")

        self._rooms: dict[str, Room] = {}
        self._guard = threading.Lock()
        self._room_id_length = room_id_length
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def get(self, room_id: str) -> Room | None:
        """Return the room for room_id, or None when it does not exist."""
        return self._rooms.get(room_id)

    def get_room(self, room_id: str) -> Room:
        """Return room by room id, raising when it does not exist."""
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError(f"room_id={room_id} not found")
        return room

    def list_rooms(self) -> list[Room]:
        """Return all live rooms sorted by room_id."""
        with self._guard:
            rooms = list(self._rooms.values())
        return sorted(rooms, key=lambda room: room.room_id)

    def ensure(self, room_id: str) -> Room:
        """Return the existing room or register a new empty one under room_id."""
        with self._guard:
            room = self._rooms.get(room_id)
            if room is None:
                room = Room(room_id=room_id)
                self._rooms[room_id] = room
                logger.info("room %s created", room_id)
            return room

    def create(self) -> Room:
        """Register a new empty room under a fresh server-chosen id."""
        with self._guard:
            while True:
                room_id = self._id_factory(self._room_id_length)
                if room_id not in self._rooms:
                    break
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
        logger.info("room %s created", room_id)
        return room

    def is_registered(self, room: Room) -> bool:
        """Return True while room is still the live room for its id."""
        with self._guard:
            return self._rooms.get(room.room_id) is room

    def delete_if_empty(self, room_id: str) -> bool:
        """Drop the room when it has no players; return True when it was removed."""
        room = self._rooms.get(room_id)
        if room is None:
            return False
        with room.lock:
            with self._guard:
                if self._rooms.get(room_id) is not room or room.players:
                    return False
                del self._rooms[room_id]
        logger.info("room %s deleted", room_id)
        return True

    @contextmanager
    def lock_room(self, room: Room) -> Iterator[Room]:
        """Acquire one room write lock."""
        with room.lock:
            yield room

    @contextmanager
    def lock_rooms(self, rooms: Iterable[Room]) -> Iterator[None]:
        """Acquire multiple room write locks in room_id order to avoid deadlock."""
        unique = {id(room): room for room in rooms}
        ordered = sorted(unique.values(), key=lambda room: room.room_id)
        for room in ordered:
            room.lock.acquire()

        try:
            yield
        finally:
            for room in reversed(ordered):
                room.lock.release()


__all__ = [
    "DEFAULT_ROOM_ID_LENGTH",
    "MAX_ROOM_PLAYERS",
    "Room",
    "RoomError",
    "RoomNotFoundError",
    "RoomPhase",
    "RoomRegistry",
]
