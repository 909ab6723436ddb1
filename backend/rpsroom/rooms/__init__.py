"""Room domain package: registry, sessions and wire models."""

from rpsroom.rooms.registry import MAX_ROOM_PLAYERS
from rpsroom.rooms.registry import Room
from rpsroom.rooms.registry import RoomError
from rpsroom.rooms.registry import RoomNotFoundError
from rpsroom.rooms.registry import RoomPhase
from rpsroom.rooms.registry import RoomRegistry
from rpsroom.rooms.sessions import ClientSession
from rpsroom.rooms.sessions import SessionTable
from rpsroom.rooms.models import Envelope

__all__ = [
    "MAX_ROOM_PLAYERS",
    "ClientSession",
    "Envelope",
    "Room",
    "RoomError",
    "RoomNotFoundError",
    "RoomPhase",
    "RoomRegistry",
    "SessionTable",
]
