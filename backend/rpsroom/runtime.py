"""Process-wide runtime state shared by REST and WebSocket handlers."""

from __future__ import annotations

from rpsroom.core.config import Settings
from rpsroom.core.config import load_settings
from rpsroom.rooms.coordinator import RoomCoordinator
from rpsroom.rooms.registry import RoomRegistry
from rpsroom.rooms.sessions import SessionTable
from rpsroom.ws.broadcast import WebSocketNotifier


def build_coordinator(settings: Settings, notifier: WebSocketNotifier) -> RoomCoordinator:
    return RoomCoordinator(
        registry=RoomRegistry(room_id_length=settings.rps_room_id_length),
        sessions=SessionTable(client_id_length=settings.rps_client_id_length),
        notifier=notifier,
    )


settings = load_settings()
notifier = WebSocketNotifier()
coordinator = build_coordinator(settings, notifier)
room_registry = coordinator.registry


def startup() -> None:
    """Reload settings and reset in-memory room/session runtime state."""
    global settings, notifier, coordinator, room_registry
    settings = load_settings()
    notifier = WebSocketNotifier()
    coordinator = build_coordinator(settings, notifier)
    room_registry = coordinator.registry


__all__ = [
    "Settings",
    "coordinator",
    "notifier",
    "room_registry",
    "settings",
    "startup",
]
