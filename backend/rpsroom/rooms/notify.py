"""Fan-out of room events to member connections."""

from __future__ import annotations

import logging
from typing import Any
from typing import Protocol

from rpsroom.rooms.registry import RoomRegistry

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivery primitive: push one event to one connection, fire-and-forget."""

    def send(self, connection: Any, event_type: str, payload: dict[str, Any]) -> None: ...


class RoomBroadcaster:
    """Deliver events to single connections or to every member of a room."""

    def __init__(self, registry: RoomRegistry, notifier: Notifier) -> None:
        self._registry = registry
        self._notifier = notifier

    def send(self, connection: Any, event_type: str, payload: dict[str, Any]) -> bool:
        try:
            self._notifier.send(connection, event_type, payload)
        except Exception as exc:  # noqa: BLE001
            logger.warning("dropping %s for unwritable connection: %s", event_type, exc)
            return False
        return True

    def broadcast(self, room_id: str, event_type: str, payload: dict[str, Any]) -> int:
        """Send to every current member of room_id; return how many sends went out."""
        room = self._registry.get(room_id)
        if room is None:
            return 0

        delivered = 0
        for connection in list(room.players.values()):
            if self.send(connection, event_type, payload):
                delivered += 1
        return delivered


__all__ = ["Notifier", "RoomBroadcaster"]
