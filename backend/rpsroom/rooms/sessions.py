"""Per-connection client sessions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
import threading
from typing import Any

from rpsroom.core.ids import new_id

DEFAULT_CLIENT_ID_LENGTH = 8


@dataclass(slots=True, eq=False)
class ClientSession:
    """Session state tracked for one live connection."""

    client_id: str
    room_id: str | None = None
    lock: Any = field(default_factory=threading.RLock, repr=False)


class SessionTable:
    """Sessions keyed by connection handle.

    The handle is the only value guaranteed unique and live for the whole
    connection, so every lookup goes through it rather than the client id.
    """

    def __init__(
        self,
        client_id_length: int = DEFAULT_CLIENT_ID_LENGTH,
        id_factory: Callable[[int], str] = new_id,
    ) -> None:
        if client_id_length < 1:
            raise ValueError("client_id_length must be >= 1")

        self._by_connection: dict[Any, ClientSession] = {}
        self._client_ids: set[str] = set()
        self._guard = threading.Lock()
        self._client_id_length = client_id_length
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._by_connection)

    def create(self, connection: Any) -> str:
        """Record a roomless session for connection and return its fresh client id."""
        with self._guard:
            previous = self._by_connection.get(connection)
            if previous is not None:
                return previous.client_id

            while True:
                client_id = self._id_factory(self._client_id_length)
                if client_id not in self._client_ids:
                    break
            self._client_ids.add(client_id)
            self._by_connection[connection] = ClientSession(client_id=client_id)
            return client_id

    def lookup(self, connection: Any) -> ClientSession | None:
        return self._by_connection.get(connection)

    def attach(self, connection: Any, room_id: str | None) -> ClientSession | None:
        """Point the connection's session at room_id (None detaches it)."""
        session = self._by_connection.get(connection)
        if session is None:
            return None
        session.room_id = room_id
        return session

    def remove(self, connection: Any) -> ClientSession | None:
        with self._guard:
            session = self._by_connection.pop(connection, None)
            if session is not None:
                self._client_ids.discard(session.client_id)
            return session


__all__ = ["ClientSession", "DEFAULT_CLIENT_ID_LENGTH", "SessionTable"]
