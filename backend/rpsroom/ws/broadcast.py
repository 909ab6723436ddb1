"""Per-connection outboxes that deliver room events over websockets."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .protocol import ws_send_event

logger = logging.getLogger(__name__)


class ConnectionOutbox:
    """FIFO of events for one websocket, drained by a single writer task."""

    def __init__(self, websocket: Any) -> None:
        self.websocket = websocket
        self.closed = False
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[tuple[str, dict[str, Any]]] = asyncio.Queue()
        self._task = self._loop.create_task(self._drain())

    def put(self, event_type: str, payload: dict[str, Any]) -> bool:
        if self.closed:
            return False
        item = (event_type, payload)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._queue.put_nowait(item)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        return True

    async def _drain(self) -> None:
        while True:
            event_type, payload = await self._queue.get()
            try:
                await ws_send_event(self.websocket, event_type, payload)
            except Exception as exc:  # noqa: BLE001
                self.closed = True
                logger.warning("websocket write failed, dropping further %s events: %s", event_type, exc)
                return

    async def close(self) -> None:
        """Stop the writer; events still queued are dropped."""
        self.closed = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class WebSocketNotifier:
    """Notifier backed by one ConnectionOutbox per registered websocket."""

    def __init__(self) -> None:
        self._outboxes: dict[Any, ConnectionOutbox] = {}

    def register(self, websocket: Any) -> ConnectionOutbox:
        outbox = self._outboxes.get(websocket)
        if outbox is None:
            outbox = ConnectionOutbox(websocket)
            self._outboxes[websocket] = outbox
        return outbox

    async def unregister(self, websocket: Any) -> None:
        outbox = self._outboxes.pop(websocket, None)
        if outbox is not None:
            await outbox.close()

    def send(self, connection: Any, event_type: str, payload: dict[str, Any]) -> None:
        outbox = self._outboxes.get(connection)
        if outbox is None or not outbox.put(event_type, payload):
            logger.debug("skipping %s for closed connection", event_type)

    async def close_all(self) -> None:
        for websocket in list(self._outboxes):
            await self.unregister(websocket)
