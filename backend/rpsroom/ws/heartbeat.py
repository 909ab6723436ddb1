"""WebSocket heartbeat and message-loop utilities."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
import logging
from typing import Any

from rpsroom.rooms import models

logger = logging.getLogger(__name__)

SendEvent = Callable[[str, dict[str, Any]], None]
MessageHandler = Callable[[str | bytes], Awaitable[None] | None]


class HeartbeatState:
    """Track one websocket heartbeat ping/pong lifecycle."""

    def __init__(self) -> None:
        self.missed_pong_count = 0
        self._awaiting_pong = False
        self._pong_event = asyncio.Event()

    def mark_ping_sent(self) -> None:
        self._awaiting_pong = True
        self._pong_event.clear()

    def mark_pong_received(self) -> None:
        if not self._awaiting_pong:
            return
        self._awaiting_pong = False
        self.missed_pong_count = 0
        self._pong_event.set()

    async def wait_for_pong(self, *, timeout_seconds: float) -> bool:
        if not self._awaiting_pong:
            return True
        try:
            await asyncio.wait_for(self._pong_event.wait(), timeout=timeout_seconds)
        except TimeoutError:
            self._awaiting_pong = False
            self.missed_pong_count += 1
            return False
        return True


def handle_heartbeat_message(*, heartbeat_state: HeartbeatState, send_event: SendEvent, event_type: str) -> bool:
    """Consume PING/PONG envelopes; return False for anything else."""
    if event_type == models.PING:
        send_event(models.PONG, {})
        return True
    if event_type == models.PONG:
        heartbeat_state.mark_pong_received()
        return True
    return False


async def receive_frame(websocket: Any) -> str | bytes | None:
    """Read one data frame as text; None once the peer has disconnected.

    Binary frames are decoded as UTF-8 and passed through as raw bytes when
    they are not valid UTF-8, so the dispatcher can reject them as bad JSON.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        return None
    text = message.get("text")
    if text is not None:
        return text
    data = message.get("bytes") or b""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


async def heartbeat_loop(
    websocket: Any,
    *,
    heartbeat_state: HeartbeatState,
    send_event: SendEvent,
    interval_seconds: float = 30.0,
    pong_timeout_seconds: float = 10.0,
    max_missed_pongs: int = 2,
) -> None:
    sleep_after_probe = max(interval_seconds - pong_timeout_seconds, 0.0)
    while True:
        send_event(models.PING, {})
        heartbeat_state.mark_ping_sent()
        pong_received = await heartbeat_state.wait_for_pong(timeout_seconds=pong_timeout_seconds)
        if (not pong_received) and heartbeat_state.missed_pong_count >= max_missed_pongs:
            logger.info("closing websocket after %d missed pongs", heartbeat_state.missed_pong_count)
            await websocket.close(code=4408, reason="HEARTBEAT_TIMEOUT")
            return
        if sleep_after_probe > 0:
            await asyncio.sleep(sleep_after_probe)


async def ws_message_loop(
    websocket: Any,
    *,
    on_message: MessageHandler,
    send_event: SendEvent,
    heartbeat_state: HeartbeatState | None = None,
    interval_seconds: float = 30.0,
    pong_timeout_seconds: float = 10.0,
    max_missed_pongs: int = 2,
) -> None:
    """Hand every inbound frame to on_message until the peer disconnects."""
    if heartbeat_state is None:
        heartbeat_state = HeartbeatState()
    heartbeat_task: asyncio.Task[Any] | None = None
    if interval_seconds > 0:
        heartbeat_task = asyncio.create_task(
            heartbeat_loop(
                websocket,
                heartbeat_state=heartbeat_state,
                send_event=send_event,
                interval_seconds=interval_seconds,
                pong_timeout_seconds=pong_timeout_seconds,
                max_missed_pongs=max_missed_pongs,
            )
        )
    try:
        while True:
            frame = await receive_frame(websocket)
            if frame is None:
                return
            result = on_message(frame)
            if asyncio.iscoroutine(result):
                await result
    finally:
        if heartbeat_task is not None:
            heartbeat_task.cancel()
            try:
                await heartbeat_task
            except asyncio.CancelledError:
                pass
