"""Per-connection outbox delivery tests."""

from __future__ import annotations

import asyncio
from typing import Any

from rpsroom.ws.broadcast import WebSocketNotifier


class _RecordingWebSocket:
    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, message: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("socket gone")
        self.sent.append(message)


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


def test_events_are_delivered_in_send_order() -> None:
    async def _run() -> list[dict[str, Any]]:
        notifier = WebSocketNotifier()
        websocket = _RecordingWebSocket()
        notifier.register(websocket)

        notifier.send(websocket, "ROOM_UPDATE", {"playerCount": 2})
        notifier.send(websocket, "READY", {"message": "go"})
        notifier.send(websocket, "CHOICE_RECEIVED", {"choicesCount": 1})
        await _settle()
        await notifier.close_all()
        return websocket.sent

    sent = asyncio.run(_run())

    assert [message["type"] for message in sent] == ["ROOM_UPDATE", "READY", "CHOICE_RECEIVED"]
    assert all(message["v"] == 1 for message in sent)


def test_failed_writer_is_skipped_afterwards() -> None:
    async def _run() -> bool:
        notifier = WebSocketNotifier()
        websocket = _RecordingWebSocket(fail=True)
        outbox = notifier.register(websocket)

        notifier.send(websocket, "LEFT", {})
        await _settle()
        accepted = outbox.put("LEFT", {})
        await notifier.close_all()
        return outbox.closed and not accepted

    assert asyncio.run(_run()) is True


def test_unregistered_connection_receives_nothing() -> None:
    async def _run() -> list[dict[str, Any]]:
        notifier = WebSocketNotifier()
        websocket = _RecordingWebSocket()
        notifier.register(websocket)
        await notifier.unregister(websocket)

        notifier.send(websocket, "LEFT", {})
        await _settle()
        return websocket.sent

    assert asyncio.run(_run()) == []
