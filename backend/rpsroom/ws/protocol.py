"""WebSocket wire protocol helpers."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from rpsroom.rooms import models
from rpsroom.rooms.models import Envelope

WS_PROTOCOL_VERSION = 1

# bare heartbeat words accepted in place of a JSON envelope
HEARTBEAT_TEXT_FRAMES = frozenset({models.PING, models.PONG})


class ProtocolError(Exception):
    """Raised for inbound frames that are not a usable envelope."""

    code = "PROTOCOL_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


def ws_event(event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {"v": WS_PROTOCOL_VERSION, "type": event_type, "payload": payload}


def error_payload(*, code: str, message: str) -> dict[str, Any]:
    return {"code": code, "message": message}


async def ws_send_event(websocket: Any, event_type: str, payload: dict[str, Any]) -> None:
    message = ws_event(event_type, payload)
    if hasattr(websocket, "send_json"):
        await websocket.send_json(message)
        return
    if hasattr(websocket, "send_text"):
        await websocket.send_text(json.dumps(message))


def parse_envelope(raw: str | bytes) -> Envelope:
    """Decode one inbound frame into an Envelope."""
    if isinstance(raw, str) and raw in HEARTBEAT_TEXT_FRAMES:
        return Envelope(type=raw)
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError("invalid JSON", code="INVALID_JSON") from exc
    if not isinstance(data, dict):
        raise ProtocolError("invalid message", code="INVALID_MESSAGE")
    try:
        return Envelope.model_validate(data)
    except ValidationError as exc:
        raise ProtocolError("invalid message", code="INVALID_MESSAGE") from exc


def unknown_type_error(event_type: str) -> ProtocolError:
    return ProtocolError(f"unknown type: {event_type}", code="UNKNOWN_TYPE")
