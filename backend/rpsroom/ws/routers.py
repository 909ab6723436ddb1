"""WebSocket route for the room protocol."""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
import logging
from typing import Any

from fastapi import APIRouter
from fastapi import WebSocket
from pydantic import ValidationError

import rpsroom.runtime as runtime
from rpsroom.rooms import models
from rpsroom.rooms.coordinator import RoomCoordinator
from rpsroom.rooms.notify import Notifier
from rpsroom.rooms.registry import RoomError

from .heartbeat import HeartbeatState
from .heartbeat import handle_heartbeat_message
from .heartbeat import ws_message_loop
from .protocol import ProtocolError
from .protocol import error_payload
from .protocol import parse_envelope
from .protocol import unknown_type_error

logger = logging.getLogger(__name__)

router = APIRouter()

Handler = Callable[[RoomCoordinator, Any, dict[str, Any]], object]


def _create_room(coordinator: RoomCoordinator, connection: Any, payload: dict[str, Any]) -> object:
    return coordinator.create_room(connection)


def _join_room(coordinator: RoomCoordinator, connection: Any, payload: dict[str, Any]) -> object:
    request = models.JoinRoomRequest.model_validate(payload)
    return coordinator.join(connection, request.room_id)


def _leave_room(coordinator: RoomCoordinator, connection: Any, payload: dict[str, Any]) -> object:
    return coordinator.leave(connection)


def _play(coordinator: RoomCoordinator, connection: Any, payload: dict[str, Any]) -> object:
    request = models.PlayRequest.model_validate(payload)
    return coordinator.submit_move(connection, request.choice)


HANDLERS: dict[str, Handler] = {
    models.CREATE_ROOM: _create_room,
    models.JOIN_ROOM: _join_room,
    models.LEAVE_ROOM: _leave_room,
    models.PLAY: _play,
}


def dispatch_message(
    coordinator: RoomCoordinator,
    notifier: Notifier,
    connection: Any,
    raw: str | bytes,
    *,
    heartbeat_state: HeartbeatState | None = None,
) -> None:
    """Apply one inbound frame; protocol and validation failures become an ERROR to the sender."""
    try:
        envelope = parse_envelope(raw)
        if heartbeat_state is not None and handle_heartbeat_message(
            heartbeat_state=heartbeat_state,
            send_event=partial(notifier.send, connection),
            event_type=envelope.type,
        ):
            return
        handler = HANDLERS.get(envelope.type)
        if handler is None:
            raise unknown_type_error(envelope.type)
        try:
            handler(coordinator, connection, envelope.payload)
        except ValidationError as exc:
            raise ProtocolError("invalid message", code="INVALID_MESSAGE") from exc
    except (ProtocolError, RoomError) as exc:
        logger.debug("rejected frame: %s (%s)", exc.message, exc.code)
        notifier.send(connection, models.ERROR, error_payload(code=exc.code, message=exc.message))


@router.websocket("/ws")
async def ws_game(websocket: WebSocket) -> None:
    """Game websocket: WELCOME on connect, then room protocol frames until disconnect."""
    await websocket.accept()
    logger.info("WS: connection from %s", websocket.client)

    coordinator = runtime.coordinator
    notifier = runtime.notifier
    settings = runtime.settings
    notifier.register(websocket)
    coordinator.connect(websocket)

    def _send_event(event_type: str, payload: dict[str, Any]) -> None:
        notifier.send(websocket, event_type, payload)

    heartbeat_state = HeartbeatState()

    def _on_message(message: str | bytes) -> None:
        dispatch_message(coordinator, notifier, websocket, message, heartbeat_state=heartbeat_state)

    try:
        await ws_message_loop(
            websocket,
            on_message=_on_message,
            send_event=_send_event,
            heartbeat_state=heartbeat_state,
            interval_seconds=settings.rps_heartbeat_interval_seconds,
            pong_timeout_seconds=settings.rps_heartbeat_pong_timeout_seconds,
            max_missed_pongs=settings.rps_heartbeat_max_missed_pongs,
        )
    finally:
        coordinator.disconnect(websocket)
        await notifier.unregister(websocket)
