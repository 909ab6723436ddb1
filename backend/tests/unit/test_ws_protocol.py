"""Envelope parsing and frame dispatch tests."""

from __future__ import annotations

import json

import pytest

from rpsroom.rooms import models
from rpsroom.ws.protocol import ProtocolError
from rpsroom.ws.protocol import parse_envelope
from rpsroom.ws.heartbeat import HeartbeatState
from rpsroom.ws.protocol import ws_event
from rpsroom.ws.routers import dispatch_message
from tests.room_testkit import connect_all
from tests.room_testkit import new_coordinator


def test_ws_event_wraps_type_and_payload_with_version() -> None:
    assert ws_event("LEFT", {}) == {"v": 1, "type": "LEFT", "payload": {}}


def test_parse_envelope_accepts_missing_or_null_payload() -> None:
    assert parse_envelope('{"type": "CREATE_ROOM"}').payload == {}
    assert parse_envelope('{"type": "LEAVE_ROOM", "payload": null}').payload == {}

    envelope = parse_envelope('{"type": "JOIN_ROOM", "payload": {"roomId": "R1"}}')
    assert envelope.type == "JOIN_ROOM"
    assert envelope.payload == {"roomId": "R1"}


@pytest.mark.parametrize(
    ("raw", "code", "message"),
    [
        ("not json", "INVALID_JSON", "invalid JSON"),
        ("", "INVALID_JSON", "invalid JSON"),
        ('["PLAY"]', "INVALID_MESSAGE", "invalid message"),
        ('{"payload": {}}', "INVALID_MESSAGE", "invalid message"),
        ('{"type": null}', "INVALID_MESSAGE", "invalid message"),
        ('{"type": ""}', "INVALID_MESSAGE", "invalid message"),
        (b"\x80\x81", "INVALID_JSON", "invalid JSON"),
        ('{"type": "PLAY", "payload": "rock"}', "INVALID_MESSAGE", "invalid message"),
    ],
)
def test_parse_envelope_rejects_malformed_frames(raw: str | bytes, code: str, message: str) -> None:
    with pytest.raises(ProtocolError) as exc_info:
        parse_envelope(raw)
    assert exc_info.value.code == code
    assert exc_info.value.message == message


def _frame(event_type: str, payload: dict | None = None) -> str:
    return json.dumps({"type": event_type, "payload": payload or {}})


def test_dispatch_unknown_type_reports_error_to_sender_only() -> None:
    coordinator, notifier = new_coordinator()
    a, b = connect_all(coordinator, "a", "b")
    notifier.clear()

    dispatch_message(coordinator, notifier, a, _frame("DANCE"))

    assert notifier.events == [
        (a, models.ERROR, {"code": "UNKNOWN_TYPE", "message": "unknown type: DANCE"})
    ]


def test_dispatch_invalid_json_reports_generic_error() -> None:
    coordinator, notifier = new_coordinator()
    (a,) = connect_all(coordinator, "a")
    notifier.clear()

    dispatch_message(coordinator, notifier, a, "{oops")

    assert notifier.events == [(a, models.ERROR, {"code": "INVALID_JSON", "message": "invalid JSON"})]


def test_dispatch_maps_room_errors_to_error_frames() -> None:
    coordinator, notifier = new_coordinator()
    (a,) = connect_all(coordinator, "a")
    notifier.clear()

    dispatch_message(coordinator, notifier, a, _frame("PLAY", {"choice": "rock"}))
    dispatch_message(coordinator, notifier, a, _frame("JOIN_ROOM", {"roomId": "  "}))
    dispatch_message(coordinator, notifier, a, _frame("JOIN_ROOM"))

    assert notifier.payloads(a, models.ERROR) == [
        {"code": "NOT_IN_ROOM", "message": "not in a room"},
        {"code": "ROOM_ID_REQUIRED", "message": "roomId required"},
        {"code": "ROOM_ID_REQUIRED", "message": "roomId required"},
    ]


def test_dispatch_drives_a_full_round() -> None:
    coordinator, notifier = new_coordinator()
    a, b = connect_all(coordinator, "a", "b")

    dispatch_message(coordinator, notifier, a, _frame("CREATE_ROOM"))
    room_id = notifier.payloads(a, models.ROOM_CREATED)[0]["roomId"]
    dispatch_message(coordinator, notifier, a, _frame("JOIN_ROOM", {"roomId": room_id}))
    dispatch_message(coordinator, notifier, b, _frame("JOIN_ROOM", {"roomId": room_id}))
    dispatch_message(coordinator, notifier, a, _frame("PLAY", {"choice": "scissors"}))
    dispatch_message(coordinator, notifier, b, _frame("PLAY", {"choice": "rock"}))
    dispatch_message(coordinator, notifier, b, _frame("LEAVE_ROOM"))

    assert notifier.payloads(a, models.ROUND_RESULT) == [
        {"choices": {"A": "scissors", "B": "rock"}, "winnerId": "B", "draw": False}
    ]
    assert notifier.payloads(b, models.LEFT) == [{}]
    assert notifier.types_for(a)[-2:] == [models.ROOM_UPDATE, models.OPPONENT_LEFT]
    assert notifier.all_of_type(models.ERROR) == []


def test_dispatch_coerces_numeric_room_id() -> None:
    coordinator, notifier = new_coordinator()
    (a,) = connect_all(coordinator, "a")

    dispatch_message(coordinator, notifier, a, _frame("JOIN_ROOM", {"roomId": 42}))

    assert coordinator.sessions.lookup(a).room_id == "42"


def test_parse_envelope_accepts_bare_heartbeat_words_and_bytes() -> None:
    assert parse_envelope("PING").type == "PING"
    assert parse_envelope("PONG").type == "PONG"
    assert parse_envelope(b'{"type": "LEAVE_ROOM"}').type == "LEAVE_ROOM"


@pytest.mark.parametrize(("raw_type", "named"), [(5, "5"), (2.5, "2.5"), (True, "true")])
def test_dispatch_names_scalar_types_as_unknown(raw_type: object, named: str) -> None:
    coordinator, notifier = new_coordinator()
    (a,) = connect_all(coordinator, "a")
    notifier.clear()

    dispatch_message(coordinator, notifier, a, json.dumps({"type": raw_type}))

    assert notifier.events == [
        (a, models.ERROR, {"code": "UNKNOWN_TYPE", "message": f"unknown type: {named}"})
    ]


def test_dispatch_routes_heartbeat_frames_to_state() -> None:
    coordinator, notifier = new_coordinator()
    (a,) = connect_all(coordinator, "a")
    notifier.clear()
    state = HeartbeatState()
    state.mark_ping_sent()

    dispatch_message(coordinator, notifier, a, _frame("PING"), heartbeat_state=state)
    dispatch_message(coordinator, notifier, a, "PING", heartbeat_state=state)
    dispatch_message(coordinator, notifier, a, _frame("PONG"), heartbeat_state=state)

    assert notifier.events == [(a, "PONG", {}), (a, "PONG", {})]
    assert state.missed_pong_count == 0


def test_dispatch_binary_frames_like_text() -> None:
    coordinator, notifier = new_coordinator()
    a, b = connect_all(coordinator, "a", "b")
    coordinator.join(a, "R1")
    coordinator.join(b, "R1")
    notifier.clear()

    dispatch_message(coordinator, notifier, a, _frame("PLAY", {"choice": "rock"}).encode())
    dispatch_message(coordinator, notifier, a, b"\xc3\x28")

    assert notifier.payloads(b, models.CHOICE_RECEIVED) == [{"choicesCount": 1}]
    assert notifier.payloads(a, models.ERROR) == [{"code": "INVALID_JSON", "message": "invalid JSON"}]
    assert coordinator.registry.get("R1").player_ids == ["A", "B"]
