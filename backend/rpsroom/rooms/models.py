"""Message types and pydantic payload models for the room protocol."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

# inbound
CREATE_ROOM = "CREATE_ROOM"
JOIN_ROOM = "JOIN_ROOM"
LEAVE_ROOM = "LEAVE_ROOM"
PLAY = "PLAY"

# heartbeat, both directions
PING = "PING"
PONG = "PONG"

# outbound
WELCOME = "WELCOME"
ROOM_CREATED = "ROOM_CREATED"
JOINED = "JOINED"
ROOM_FULL = "ROOM_FULL"
LEFT = "LEFT"
ROOM_UPDATE = "ROOM_UPDATE"
READY = "READY"
CHOICE_RECEIVED = "CHOICE_RECEIVED"
OPPONENT_LEFT = "OPPONENT_LEFT"
ROUND_RESULT = "ROUND_RESULT"
ERROR = "ERROR"


class Envelope(BaseModel):
    """One inbound `{type, payload}` message."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def coerce_scalar_type(cls, value: Any) -> Any:
        # numbers and booleans are named verbatim in UNKNOWN_TYPE errors
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("payload", mode="before")
    @classmethod
    def default_missing_payload(cls, value: Any) -> Any:
        if value is None:
            return {}
        return value


class JoinRoomRequest(BaseModel):
    """JOIN_ROOM payload."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    room_id: str = Field(default="", alias="roomId")

    @field_validator("room_id", mode="before")
    @classmethod
    def coerce_room_id(cls, value: Any) -> str:
        if value is None or value is False:
            return ""
        return str(value).strip()


class PlayRequest(BaseModel):
    """PLAY payload; the choice itself is validated by the coordinator."""

    model_config = ConfigDict(extra="ignore")

    choice: Any = None
