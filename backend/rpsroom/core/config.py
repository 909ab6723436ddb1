"""Application settings for backend runtime and tests."""

from __future__ import annotations

from pydantic import Field
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Typed settings loaded from environment variables or explicit kwargs."""

    rps_app_env: str = "dev"
    rps_app_host: str = "127.0.0.1"
    rps_app_port: int = Field(default=8080, ge=1)
    rps_cors_allow_origins: str = "*"
    rps_log_level: str = "INFO"

    rps_room_id_length: int = Field(default=6, ge=4)
    rps_client_id_length: int = Field(default=8, ge=4)

    rps_heartbeat_interval_seconds: float = Field(default=30.0, ge=0)
    rps_heartbeat_pong_timeout_seconds: float = Field(default=10.0, gt=0)
    rps_heartbeat_max_missed_pongs: int = Field(default=2, ge=1)

    @model_validator(mode="after")
    def validate_heartbeat_window(self) -> "Settings":
        """Ensure the pong wait fits inside one heartbeat interval."""
        if (
            self.rps_heartbeat_interval_seconds > 0
            and self.rps_heartbeat_pong_timeout_seconds >= self.rps_heartbeat_interval_seconds
        ):
            raise ValueError(
                "RPS_HEARTBEAT_PONG_TIMEOUT_SECONDS must be less than "
                "RPS_HEARTBEAT_INTERVAL_SECONDS"
            )
        return self

    @property
    def cors_allow_origins(self) -> list[str]:
        return [origin.strip() for origin in self.rps_cors_allow_origins.split(",") if origin.strip()]


def load_settings() -> Settings:
    """Load settings from process environment."""
    return Settings()
