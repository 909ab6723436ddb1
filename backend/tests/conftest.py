"""Shared fixtures for room service tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """TestClient over a freshly reset runtime with the heartbeat disabled."""
    monkeypatch.setenv("RPS_HEARTBEAT_INTERVAL_SECONDS", "0")

    from rpsroom.main import app

    with TestClient(app) as test_client:
        yield test_client
