from collections.abc import Callable
from typing import Any

import httpx
import pytest

import reqchain.client as client_module
from reqchain.config import ClientSettings


@pytest.fixture
def settings() -> ClientSettings:
    """Settings isolated from any local .env file."""
    return ClientSettings(_env_file=None)


@pytest.fixture
def backoff_delays(monkeypatch) -> list[float]:
    """Replace the backoff sleep with a recorder so retry tests run instantly."""
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(client_module, "_backoff_sleep", fake_sleep)
    return delays


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], Any]], httpx.AsyncClient]:
    """Factory for an httpx.AsyncClient routed to a handler function."""

    def _make(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
