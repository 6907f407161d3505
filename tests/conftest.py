# conftest.py -- Shared test fixtures

from __future__ import annotations

import asyncio
import time

import pytest
from fastapi.testclient import TestClient

from foodie_live.hub import DishViewersHub
from foodie_live.viewers import ActiveDishViewers
from foodie_live.ws import ConnectionManager


class FakeWebSocket:
    """Minimal mock for fastapi.WebSocket."""

    def __init__(
        self,
        *,
        fail_on_send: bool = False,
        fail_times: int = 0,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.accepted = False
        self.messages: list[dict] = []
        self._fail_on_send = fail_on_send
        self._fail_times = fail_times
        # First send waits here until the test sets it
        self._gate = gate

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict) -> None:
        if self._gate is not None:
            gate, self._gate = self._gate, None
            await gate.wait()
        if self._fail_on_send:
            raise RuntimeError("connection closed")
        if self._fail_times:
            self._fail_times -= 1
            raise ConnectionError("connection reset")
        self.messages.append(data)


@pytest.fixture
def viewers() -> ActiveDishViewers:
    return ActiveDishViewers()


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def hub(viewers: ActiveDishViewers, manager: ConnectionManager) -> DishViewersHub:
    return DishViewersHub(viewers, manager)


@pytest.fixture
def test_client(hub: DishViewersHub) -> TestClient:
    """FastAPI TestClient with fresh tracker/hub on app.state."""
    from foodie_live.app import app

    app.state.viewers = hub.viewers
    app.state.hub = hub
    app.state.start_time = time.time()
    return TestClient(app)
