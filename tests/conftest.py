from __future__ import annotations

import asyncio
import random
from typing import Iterable, List, Optional

import pytest

from diceroom import state
from diceroom.hub import ConnectionHub
from diceroom.registry import RoomRegistry
from diceroom.session import SessionController


class MockWebSocket:
    """Lightweight stand-in for ``fastapi.WebSocket``."""

    def __init__(self) -> None:
        self.sent_messages: List[dict] = []

    async def send_json(self, data: dict) -> None:
        self.sent_messages.append(data)

    def of_type(self, msg_type: str) -> List[dict]:
        return [m["data"] for m in self.sent_messages if m.get("type") == msg_type]

    def last(self, msg_type: str) -> Optional[dict]:
        found = self.of_type(msg_type)
        return found[-1] if found else None

    def types(self) -> List[str]:
        return [m["type"] for m in self.sent_messages]


class Harness:
    """A private registry/hub/controller trio with mock sockets."""

    def __init__(self, codes: Iterable[str] = ("AB12", "CD34", "EF56", "GH78")):
        code_iter = iter(codes)
        self.registry = RoomRegistry(code_factory=lambda: next(code_iter))
        self.hub = ConnectionHub()
        self.controller = SessionController(self.registry, self.hub, rng=random.Random(7))
        self.sockets = {}

    def connect(self, conn_id: str) -> MockWebSocket:
        ws = MockWebSocket()
        self.sockets[conn_id] = ws
        self.hub.register(conn_id, ws)
        return ws

    def run(self, coro):
        return asyncio.run(coro)

    def room(self, code: str = "AB12"):
        return self.registry.find(code)

    def clear_sent(self) -> None:
        for ws in self.sockets.values():
            ws.sent_messages.clear()

    # Convenience wrappers around the controller

    def create(self, conn_id: str, name: str = "Admin") -> dict:
        self.connect(conn_id)
        return self.run(self.controller.create_room(conn_id, name))

    def join(self, conn_id: str, name: str, code: str = "AB12") -> dict:
        if conn_id not in self.sockets:
            self.connect(conn_id)
        return self.run(self.controller.join_room(conn_id, code, name))


@pytest.fixture
def harness() -> Harness:
    return Harness()


@pytest.fixture
def trio(harness: Harness) -> Harness:
    """Room AB12 with an admin and users alice, bob and carol (in that order)."""
    harness.create("admin", "Admin")
    harness.join("alice", "Alice")
    harness.join("bob", "Bob")
    harness.join("carol", "Carol")
    harness.clear_sent()
    return harness


@pytest.fixture(autouse=True)
def reset_runtime_state():
    state.reset()
    yield
    state.reset()
