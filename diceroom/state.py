"""Centralised in-memory runtime state.

This keeps the process-wide singletons so the routers and the app can import
them without worrying about circular imports. Rooms are only reachable
through ``registry``; nothing else holds long-lived references to them.
"""
from __future__ import annotations

from .hub import ConnectionHub
from .registry import RoomRegistry
from .session import SessionController

registry = RoomRegistry()

# Live websocket connections and their room subscriptions
hub = ConnectionHub()

controller = SessionController(registry, hub)


def reset() -> None:
    """Forget every room and connection (used between tests)."""
    registry.clear()
    hub.clear()


__all__ = ["registry", "hub", "controller", "reset"]
