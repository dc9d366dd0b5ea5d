"""Connection bookkeeping for the websocket transport.

The hub maps connection ids to live sockets and room codes to the set of
connections subscribed to them. The session controller only sees the two
delivery primitives, :meth:`ConnectionHub.send` and
:meth:`ConnectionHub.broadcast`; delivery is fire-and-forget.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionHub:
    def __init__(self) -> None:
        # connection id -> websocket
        self.connections: Dict[str, WebSocket] = {}
        # room code -> subscribed connection ids
        self.subscriptions: Dict[str, Set[str]] = {}

    # -------------------- Connection lifecycle -------------------- #

    def register(self, conn_id: str, ws: WebSocket) -> None:
        self.connections[conn_id] = ws

    def unregister(self, conn_id: str) -> None:
        self.connections.pop(conn_id, None)
        for code in self.rooms_of(conn_id):
            self.unsubscribe(conn_id, code)

    # -------------------- Subscriptions -------------------- #

    def subscribe(self, conn_id: str, code: str) -> None:
        self.subscriptions.setdefault(code, set()).add(conn_id)

    def unsubscribe(self, conn_id: str, code: str) -> None:
        members = self.subscriptions.get(code)
        if members is None:
            return
        members.discard(conn_id)
        if not members:
            del self.subscriptions[code]

    def rooms_of(self, conn_id: str) -> List[str]:
        return [code for code, members in self.subscriptions.items() if conn_id in members]

    def subscribers(self, code: str) -> List[str]:
        return list(self.subscriptions.get(code, ()))

    # -------------------- Delivery -------------------- #

    async def send(self, conn_id: str, event: str, data: Any) -> None:
        """Send one ``{"type", "data"}`` frame to *conn_id* if it is still connected."""
        ws = self.connections.get(conn_id)
        if ws is None:
            return
        try:
            await ws.send_json({"type": event, "data": data})
        except Exception:
            # Client went away mid-send; the endpoint's disconnect path cleans up.
            logger.warning("Dropping connection %s after failed %s send", conn_id, event)
            self.connections.pop(conn_id, None)

    async def broadcast(self, code: str, event: str, data: Any) -> None:
        """Send *event* to every connection subscribed to room *code*."""
        for conn_id in self.subscribers(code):
            await self.send(conn_id, event, data)

    def clear(self) -> None:
        self.connections.clear()
        self.subscriptions.clear()


__all__ = ["ConnectionHub"]
