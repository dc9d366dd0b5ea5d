from __future__ import annotations

import time
from typing import Dict, List, Optional

from .constants import ADMIN, HISTORY_LIMIT, USER
from .schemas import Player, PlayerView, RollEvent, RoomState

# NOTE: ``Room`` only holds data. Ordering and turn logic lives in
# ``diceroom.rotation`` and the operations in ``diceroom.session``.


def now_ms() -> float:
    return time.time() * 1000


class Room:
    """In-memory state of a single dice room."""

    def __init__(self, code: str):
        self.code = code
        # connection id -> Player, insertion ordered
        self.players: Dict[str, Player] = {}
        # Participant connection ids in rotation order
        self.user_order: List[str] = []
        # Connection id of the user allowed to roll (never the admin)
        self.turn: Optional[str] = None
        # Newest first, at most HISTORY_LIMIT entries
        self.history: List[RollEvent] = []

    # ---------------------------------------------------------------------
    # Membership helpers
    # ---------------------------------------------------------------------

    def add_player(self, conn_id: str, name: str, role: str) -> Player:
        player = Player(name=name, role=role, joined_at=now_ms())
        self.players[conn_id] = player
        if role == USER and conn_id not in self.user_order:
            self.user_order.append(conn_id)
        return player

    def discard_player(self, conn_id: str) -> Optional[Player]:
        """Drop *conn_id* from ``players``. Turn handling is the caller's job."""
        return self.players.pop(conn_id, None)

    def is_user(self, conn_id: Optional[str]) -> bool:
        player = self.players.get(conn_id) if conn_id else None
        return player is not None and player.role == USER

    def is_admin(self, conn_id: Optional[str]) -> bool:
        player = self.players.get(conn_id) if conn_id else None
        return player is not None and player.role == ADMIN

    def user_ids(self) -> List[str]:
        """Participants in join order."""
        return [pid for pid, p in self.players.items() if p.role == USER]

    @property
    def admin_id(self) -> Optional[str]:
        return next((pid for pid, p in self.players.items() if p.role == ADMIN), None)

    @property
    def is_empty(self) -> bool:
        return not self.players

    # ---------------------------------------------------------------------
    # History
    # ---------------------------------------------------------------------

    def record_roll(self, event: RollEvent) -> None:
        self.history.insert(0, event)
        del self.history[HISTORY_LIMIT:]

    # ---------------------------------------------------------------------
    # Public view
    # ---------------------------------------------------------------------

    def public_state(self) -> RoomState:
        return RoomState(
            code=self.code,
            players=[PlayerView(id=pid, name=p.name, role=p.role) for pid, p in self.players.items()],
            user_order=list(dict.fromkeys(pid for pid in self.user_order if self.is_user(pid))),
            turn=self.turn,
            history=self.history[:HISTORY_LIMIT],
        )

    def public_payload(self) -> dict:
        return self.public_state().model_dump(by_alias=True)

    def invariant_violations(self, admin_id: Optional[str] = None) -> List[str]:
        """Describe every broken membership/turn invariant; empty when the room is sound.

        Pass *admin_id* to also require that this admin is still present.
        """
        problems: List[str] = []
        users = self.user_ids()
        if self.turn is not None and not self.is_user(self.turn):
            problems.append(f"turn {self.turn!r} is not a live user")
        if users and self.turn is None:
            problems.append("users present but no turn assigned")
        if len(set(self.user_order)) != len(self.user_order):
            problems.append("duplicate ids in user order")
        listed = {pid for pid in self.user_order if self.is_user(pid)}
        if listed != set(users):
            problems.append(f"user order {self.user_order!r} does not cover users {users!r}")
        admins = [pid for pid, p in self.players.items() if p.role == ADMIN]
        if len(admins) > 1:
            problems.append(f"more than one admin: {admins!r}")
        if admin_id is not None and admins != [admin_id]:
            problems.append(f"admin {admin_id!r} is no longer the room's admin")
        return problems

    def __repr__(self) -> str:
        return f"Room(code={self.code!r}, players={len(self.players)}, turn={self.turn!r})"


__all__ = ["Room", "now_ms"]
