"""Pydantic data schemas used across the dice room service.

Runtime records (``Player``, ``RollEvent``) and the public room view live
next to the inbound websocket payloads so every module imports them from a
single place. Wire names follow the browser clients (camelCase), Python
attribute names stay snake_case.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import DIE_FACES

# -----------------------------
# Runtime records
# -----------------------------


class Player(BaseModel):
    """A member of a room, keyed by connection id inside ``Room.players``."""

    name: str
    role: Literal["admin", "user"]
    joined_at: float  # epoch milliseconds


class RollEvent(BaseModel):
    """One die roll. Immutable once recorded."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    actor_id: str = Field(alias="actorId")
    actor_name: str = Field(alias="actorName")
    value: int = Field(ge=1, le=DIE_FACES)
    time: float


# -----------------------------
# Public views
# -----------------------------


class PlayerView(BaseModel):
    id: str
    name: str
    role: str


class RoomState(BaseModel):
    """Snapshot broadcast as ``room:update`` after every mutation."""

    model_config = ConfigDict(populate_by_name=True)

    code: str
    players: List[PlayerView]
    user_order: List[str] = Field(alias="userOrder")
    turn: Optional[str] = None
    history: List[RollEvent] = []


class RoomSummary(BaseModel):
    """Slim room representation for the read-only listing."""

    code: str
    admin_name: Optional[str] = None
    player_count: int
    user_count: int


# -----------------------------
# Inbound websocket payloads
# -----------------------------


class CreateRoomRequest(BaseModel):
    name: Optional[str] = None


class JoinRoomRequest(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None


class ViewRoomRequest(BaseModel):
    code: Optional[str] = None


class TargetRequest(BaseModel):
    """Payload of the admin operations that act on another player."""

    model_config = ConfigDict(populate_by_name=True)

    player_id: Optional[str] = Field(default=None, alias="playerId")


class MoveUserRequest(TargetRequest):
    direction: Optional[str] = None


__all__ = [
    # runtime
    "Player",
    "RollEvent",
    # views
    "PlayerView",
    "RoomState",
    "RoomSummary",
    # inbound
    "CreateRoomRequest",
    "JoinRoomRequest",
    "ViewRoomRequest",
    "TargetRequest",
    "MoveUserRequest",
]
