"""Turn rotation over a room's participants.

Plain functions operating on a :class:`diceroom.room.Room`. Membership can
change between calls (kick, leave, disconnect) without the ordering list
being rebuilt, so every function that reads positional order normalizes
``room.user_order`` first.
"""
from __future__ import annotations

from typing import List, Optional

from .constants import DIRECTIONS
from .errors import InvalidArgument
from .room import Room


def normalize(room: Room) -> List[str]:
    """Repair ``room.user_order`` in place and return it.

    Drops ids that are gone or not users, drops duplicates (first occurrence
    wins) and appends users missing from the list in join order.
    """
    seen = set()
    order: List[str] = []
    for pid in room.user_order:
        if pid in seen or not room.is_user(pid):
            continue
        seen.add(pid)
        order.append(pid)
    for pid in room.user_ids():
        if pid not in seen:
            seen.add(pid)
            order.append(pid)
    room.user_order[:] = order
    return room.user_order


def first_user(room: Room) -> Optional[str]:
    order = normalize(room)
    return order[0] if order else None


def next_after(room: Room, current_id: Optional[str]) -> Optional[str]:
    """Return the user after *current_id*, wrapping around.

    Rotation restarts from the head when *current_id* is no longer listed.
    With a single user the same id comes back.
    """
    order = normalize(room)
    if not order:
        return None
    if current_id not in order:
        return order[0]
    idx = order.index(current_id)
    return order[(idx + 1) % len(order)]


def move(room: Room, conn_id: str, direction: str) -> bool:
    """Swap *conn_id* with its neighbour. ``False`` means it is already at the edge."""
    if direction not in DIRECTIONS:
        raise InvalidArgument("Direction must be 'up' or 'down'")
    order = normalize(room)
    if conn_id not in order:
        return False
    idx = order.index(conn_id)
    swap = idx - 1 if direction == "up" else idx + 1
    if swap < 0 or swap >= len(order):
        return False
    order[idx], order[swap] = order[swap], order[idx]
    return True


def remove(room: Room, conn_id: str) -> None:
    room.user_order[:] = [pid for pid in room.user_order if pid != conn_id]


__all__ = ["normalize", "first_user", "next_after", "move", "remove"]
