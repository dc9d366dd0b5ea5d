from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from .constants import CODE_ATTEMPTS
from .ids import generate_code, normalize_code
from .room import Room

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Owns every live :class:`Room`, keyed by upper-case room code.

    Rooms are inserted by :meth:`create` and removed only by
    :meth:`evict_if_empty`; they never expire on their own.
    """

    def __init__(self, code_factory: Callable[[], str] = generate_code):
        self._rooms: Dict[str, Room] = {}
        self._code_factory = code_factory

    def create(self) -> Room:
        for _ in range(CODE_ATTEMPTS):
            code = normalize_code(self._code_factory())
            if code and code not in self._rooms:
                break
        else:
            raise RuntimeError("Could not allocate a free room code")
        room = Room(code)
        self._rooms[code] = room
        logger.info("Room %s created (%d live)", code, len(self._rooms))
        return room

    def find(self, code: object) -> Optional[Room]:
        return self._rooms.get(normalize_code(code))

    def evict_if_empty(self, room: Room) -> bool:
        """Drop *room* once its last player is gone. Returns ``True`` if evicted."""
        if not room.is_empty:
            return False
        if self._rooms.get(room.code) is room:
            del self._rooms[room.code]
            logger.info("Room %s is empty, removed (%d live)", room.code, len(self._rooms))
        return True

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def clear(self) -> None:
        self._rooms.clear()

    def __contains__(self, code: object) -> bool:
        return normalize_code(code) in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)


__all__ = ["RoomRegistry"]
