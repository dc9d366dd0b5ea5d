"""Error taxonomy shared by the session controller and the HTTP routers.

Every error is an ``HTTPException`` so the read-only REST routes can let it
propagate unchanged, while the websocket dispatcher turns it into a negative
acknowledgement ``{"ok": False, "error": detail}``.
"""
from __future__ import annotations

from fastapi import HTTPException, status


class RoomError(HTTPException):
    """Base class for every rejected room operation."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    @property
    def message(self) -> str:
        return str(self.detail)


class InvalidArgument(RoomError):
    """Empty or malformed input (name, direction, target role)."""

    status_code = status.HTTP_400_BAD_REQUEST


class Forbidden(RoomError):
    """Caller lacks the role the operation requires."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFound(RoomError):
    """Unknown room code or unknown target player."""

    status_code = status.HTTP_404_NOT_FOUND


class PreconditionFailed(RoomError):
    """Role is fine but the room state does not allow the operation."""

    status_code = status.HTTP_409_CONFLICT


__all__ = [
    "RoomError",
    "InvalidArgument",
    "Forbidden",
    "NotFound",
    "PreconditionFailed",
]
