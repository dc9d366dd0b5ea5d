from __future__ import annotations

from typing import List

from fastapi import APIRouter

from ..errors import NotFound
from ..schemas import RoomState, RoomSummary
from ..state import registry

router = APIRouter(prefix="", tags=["rooms"])


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms():
    result: List[RoomSummary] = []
    for room in registry.rooms():
        admin = room.players.get(room.admin_id) if room.admin_id else None
        result.append(
            RoomSummary(
                code=room.code,
                admin_name=admin.name if admin else None,
                player_count=len(room.players),
                user_count=len(room.user_ids()),
            )
        )
    return result


@router.get("/rooms/{code}", response_model=RoomState, response_model_by_alias=True)
async def get_room(code: str):
    room = registry.find(code)
    if room is None:
        raise NotFound("Room not found")
    return room.public_state()
