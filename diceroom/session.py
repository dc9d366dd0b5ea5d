"""Room operations driven by websocket messages.

This module holds the rules for creating, joining and leaving rooms,
rolling the die and the admin tools (set turn, reorder, kick). It only
talks to the outside world through :class:`diceroom.hub.ConnectionHub`.

Every operation validates and mutates room state synchronously before its
first ``await``; the awaited part is outbound delivery only. Under the
single asyncio loop this makes each handler a critical section over the
rooms it touches.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from . import rotation
from .constants import ADMIN, DIE_FACES, USER
from .errors import Forbidden, InvalidArgument, NotFound, PreconditionFailed, RoomError
from .hub import ConnectionHub
from .ids import generate_event_id, normalize_code
from .registry import RoomRegistry
from .room import Room, now_ms
from .schemas import (
    CreateRoomRequest,
    JoinRoomRequest,
    MoveUserRequest,
    RollEvent,
    TargetRequest,
    ViewRoomRequest,
)

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    clean = (name or "").strip()
    if not clean:
        raise InvalidArgument("Name is required")
    return clean


class SessionController:
    def __init__(self, registry: RoomRegistry, hub: ConnectionHub, rng: Optional[random.Random] = None):
        self.registry = registry
        self.hub = hub
        self._rng = rng or random.Random()

    # ---------------------------------------------------------------------
    # Lookup helpers
    # ---------------------------------------------------------------------

    def room_of(self, conn_id: str) -> Optional[Room]:
        """The room *conn_id* is subscribed to (as player or viewer), if any."""
        for code in self.hub.rooms_of(conn_id):
            room = self.registry.find(code)
            if room is not None:
                return room
        return None

    def _member_room(self, conn_id: str) -> Room:
        room = self.room_of(conn_id)
        if room is None:
            raise PreconditionFailed("You are not in a room")
        return room

    def _admin_room(self, conn_id: str) -> Room:
        room = self._member_room(conn_id)
        if not room.is_admin(conn_id):
            raise Forbidden("Only the admin can do that")
        return room

    # ---------------------------------------------------------------------
    # Publishing
    # ---------------------------------------------------------------------

    async def _publish(self, rooms: List[Room]) -> None:
        for room in rooms:
            await self.hub.broadcast(room.code, "room:update", room.public_payload())

    def _state_ack(self, room: Room) -> Dict[str, Any]:
        return {"ok": True, "code": room.code, "state": room.public_payload()}

    # ---------------------------------------------------------------------
    # Departure (shared by leave, disconnect, kick and room switches)
    # ---------------------------------------------------------------------

    def _remove_player(self, room: Room, conn_id: str) -> None:
        # The successor is picked while the leaver is still listed so rotation
        # continues from its position instead of restarting at the head.
        successor = room.turn
        if room.turn == conn_id:
            successor = rotation.next_after(room, conn_id)
            if successor == conn_id:
                successor = None
        room.discard_player(conn_id)
        rotation.remove(room, conn_id)
        self.hub.unsubscribe(conn_id, room.code)
        room.turn = successor if room.is_user(successor) else None
        if room.turn is None:
            room.turn = rotation.first_user(room)

    def _depart(self, conn_id: str) -> List[Room]:
        """Detach *conn_id* from every room; return rooms that still need an update."""
        changed: List[Room] = []
        for code in self.hub.rooms_of(conn_id):
            room = self.registry.find(code)
            if room is None or conn_id not in room.players:
                # Viewers are only subscribers.
                self.hub.unsubscribe(conn_id, code)
                continue
            self._remove_player(room, conn_id)
            logger.info("Connection %s left room %s", conn_id, room.code)
            if not self.registry.evict_if_empty(room):
                changed.append(room)
        return changed

    # ---------------------------------------------------------------------
    # Room lifecycle
    # ---------------------------------------------------------------------

    async def create_room(self, conn_id: str, name: Optional[str]) -> Dict[str, Any]:
        clean = _clean_name(name)
        previous = self._depart(conn_id)

        room = self.registry.create()
        room.add_player(conn_id, clean, ADMIN)
        self.hub.subscribe(conn_id, room.code)
        logger.info("Admin %s (%s) opened room %s", clean, conn_id, room.code)

        await self._publish(previous + [room])
        return self._state_ack(room)

    async def join_room(self, conn_id: str, code: Optional[str], name: Optional[str]) -> Dict[str, Any]:
        room = self.registry.find(code)
        if room is None:
            raise NotFound("Room not found")
        clean = _clean_name(name)
        if conn_id in room.players:
            raise PreconditionFailed("You are already in this room")
        previous = self._depart(conn_id)

        room.add_player(conn_id, clean, USER)
        self.hub.subscribe(conn_id, room.code)
        if room.turn is None:
            room.turn = conn_id
        logger.info("User %s (%s) joined room %s", clean, conn_id, room.code)

        await self._publish(previous + [room])
        return self._state_ack(room)

    async def view_room(self, conn_id: str, code: Optional[str]) -> Dict[str, Any]:
        room = self.registry.find(code)
        if room is None:
            raise NotFound("Room not found")
        if room.code in self.hub.rooms_of(conn_id):
            return self._state_ack(room)
        previous = self._depart(conn_id)
        self.hub.subscribe(conn_id, room.code)
        logger.info("Viewer %s watching room %s", conn_id, room.code)

        await self._publish(previous)
        return self._state_ack(room)

    async def leave(self, conn_id: str) -> None:
        await self._publish(self._depart(conn_id))

    async def disconnect(self, conn_id: str) -> None:
        """Transport-signalled departure; same effect as :meth:`leave`."""
        changed = self._depart(conn_id)
        logger.debug("Connection %s disconnected, %d room(s) updated", conn_id, len(changed))
        await self._publish(changed)

    # ---------------------------------------------------------------------
    # Rolling
    # ---------------------------------------------------------------------

    async def roll(self, conn_id: str) -> Dict[str, Any]:
        room = self._member_room(conn_id)
        me = room.players.get(conn_id)
        if me is None or me.role != USER:
            raise PreconditionFailed("Only users can roll the die")
        if room.turn != conn_id:
            raise PreconditionFailed("It is not your turn")

        value = self._rng.randint(1, DIE_FACES)
        event = RollEvent(
            id=generate_event_id(),
            actor_id=conn_id,
            actor_name=me.name,
            value=value,
            time=now_ms(),
        )
        room.record_roll(event)
        room.turn = rotation.next_after(room, conn_id)
        logger.info("%s rolled %d in room %s, next turn %s", me.name, value, room.code, room.turn)

        await self.hub.broadcast(
            room.code,
            "rolled",
            {
                "value": value,
                "actorId": conn_id,
                "actorName": me.name,
                "time": event.time,
                "turn": room.turn,
            },
        )
        await self._publish([room])
        return {"ok": True, "value": value}

    # ---------------------------------------------------------------------
    # Admin tools
    # ---------------------------------------------------------------------

    async def set_turn(self, conn_id: str, player_id: Optional[str]) -> Dict[str, Any]:
        room = self._admin_room(conn_id)
        target = room.players.get(player_id) if player_id else None
        if target is None:
            raise NotFound("Player not found")
        if target.role != USER:
            raise InvalidArgument("Only users can be given the turn")

        order = rotation.normalize(room)
        if player_id not in order:
            order.append(player_id)
        room.turn = player_id
        logger.info("Admin set turn to %s in room %s", player_id, room.code)

        await self._publish([room])
        return {"ok": True}

    async def move_user(self, conn_id: str, player_id: Optional[str], direction: Optional[str]) -> Dict[str, Any]:
        room = self._admin_room(conn_id)
        target = room.players.get(player_id) if player_id else None
        if target is None:
            raise NotFound("Player not found")
        if target.role != USER:
            raise InvalidArgument("Only users can be reordered")
        if not rotation.move(room, player_id, direction or ""):
            edge = "first" if direction == "up" else "last"
            raise PreconditionFailed(f"Player is already {edge}")
        logger.info("Admin moved %s %s in room %s", player_id, direction, room.code)

        await self._publish([room])
        return {"ok": True}

    async def kick(self, conn_id: str, player_id: Optional[str]) -> Dict[str, Any]:
        room = self._admin_room(conn_id)
        target = room.players.get(player_id) if player_id else None
        if target is None:
            raise NotFound("Player not found")
        if player_id == conn_id:
            raise InvalidArgument("You cannot kick yourself")
        if target.role == ADMIN:
            raise InvalidArgument("The admin cannot be kicked")

        self._remove_player(room, player_id)
        evicted = self.registry.evict_if_empty(room)
        logger.info("Admin %s kicked %s (%s) from room %s", conn_id, target.name, player_id, room.code)

        await self.hub.send(player_id, "kicked", {"code": room.code, "byId": conn_id})
        if not evicted:
            await self._publish([room])
        return {"ok": True}

    # ---------------------------------------------------------------------
    # Primary dispatcher used by the websocket endpoint
    # ---------------------------------------------------------------------

    async def handle_message(self, conn_id: str, message: Any) -> Optional[Dict[str, Any]]:
        """Run one inbound frame and return its acknowledgement.

        ``room:leave`` returns ``None``; it is never acknowledged.
        """
        if not isinstance(message, dict):
            return {"ok": False, "error": "Malformed message"}
        msg_type = message.get("type")
        if isinstance(msg_type, str):
            msg_type = OPERATION_ALIASES.get(msg_type, msg_type)
        data = message.get("data")
        if data is None:
            data = {}

        try:
            if msg_type == "room:create":
                req = CreateRoomRequest.model_validate(data)
                return await self.create_room(conn_id, req.name)
            elif msg_type == "room:join":
                req = JoinRoomRequest.model_validate(data)
                return await self.join_room(conn_id, normalize_code(req.code), req.name)
            elif msg_type == "room:view":
                req = ViewRoomRequest.model_validate(data)
                return await self.view_room(conn_id, normalize_code(req.code))
            elif msg_type == "room:leave":
                await self.leave(conn_id)
                return None
            elif msg_type == "roll":
                return await self.roll(conn_id)
            elif msg_type == "admin:setTurn":
                req = TargetRequest.model_validate(data)
                return await self.set_turn(conn_id, req.player_id)
            elif msg_type == "admin:moveUser":
                req = MoveUserRequest.model_validate(data)
                return await self.move_user(conn_id, req.player_id, req.direction)
            elif msg_type == "admin:kick":
                req = TargetRequest.model_validate(data)
                return await self.kick(conn_id, req.player_id)
            raise InvalidArgument(f"Unknown message type: {message.get('type')!r}")
        except ValidationError:
            logger.debug("Malformed %s payload from %s", msg_type, conn_id)
            return {"ok": False, "error": "Malformed payload"}
        except RoomError as exc:
            logger.debug("%s from %s rejected: %s", msg_type, conn_id, exc.message)
            return {"ok": False, "error": exc.message}


OPERATION_ALIASES = {
    "room.create": "room:create",
    "room.join": "room:join",
    "room.view": "room:view",
    "room.leave": "room:leave",
    "admin.setTurn": "admin:setTurn",
    "admin.moveUser": "admin:moveUser",
    "admin.kick": "admin:kick",
}

__all__ = ["SessionController", "OPERATION_ALIASES"]
