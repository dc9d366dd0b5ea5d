"""End-to-end websocket and REST tests using FastAPI's TestClient."""
from __future__ import annotations

import time

from fastapi.testclient import TestClient

from diceroom.app import app
from diceroom.state import registry

client = TestClient(app)


def recv_until(ws, msg_type, max_messages=20):
    """Receive frames until one of *msg_type* arrives and return it."""
    for _ in range(max_messages):
        data = ws.receive_json()
        if data.get("type") == msg_type:
            return data
    raise AssertionError(f"Never received {msg_type} after {max_messages} messages")


def connect(ws) -> str:
    hello = ws.receive_json()
    assert hello["type"] == "connected"
    return hello["data"]["id"]


def request(ws, msg_type, data=None, ref=1):
    ws.send_json({"type": msg_type, "data": data or {}, "ref": ref})
    ack = recv_until(ws, "ack")
    assert ack["ref"] == ref
    return ack["data"]


def test_create_join_roll_flow():
    with client.websocket_connect("/ws") as admin, client.websocket_connect("/ws") as user:
        connect(admin)
        user_id = connect(user)

        created = request(admin, "room:create", {"name": "Admin"})
        assert created["ok"] is True
        code = created["code"]
        assert len(code) == 4

        joined = request(user, "room:join", {"code": code.lower(), "name": "Alice"})
        assert joined["ok"] is True
        assert joined["state"]["turn"] == user_id

        update = recv_until(admin, "room:update")["data"]
        assert update["userOrder"] == [user_id]

        rolled_ack = request(user, "roll", ref="r1")
        assert rolled_ack["ok"] is True

        rolled = recv_until(admin, "rolled")["data"]
        assert rolled["value"] == rolled_ack["value"]
        assert rolled["actorName"] == "Alice"
        assert rolled["turn"] == user_id
        after = recv_until(admin, "room:update")["data"]
        assert after["history"][0]["actorId"] == user_id


def test_errors_are_acknowledged_to_caller_only():
    with client.websocket_connect("/ws") as ws:
        connect(ws)
        ack = request(ws, "room:join", {"code": "NOPE", "name": "Bob"})
        assert ack == {"ok": False, "error": "Room not found"}

        ack = request(ws, "roll")
        assert ack["ok"] is False

        ws.send_text("not json")
        bad = recv_until(ws, "ack")
        assert bad["data"] == {"ok": False, "error": "Malformed message"}


def test_binary_frames_are_decoded_and_bad_ones_keep_the_player():
    with client.websocket_connect("/ws") as admin, client.websocket_connect("/ws") as user:
        connect(admin)
        user_id = connect(user)
        code = request(admin, "room:create", {"name": "Admin"})["code"]
        request(user, "room:join", {"code": code, "name": "Alice"})

        user.send_bytes(b"\xff\xfe not utf-8")
        assert recv_until(user, "ack")["data"] == {"ok": False, "error": "Malformed message"}
        user.send_bytes(b"{broken")
        assert recv_until(user, "ack")["data"] == {"ok": False, "error": "Malformed message"}

        room = registry.find(code)
        assert user_id in room.players
        assert room.turn == user_id

        user.send_bytes(b'{"type": "roll", "ref": 7}')
        ack = recv_until(user, "ack")
        assert ack["ref"] == 7
        assert ack["data"]["ok"] is True
        assert len(room.history) == 1
        assert user_id in room.players


def test_kick_notifies_target():
    with client.websocket_connect("/ws") as admin, client.websocket_connect("/ws") as user:
        admin_id = connect(admin)
        user_id = connect(user)
        code = request(admin, "room:create", {"name": "Admin"})["code"]
        request(user, "room:join", {"code": code, "name": "Bob"})

        ack = request(admin, "admin.kick", {"playerId": user_id})
        assert ack == {"ok": True}

        kicked = recv_until(user, "kicked")["data"]
        assert kicked == {"code": code, "byId": admin_id}
        assert user_id not in registry.find(code).players


def test_disconnect_cleans_up_room():
    with client.websocket_connect("/ws") as admin:
        connect(admin)
        code = request(admin, "room:create", {"name": "Admin"})["code"]

        with client.websocket_connect("/ws") as user:
            connect(user)
            request(user, "room:join", {"code": code, "name": "Carol"})
            recv_until(admin, "room:update")

        update = recv_until(admin, "room:update")["data"]
        assert update["turn"] is None
        assert [p["role"] for p in update["players"]] == ["admin"]

    # Admin gone too: the room is deleted once the server handles the close.
    for _ in range(50):
        if registry.find(code) is None:
            break
        time.sleep(0.01)
    assert registry.find(code) is None


def test_rest_room_listing_and_lookup():
    assert client.get("/rooms").json() == []
    assert client.get("/rooms/ZZZZ").status_code == 404

    with client.websocket_connect("/ws") as admin:
        connect(admin)
        code = request(admin, "room:create", {"name": "Admin"})["code"]

        listing = client.get("/rooms").json()
        assert listing == [{"code": code, "admin_name": "Admin", "player_count": 1, "user_count": 0}]

        state = client.get(f"/rooms/{code.lower()}").json()
        assert state["code"] == code
        assert state["userOrder"] == []
        assert state["turn"] is None
