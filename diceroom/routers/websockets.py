from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..ids import generate_connection_id
from ..state import controller, hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ws"])

MALFORMED = {"ok": False, "error": "Malformed message"}


async def _send_ack(ws: WebSocket, ref: Any, ack: dict) -> None:
    await ws.send_json({"type": "ack", "ref": ref, "data": ack})


async def _receive_frame(ws: WebSocket) -> Any:
    """Return the next decoded JSON frame, text or binary.

    Raises ``WebSocketDisconnect`` on close and ``ValueError`` for frames that
    are not valid UTF-8 JSON.
    """
    message = await ws.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    text = message.get("text")
    if text is None:
        raw = message.get("bytes")
        if raw is None:
            raise ValueError("Empty websocket frame")
        text = raw.decode("utf-8")
    return json.loads(text)


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    conn_id = generate_connection_id()
    hub.register(conn_id, ws)
    logger.debug("Connection %s opened", conn_id)
    await ws.send_json({"type": "connected", "data": {"id": conn_id}})

    try:
        while True:
            try:
                message = await _receive_frame(ws)
            except (ValueError, KeyError, TypeError):
                # UnicodeDecodeError and JSONDecodeError are ValueErrors.
                logger.debug("Malformed frame from %s", conn_id)
                await _send_ack(ws, None, MALFORMED)
                continue
            ack = await controller.handle_message(conn_id, message)
            if ack is not None:
                ref = message.get("ref") if isinstance(message, dict) else None
                await _send_ack(ws, ref, ack)
    except WebSocketDisconnect:
        logger.debug("Connection %s closed", conn_id)
    except Exception:
        logger.exception("WebSocket error on connection %s", conn_id)
        try:
            await ws.close(code=1011)
        except Exception:
            logger.debug("Connection %s already closed", conn_id)
    finally:
        # Room cleanup has to finish before the id is forgotten.
        await controller.disconnect(conn_id)
        hub.unregister(conn_id)
