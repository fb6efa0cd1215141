"""WebSocket endpoint — senders emit, recipients listen and drain.

Learn: Clients connect to /ws (send-only until they subscribe) or to
/ws/{identity}, which also attaches the socket to the channel named
identity. Every client frame is a JSON object with a "type":

    {"type": "subscribe", "channel": "alice"}
    {"type": "unsubscribe", "channel": "alice"}
    {"type": "send", "to": "bob", "message": {"event": ..., "payload": ..., "timestamp": ...}}
    {"type": "drain"}                       # own identity (path) ...
    {"type": "drain", "identity": "alice"}  # ... or an explicit one
    {"type": "ping"}

"send" gets no reply: the event model has no response channel, so a
rejected message is only visible in the server log. A drain replays the
queued messages as ordinary {"channel", "message"} frames and finishes
with {"type": "drained", "identity", "count"}.

A frame that can't be understood gets {"type": "error", "detail"} and the
connection stays open. Disconnecting is not an error; the socket simply
stops receiving until it reconnects.
"""

import json
import uuid
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from pushrelay.realtime.transport import build_frame
from pushrelay.relay.service import RelayService, get_ws_relay
from pushrelay.schemas.message import RelayMessage

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def relay_websocket(
    websocket: WebSocket,
    relay: RelayService = Depends(get_ws_relay),
):
    """Anonymous connection; listens only on channels it subscribes to."""
    await _serve(websocket, relay, identity=None)


@router.websocket("/ws/{identity}")
async def identity_websocket(
    websocket: WebSocket,
    identity: str,
    relay: RelayService = Depends(get_ws_relay),
):
    """Connection that listens on its own identity's channel from the start."""
    await _serve(websocket, relay, identity=identity)


async def _serve(
    websocket: WebSocket,
    relay: RelayService,
    identity: Optional[str],
) -> None:
    await websocket.accept()
    connection_id = uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(connection_id=connection_id)
    logger.info("ws.connected", identity=identity)

    if identity is not None:
        relay.hub.attach(identity, websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            text = message.get("text")
            if text is None:
                await _send_error(websocket, "binary frames are not supported")
                continue
            try:
                frame = json.loads(text)
            except json.JSONDecodeError:
                await _send_error(websocket, "frame is not valid JSON")
                continue
            await _handle_frame(websocket, relay, identity, frame)
    except WebSocketDisconnect:
        pass
    finally:
        left = relay.hub.detach_all(websocket)
        logger.info("ws.disconnected", identity=identity, channels=left)
        structlog.contextvars.unbind_contextvars("connection_id")
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()


async def _handle_frame(
    websocket: WebSocket,
    relay: RelayService,
    identity: Optional[str],
    frame: Any,
) -> None:
    if not isinstance(frame, dict):
        await _send_error(websocket, "frame must be a JSON object")
        return

    kind = frame.get("type")

    if kind == "send":
        recipient = frame.get("to")
        if not isinstance(recipient, str):
            await _send_error(websocket, "send requires a string 'to'")
            return
        await relay.router.handle_inbound(recipient, frame.get("message"))

    elif kind == "subscribe":
        channel = frame.get("channel")
        if not isinstance(channel, str):
            await _send_error(websocket, "subscribe requires a string 'channel'")
            return
        relay.hub.attach(channel, websocket)

    elif kind == "unsubscribe":
        channel = frame.get("channel")
        if isinstance(channel, str):
            relay.hub.detach(channel, websocket)

    elif kind == "drain":
        target = frame.get("identity", identity)
        if not isinstance(target, str):
            await _send_error(websocket, "drain requires an 'identity'")
            return

        async def deliver(message: RelayMessage) -> None:
            await websocket.send_json(build_frame(target, message))

        drained = await relay.router.handle_drain_request(target, deliver=deliver)
        await websocket.send_json(
            {"type": "drained", "identity": target, "count": len(drained)}
        )

    elif kind == "ping":
        await websocket.send_json({"type": "pong"})

    else:
        await _send_error(websocket, f"unknown frame type: {kind!r}")


async def _send_error(websocket: WebSocket, detail: str) -> None:
    logger.warning("ws.bad_frame", detail=detail)
    await websocket.send_json({"type": "error", "detail": detail})
