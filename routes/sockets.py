from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from typing import Optional
from realtime.channels import ChannelRouter, Connection
from routes.deps import decode_access_token
from logging_config import get_logger, connection_id_var, user_id_var
from config import config
import asyncio
import json
import uuid

router = APIRouter(tags=["Realtime"])
logger = get_logger("realtime")


def handle_client_message(channels: ChannelRouter, connection: Connection, raw: str) -> None:
    """Apply one client frame. Only 'join' is understood."""
    try:
        message = json.loads(raw)
    except ValueError:
        connection.enqueue({"event": "error", "data": "Malformed message"})
        return

    if not isinstance(message, dict) or message.get("event") != "join":
        connection.enqueue({"event": "error", "data": "Unknown event"})
        return

    announced = message.get("data")
    if config.REALTIME_REQUIRE_AUTH:
        # Channel comes from the token, never from what the client claims
        if announced and str(announced) != connection.user_id:
            logger.warning(f"Join for foreign channel redirected to own channel", extra={"data": {"announced": announced}})
        channel = connection.user_id
    else:
        channel = str(announced) if announced not in (None, "") else None

    if not channel:
        connection.enqueue({"event": "error", "data": "Join requires a user id"})
        return

    channels.join(connection.id, channel)
    connection.enqueue({"event": "joined", "data": channel})


@router.websocket("/ws")
async def socket_endpoint(websocket: WebSocket, token: Optional[str] = None):
    channels: ChannelRouter = websocket.app.state.channel_router

    identity = decode_access_token(token) if token else None
    if config.REALTIME_REQUIRE_AUTH and identity is None:
        logger.warning("Socket rejected: missing or invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection = Connection(uuid.uuid4().hex, websocket.send_json, user_id=identity)
    connection_id_var.set(connection.id)
    if identity:
        user_id_var.set(identity)
    channels.connect(connection)
    writer = asyncio.create_task(connection.pump())

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
            raw = message.get("text")
            if raw is None:
                # Binary frames carry no JSON envelope
                connection.enqueue({"event": "error", "data": "Malformed message"})
                continue
            handle_client_message(channels, connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        channels.disconnect(connection.id)
        writer.cancel()
