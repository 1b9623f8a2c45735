"""Per-configuration execution WebSocket.

One subscriber per configuration id; a new connection replaces the old one.
The only client message understood is ``{"type": "heartbeat"}``, answered
with ``heartbeat_ack`` and the server time in epoch milliseconds.
"""

from __future__ import annotations

import json
import time

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from maistro.server.channels import WebSocketChannel
from maistro.server.deps import Channels
from maistro.server.models.enums import EventType
from maistro.server.models.events import ConnectionEvent, HeartbeatAckEvent

router = APIRouter(tags=["streams"])


@router.websocket("/ws/execution/{config_id}")
async def execution_stream(websocket: WebSocket, config_id: str, channels: Channels) -> None:
    await websocket.accept()
    channel = WebSocketChannel(websocket)
    channels.register(config_id, channel)
    logger.info("WebSocket connected for configuration {}", config_id)
    try:
        await channel.send(ConnectionEvent(message=f"WebSocket connection established for configuration {config_id}"))
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON message on {}", config_id)
                continue
            if isinstance(message, dict) and message.get("type") == EventType.HEARTBEAT:
                await channel.send(HeartbeatAckEvent(timestamp=int(time.time() * 1000)))
    except WebSocketDisconnect:
        logger.info("WebSocket closed for configuration {}", config_id)
    finally:
        channels.unregister(config_id, channel)
