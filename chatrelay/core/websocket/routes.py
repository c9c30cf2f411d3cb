"""
WebSocket route: accept, open a session, read frames until the client goes away.
"""
import logging

from fastapi import WebSocket

from chatrelay.core.config import settings
from chatrelay.core.errors import MalformedEventError
from chatrelay.core.hub import get_hub
from chatrelay.core.websocket.channel import Channel
from chatrelay.core.websocket.handler import Session

logger = logging.getLogger(__name__)


async def websocket_endpoint(websocket: WebSocket) -> None:
    """Accept WebSocket, send history, dispatch frames in arrival order, clean up on close."""
    hub = get_hub()
    await websocket.accept()
    channel = Channel(websocket, send_timeout=settings.send_timeout_seconds)
    session = Session(hub, channel)
    await session.open()
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            frame = message.get("text")
            if frame is None:
                frame = message.get("bytes")
            if frame is None:
                continue
            try:
                await session.handle_frame(frame)
            except MalformedEventError as e:
                logger.warning("Dropping malformed frame on channel %s: %s", channel.id, e)
    finally:
        await session.close()
