"""
Per-connection session: history on open, event dispatch, presence cleanup on close.

Each mutation's snapshot is broadcast right after the awaited call returns, with no
suspension point in between, so every channel sees presence and history changes in the
order the server applied them.
"""
import logging
from typing import Any, Dict, Optional, Union

from chatrelay.core.history import ChatEvent
from chatrelay.core.hub import ChatHub
from chatrelay.core.websocket.channel import Channel
from chatrelay.core.websocket.protocol import EventType, decode_event, encode_history, user_of

logger = logging.getLogger(__name__)

CONNECTING = "connecting"
OPEN = "open"
CLOSED = "closed"


class Session:
    """Control loop state for one WebSocket connection."""

    def __init__(self, hub: ChatHub, channel: Channel) -> None:
        self.hub = hub
        self.channel = channel
        self.state = CONNECTING
        self.identity: Optional[str] = None  # last name joined on this channel

    async def open(self) -> None:
        """Queue the history snapshot as this channel's first frame, then join the fan-out."""
        if self.state != CONNECTING:
            return
        events = await self.hub.history.snapshot()
        # No await between the snapshot and add(): sends appended after this point are
        # fanned out to this channel, earlier ones are in the snapshot.
        self.channel.enqueue(encode_history(events))
        self.hub.connections.add(self.channel)
        self.channel.start()
        self.state = OPEN

    async def handle_frame(self, frame: Union[str, bytes]) -> None:
        """
        Decode and dispatch one inbound frame.

        Raises MalformedEventError if the frame is not a valid event; the session stays open.
        """
        if self.state != OPEN:
            logger.debug("Dropping frame on %s channel %s", self.state, self.channel.id)
            return
        event = decode_event(frame, self.hub.max_frame_size)
        logger.debug("Message received on %s: %s", self.channel.id, event)
        kind = event["type"]
        if kind == EventType.PING:
            await self.handle_ping(event)
        elif kind == EventType.JOIN:
            await self.handle_join(event)
        elif kind == EventType.EXIT:
            await self.handle_exit(event)
        elif kind == EventType.SEND:
            await self.handle_send(event, frame)
        elif kind == EventType.CLEAR:
            await self.handle_clear()
        else:
            logger.debug("Ignoring unknown event type %r", kind)

    async def handle_ping(self, event: Dict[str, Any]) -> None:
        await self.hub.presence.touch(user_of(event).name)

    async def handle_join(self, event: Dict[str, Any]) -> None:
        user = user_of(event)
        user_id = str(user.id) if user.id is not None else None
        snapshot = await self.hub.presence.upsert_on_join(user.name, self.channel, user_id)
        self.identity = user.name
        self.hub.broadcast_presence(snapshot)
        logger.info("User with name %r joined (%s present)", user.name, len(snapshot))

    async def handle_exit(self, event: Dict[str, Any]) -> None:
        name = user_of(event).name
        snapshot = await self.hub.presence.remove(name)
        if self.identity == name:
            self.identity = None
        if snapshot is None:
            logger.debug("Exit for unknown participant %r ignored", name)
            return
        self.hub.broadcast_presence(snapshot)
        logger.info("User with name %r has been deleted", name)

    async def handle_send(self, event: Dict[str, Any], frame: Union[str, bytes]) -> None:
        await self.hub.history.append(ChatEvent(payload=event, frame=frame))
        delivered = self.hub.connections.broadcast_to_all(frame)
        logger.info("Message sent to %s channels", delivered)

    async def handle_clear(self) -> None:
        await self.hub.history.clear()
        self.hub.broadcast_history([])

    async def close(self) -> None:
        """Transport closed: leave the fan-out and drop every participant bound to this channel."""
        if self.state == CLOSED:
            return
        self.state = CLOSED
        self.hub.connections.discard(self.channel)
        try:
            names, snapshot = await self.hub.presence.remove_channel(self.channel)
            if names:
                self.hub.broadcast_presence(snapshot)
                logger.info("Users %s have disconnected", names)
            self.identity = None
        finally:
            await self.channel.close()
