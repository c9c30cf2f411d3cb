"""
Connection manager: the set of open output channels and fan-out over it.

Membership and fan-out methods are synchronous and run on the event loop, so membership changes and a
broadcast never interleave. Fan-out only enqueues; channels send on their own writer task.
"""
import logging

from chatrelay.core.websocket.channel import Channel, Frame

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open channels and delivers frames to them."""

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}  # channel id -> Channel, in connect order

    def add(self, channel: Channel) -> None:
        self._channels[channel.id] = channel
        logger.info("WebSocket channel %s opened (%s open)", channel.id, len(self._channels))

    def discard(self, channel: Channel) -> None:
        if self._channels.pop(channel.id, None) is not None:
            logger.info("WebSocket channel %s closed (%s open)", channel.id, len(self._channels))

    def broadcast_to_all(self, frame: Frame) -> int:
        """
        Queue frame on every open channel. Channels found closed are skipped and dropped
        from the set. Returns the number of channels the frame was queued on.
        """
        delivered = 0
        for channel in list(self._channels.values()):
            if channel.enqueue(frame):
                delivered += 1
            else:
                logger.debug("Skipping closed channel %s", channel.id)
                self._channels.pop(channel.id, None)
        return delivered

    def __contains__(self, channel: object) -> bool:
        return isinstance(channel, Channel) and channel.id in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    async def close_all(self) -> None:
        """Close every channel still in the set (server shutdown)."""
        channels = list(self._channels.values())
        self._channels.clear()
        for channel in channels:
            await channel.close()
        if channels:
            logger.info("Closed %s WebSocket channels", len(channels))
