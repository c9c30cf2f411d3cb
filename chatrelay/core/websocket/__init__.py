"""
WebSocket layer for presence, chat relay and history replay.

One channel per connection; every channel has its own outbox so fan-out never waits on a client.
"""

from chatrelay.core.websocket.channel import Channel
from chatrelay.core.websocket.manager import ConnectionManager

__all__ = ["Channel", "ConnectionManager"]
