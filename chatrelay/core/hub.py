"""
The chat hub: one registry, presence table, history log and connection manager per process.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from chatrelay.core.config import settings
from chatrelay.core.history import HistoryLog
from chatrelay.core.presence.registry import Registry
from chatrelay.core.presence.table import PresenceTable
from chatrelay.core.websocket.manager import ConnectionManager
from chatrelay.core.websocket.protocol import encode_history, encode_presence

logger = logging.getLogger(__name__)


class ChatHub:
    """Shared state every session and the reaper operate on."""

    def __init__(
        self,
        history_limit: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        max_frame_size: Optional[int] = None,
    ) -> None:
        self.presence = PresenceTable(clock=clock)
        self.registry = Registry(self.presence)
        self.history = HistoryLog(maxlen=history_limit)
        self.connections = ConnectionManager()
        self.max_frame_size = max_frame_size

    def broadcast_presence(self, snapshot: List[Dict[str, str]]) -> int:
        return self.connections.broadcast_to_all(encode_presence(snapshot))

    def broadcast_history(self, events: List[Dict[str, Any]]) -> int:
        return self.connections.broadcast_to_all(encode_history(events))

    def stats(self) -> Dict[str, int]:
        return {
            "participants": len(self.presence),
            "connections": len(self.connections),
            "history": len(self.history),
        }


_hub: Optional[ChatHub] = None


def get_hub() -> ChatHub:
    """Return the process-wide hub, creating it from settings on first use."""
    global _hub
    if _hub is None:
        _hub = ChatHub(
            history_limit=settings.history_limit,
            max_frame_size=settings.max_frame_size,
        )
    return _hub
