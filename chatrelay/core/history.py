"""
Chat history: ordered record of relayed messages, replayed to every new connection.
"""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatEvent:
    """A relayed send event: decoded payload plus the frame exactly as it arrived."""
    payload: Dict[str, Any]
    frame: Union[str, bytes]


class HistoryLog:
    """
    Append-only log with a full clear. maxlen caps memory (oldest messages drop first);
    None or 0 keeps everything until cleared.
    """

    def __init__(self, maxlen: Optional[int] = None) -> None:
        self._events: deque = deque(maxlen=maxlen or None)
        self._lock = asyncio.Lock()

    async def append(self, event: ChatEvent) -> None:
        async with self._lock:
            self._events.append(event)

    async def snapshot(self) -> List[Dict[str, Any]]:
        """Payloads in arrival order."""
        async with self._lock:
            return [event.payload for event in self._events]

    async def clear(self) -> None:
        async with self._lock:
            dropped = len(self._events)
            self._events.clear()
        logger.info("Chat history cleared (%s messages dropped)", dropped)

    @property
    def maxlen(self) -> Optional[int]:
        return self._events.maxlen

    def __len__(self) -> int:
        return len(self._events)
