"""
Output channel: one per WebSocket, with its own outbox and writer task.

Broadcasters only ever enqueue, so a slow or dead client delays nothing but its own
frames. The outbox is unbounded: a client that never drains keeps growing it.
"""
import asyncio
import logging
import uuid
from typing import Any, Optional, Union

from chatrelay.core.errors import ChannelDeliveryError

logger = logging.getLogger(__name__)

Frame = Union[str, bytes]

_CLOSE = object()  # end marker queued by close()


class Channel:
    """Ordered, best-effort delivery of text and binary frames to a single WebSocket."""

    def __init__(self, websocket: Any, send_timeout: float = 5.0) -> None:
        self.id = uuid.uuid4().hex[:12]
        self._websocket = websocket
        self._send_timeout = send_timeout
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._open = True
        self._writer: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> None:
        """Start the writer task. Must be called from the event loop."""
        if self._writer is None:
            self._writer = asyncio.create_task(self._run_writer())

    def enqueue(self, frame: Frame) -> bool:
        """Queue a frame without waiting. Returns False if the channel is closed."""
        if not self._open:
            return False
        self._outbox.put_nowait(frame)
        return True

    async def _deliver(self, frame: Frame) -> None:
        try:
            async with asyncio.timeout(self._send_timeout):
                if isinstance(frame, bytes):
                    await self._websocket.send_bytes(frame)
                else:
                    await self._websocket.send_text(frame)
        except TimeoutError as e:
            raise ChannelDeliveryError(self.id, f"send timed out after {self._send_timeout}s") from e
        except Exception as e:
            raise ChannelDeliveryError(self.id, str(e) or type(e).__name__) from e

    async def _run_writer(self) -> None:
        while True:
            frame = await self._outbox.get()
            if frame is _CLOSE:
                self._outbox.task_done()
                return
            try:
                await self._deliver(frame)
            except ChannelDeliveryError as e:
                logger.warning("%s; closing channel", e)
                self._open = False
                self._outbox.task_done()
                self._discard_pending()
                return
            self._outbox.task_done()

    def _discard_pending(self) -> None:
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._outbox.task_done()

    async def flush(self) -> None:
        """Wait until every queued frame has been sent or dropped."""
        if self._writer is None:
            return
        await self._outbox.join()

    async def close(self) -> None:
        """
        Stop accepting frames and stop the writer. Pending frames are dropped.

        The writer stops at an end marker; a send already in flight finishes or times out first.
        """
        self._open = False
        writer, self._writer = self._writer, None
        self._discard_pending()
        if writer is not None and not writer.done():
            self._outbox.put_nowait(_CLOSE)
            await writer
        self._discard_pending()
