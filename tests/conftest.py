"""Test configuration and fixtures."""
import asyncio
import json

import pytest

from chatrelay.core.hub import ChatHub


class FakeSocket:
    """Stands in for a Starlette WebSocket on the sending side."""

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.frames = []
        self.fail = fail
        self.delay = delay

    async def _send(self, data) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket is closed")
        self.frames.append(data)

    async def send_text(self, data: str) -> None:
        await self._send(data)

    async def send_bytes(self, data: bytes) -> None:
        await self._send(data)

    def json_frames(self) -> list:
        return [json.loads(f) for f in self.frames]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hub(clock):
    return ChatHub(history_limit=500, clock=clock, max_frame_size=64 * 1024)


@pytest.fixture
def make_socket():
    def _make(**kwargs) -> FakeSocket:
        return FakeSocket(**kwargs)
    return _make


@pytest.fixture
def run(hub):
    """Run a scenario coroutine function, closing every channel it left open on the hub."""
    def _run(scenario):
        async def wrapper():
            try:
                return await scenario()
            finally:
                await hub.connections.close_all()
        return asyncio.run(wrapper())
    return _run
