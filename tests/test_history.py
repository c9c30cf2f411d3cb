"""Unit tests for the history log."""
import asyncio

from chatrelay.core.history import ChatEvent, HistoryLog


def _event(n: int) -> ChatEvent:
    payload = {"type": "send", "text": f"m{n}"}
    return ChatEvent(payload=payload, frame=f'{{"type": "send", "text": "m{n}"}}')


def test_append_and_snapshot_keep_order():
    log = HistoryLog()

    async def scenario():
        for n in range(3):
            await log.append(_event(n))
        return await log.snapshot()

    assert [e["text"] for e in asyncio.run(scenario())] == ["m0", "m1", "m2"]
    assert len(log) == 3


def test_clear_empties_log():
    log = HistoryLog()

    async def scenario():
        await log.append(_event(1))
        await log.clear()
        return await log.snapshot()

    assert asyncio.run(scenario()) == []
    assert len(log) == 0


def test_limit_drops_oldest():
    log = HistoryLog(maxlen=2)

    async def scenario():
        for n in range(5):
            await log.append(_event(n))
        return await log.snapshot()

    assert [e["text"] for e in asyncio.run(scenario())] == ["m3", "m4"]


def test_zero_limit_is_unbounded():
    log = HistoryLog(maxlen=0)
    assert log.maxlen is None

    async def scenario():
        for n in range(1000):
            await log.append(_event(n))

    asyncio.run(scenario())
    assert len(log) == 1000
