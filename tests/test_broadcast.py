"""Tests for channels and fan-out: ordering, framing, and isolation of slow or broken clients."""
import asyncio

from chatrelay.core.websocket.channel import Channel
from chatrelay.core.websocket.manager import ConnectionManager


def _open(manager, socket, send_timeout=1.0):
    channel = Channel(socket, send_timeout=send_timeout)
    channel.start()
    manager.add(channel)
    return channel


def test_broadcast_reaches_every_open_channel(make_socket):
    sockets = [make_socket() for _ in range(3)]

    async def scenario():
        manager = ConnectionManager()
        channels = [_open(manager, s) for s in sockets]
        count = manager.broadcast_to_all('{"type": "history", "data": []}')
        for channel in channels:
            await channel.flush()
            await channel.close()
        return count

    assert asyncio.run(scenario()) == 3
    for socket in sockets:
        assert socket.frames == ['{"type": "history", "data": []}']


def test_frames_keep_order_and_framing(make_socket):
    socket = make_socket()

    async def scenario():
        manager = ConnectionManager()
        channel = _open(manager, socket)
        manager.broadcast_to_all("first")
        manager.broadcast_to_all(b"\x00binary")
        channel.enqueue("third")
        await channel.flush()
        await channel.close()

    asyncio.run(scenario())
    assert socket.frames == ["first", b"\x00binary", "third"]


def test_failing_channel_does_not_affect_others(make_socket):
    good, bad = make_socket(), make_socket(fail=True)

    async def scenario():
        manager = ConnectionManager()
        good_channel = _open(manager, good)
        bad_channel = _open(manager, bad)
        manager.broadcast_to_all("one")
        await good_channel.flush()
        await bad_channel.flush()
        second = manager.broadcast_to_all("two")
        await good_channel.flush()
        result = (second, bad_channel.is_open, bad_channel in manager, len(manager))
        await good_channel.close()
        await bad_channel.close()
        return result

    second, bad_open, bad_listed, remaining = asyncio.run(scenario())
    assert good.frames == ["one", "two"]
    assert bad.frames == []
    assert second == 1
    assert bad_open is False
    assert bad_listed is False
    assert remaining == 1


def test_slow_channel_times_out_without_stalling_fanout(make_socket):
    fast, slow = make_socket(), make_socket(delay=5.0)

    async def scenario():
        manager = ConnectionManager()
        fast_channel = _open(manager, fast, send_timeout=0.05)
        slow_channel = _open(manager, slow, send_timeout=0.05)
        loop = asyncio.get_running_loop()
        started = loop.time()
        for n in range(3):
            manager.broadcast_to_all(f"m{n}")
        await fast_channel.flush()
        fast_done = loop.time() - started
        await slow_channel.flush()
        result = (fast_done, slow_channel.is_open)
        await fast_channel.close()
        await slow_channel.close()
        return result

    fast_done, slow_open = asyncio.run(scenario())
    assert fast.frames == ["m0", "m1", "m2"]
    assert fast_done < 1.0
    assert slow_open is False
    assert slow.frames == []


def test_closed_channel_is_skipped(make_socket):
    socket = make_socket()

    async def scenario():
        manager = ConnectionManager()
        channel = _open(manager, socket)
        await channel.close()
        return manager.broadcast_to_all("late"), len(manager)

    delivered, remaining = asyncio.run(scenario())
    assert delivered == 0
    assert remaining == 0
    assert socket.frames == []


def test_close_waits_for_send_in_flight_and_drops_the_rest(make_socket):
    socket = make_socket(delay=0.05)

    async def scenario():
        manager = ConnectionManager()
        channel = _open(manager, socket)
        manager.broadcast_to_all("in flight")
        manager.broadcast_to_all("pending")
        await asyncio.sleep(0.01)
        await asyncio.wait_for(channel.close(), timeout=2.0)
        return channel.is_open, channel.enqueue("after close")

    is_open, accepted = asyncio.run(scenario())
    assert socket.frames == ["in flight"]
    assert is_open is False
    assert accepted is False


def test_close_before_start_and_twice_is_harmless(make_socket):
    async def scenario():
        channel = Channel(make_socket())
        channel.enqueue("never sent")
        await channel.close()
        await channel.close()
        await channel.flush()
        return channel.is_open

    assert asyncio.run(scenario()) is False


def test_close_all_stops_every_channel(make_socket):
    sockets = [make_socket() for _ in range(3)]

    async def scenario():
        manager = ConnectionManager()
        channels = [_open(manager, s) for s in sockets]
        manager.broadcast_to_all("bye")
        for channel in channels:
            await channel.flush()
        await asyncio.wait_for(manager.close_all(), timeout=2.0)
        return [c.is_open for c in channels], len(manager), manager.broadcast_to_all("late")

    states, remaining, delivered = asyncio.run(scenario())
    assert states == [False, False, False]
    assert remaining == 0
    assert delivered == 0
    for socket in sockets:
        assert socket.frames == ["bye"]
