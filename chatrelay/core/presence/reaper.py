"""
Liveness reaper: one background task per process that evicts participants who stopped pinging.
"""
import asyncio
import logging
from typing import List, Optional

from chatrelay.core.hub import ChatHub

logger = logging.getLogger(__name__)


async def run_reaper_tick(hub: ChatHub, threshold: float) -> List[str]:
    """
    Evict everyone silent for more than threshold seconds. One presence broadcast per
    sweep, only when something was evicted. Returns the evicted names.
    """
    evicted, snapshot = await hub.presence.evict_stale(threshold)
    if evicted:
        hub.broadcast_presence(snapshot)
        for name in evicted:
            logger.info("User with name %r evicted after %ss without ping", name, threshold)
    return evicted


async def run_reaper_loop(hub: ChatHub, interval: float, threshold: float) -> None:
    """Sweep every interval seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            await run_reaper_tick(hub, threshold)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Reaper sweep failed: %s", e)


_reaper_task: Optional[asyncio.Task] = None


async def start_reaper(hub: ChatHub, interval: float, threshold: float) -> None:
    """Start the reaper as a background task. No-op if already running."""
    global _reaper_task
    if _reaper_task is not None:
        return
    _reaper_task = asyncio.create_task(run_reaper_loop(hub, interval, threshold))
    logger.info("Reaper started (sweep every %ss, threshold %ss)", interval, threshold)


async def stop_reaper() -> None:
    """Stop the reaper."""
    global _reaper_task
    if _reaper_task is None:
        return
    _reaper_task.cancel()
    try:
        await _reaper_task
    except asyncio.CancelledError:
        pass
    _reaper_task = None
    logger.info("Reaper stopped")


def is_running() -> bool:
    return _reaper_task is not None and not _reaper_task.done()
