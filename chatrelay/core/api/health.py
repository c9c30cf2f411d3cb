"""
Health check endpoint.

Returns service status and current relay counters.
"""
from fastapi import APIRouter
from datetime import datetime, timezone

from chatrelay.core.hub import get_hub
from chatrelay.core.presence import reaper

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health():
    """
    Health check endpoint.

    Returns:
        Service status, reaper state and participant/connection/history counts
    """
    return {
        "status": "ok",
        "service": "chatrelay",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "reaper": "running" if reaper.is_running() else "stopped",
        **get_hub().stats(),
    }
