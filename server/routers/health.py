"""
Health check endpoints for deployment.

Provides:
- /health - Liveness check with the active room count
- /ready - Readiness check (is the room table wired up?)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Service references (set during app initialization)
_room_manager = None


def set_health_dependencies(room_manager=None):
    """Set dependencies for health checks."""
    global _room_manager
    _room_manager = room_manager


@router.get("/health")
async def health_check():
    """
    Basic liveness check.

    Always 200 while the process is alive. ``rooms`` is the number of rooms
    currently holding at least one connection.
    """
    rooms = _room_manager.room_count() if _room_manager is not None else 0
    return {
        "status": "ok",
        "rooms": rooms,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check(response: Response):
    """Returns 503 until the app has registered its room manager."""
    if _room_manager is None:
        logger.warning("Readiness check failed: room manager not configured")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready"}
    return {"status": "ok"}
