"""
Health Router

Unauthenticated liveness and version endpoints.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

from poscore.common.responses import envelope

router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()


@router.get("/health")
async def get_health() -> Dict[str, Any]:
    """Report that the process is up and for how long, in seconds."""
    return envelope({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
    })


@router.get("/version")
async def get_version(request: Request) -> Dict[str, Any]:
    settings = request.app.state.settings
    return envelope({
        "version": settings.API_VERSION,
        "name": settings.PROJECT_NAME,
        "environment": settings.ENVIRONMENT,
    })


__all__ = ["router"]
