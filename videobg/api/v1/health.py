"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service status and how new jobs will be tracked."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    return {
        "status": "healthy" if orchestrator is not None else "starting",
        "notification_mode": orchestrator.notification_mode.value if orchestrator else None,
        "tracked_jobs": len(orchestrator.store) if orchestrator else 0,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
