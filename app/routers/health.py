"""Health check and service index."""

import logging
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from app.db.supabase import get_supabase
from app.scheduler.jobs import is_scheduler_running
from app.scheduler.lock import is_sync_running

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> Any:
    """200 when the database answers, 503 otherwise."""
    db_status = "disconnected"

    try:
        client = get_supabase()
        result = client.table("profiles").select("id").limit(1).execute()
        if result is not None:
            db_status = "connected"
    except Exception:
        logger.warning("health_check_db_failed", exc_info=True)

    payload: dict[str, Any] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "scheduler": "running" if is_scheduler_running() else "stopped",
        "channel_sync_running": is_sync_running(),
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload


@router.get("/")
async def index(request: Request) -> dict[str, Any]:
    return {
        "name": request.app.title,
        "version": request.app.version,
        "health": "/health",
        "docs": "/api/public/docs",
    }
