"""Admin endpoints: status, cache clearing, forced refresh and catalogue maintenance."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.types import utc_now
from ..utils.logging import get_logger, log_event
from .deps import ServicesDep, require_admin

logger = get_logger("api.admin")

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/status")
async def admin_status(services: ServicesDep) -> dict[str, Any]:
    stats = services.cache.stats()
    return {
        "success": True,
        "cache": {
            "articles": stats["articles"],
            "status": stats["status"],
            "lastRefresh": stats["lastRefresh"],
            "lastScheduledRun": stats["lastScheduledRun"],
            "refreshLock": services.lock.is_held(),
            "searchEntries": stats["searchEntries"],
        },
        "refresh": services.scheduler.status(),
        "feeds": services.cache.get_feed_status(),
        "timestamp": utc_now().isoformat(),
    }


@router.post("/clear-cache")
async def clear_cache(services: ServicesDep) -> dict[str, Any]:
    cleared = services.cache.clear_all()
    return {"success": True, "message": "Cache cleared", "clearedKeys": cleared}


@router.post("/force-refresh")
async def force_refresh(services: ServicesDep):
    """Run the pipeline now, ignoring the schedule and any held lock."""
    try:
        result = await services.scheduler.force_refresh()
    except Exception as exc:  # noqa: BLE001
        log_event(logger, "Force refresh failed", level=logging.ERROR, event="force_refresh_failed", error=str(exc))
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})
    return {
        "success": True,
        "articlesLoaded": result.articles_count,
        "durationSeconds": round(result.duration_seconds, 3),
        "sourcesFailed": dict(result.report.failed) if result.report else {},
        "timestamp": utc_now().isoformat(),
    }


@router.post("/config-refresh")
async def config_refresh(services: ServicesDep) -> dict[str, Any]:
    return services.catalog.force_refresh_from_fallback()


@router.post("/init-config")
async def init_config(services: ServicesDep) -> dict[str, Any]:
    return services.catalog.initialize_from_fallback()
