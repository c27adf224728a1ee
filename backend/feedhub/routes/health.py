"""
FeedHub Backend — Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Probes the database (SELECT 1), checks that media storage is writable
       and reports whether the expired-session reaper is running.
Who:   Docker health checks, load balancers, monitoring.

Status levels:
    - healthy:   everything operational (HTTP 200)
    - degraded:  storage unwritable or reaper stopped (HTTP 200, flag for monitoring)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from feedhub import __version__
from feedhub.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request):
    state = request.app.state
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Database ──────────────────────────────────────────────────────────
    try:
        await state.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Media storage ─────────────────────────────────────────────────────
    if not await state.object_store.health_check():
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: media storage not writable")

    # ── Reaper ────────────────────────────────────────────────────────────
    if not state.settings.reaper_enabled:
        reaper_status = "disabled"
    elif state.reaper.running:
        reaper_status = "running"
    else:
        reaper_status = "stopped"
        overall = "degraded" if overall != "unhealthy" else overall

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        reaper=reaper_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True))
    return body
