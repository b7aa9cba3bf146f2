"""Health check endpoint for load balancers and container orchestration."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from spaceplus.api.dependencies import DbSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check(request: Request, db: DbSession) -> JSONResponse:
    """Report service health, including a database round trip.

    Returns 503 with ``status: unhealthy`` when the database is unreachable.
    """
    settings = request.app.state.settings
    base: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "environment": settings.environment.value if settings else None,
        "version": request.app.version,
    }

    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.exception("Health check failed: database unreachable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "error": str(e), **base},
        )

    elapsed_ms = (time.perf_counter() - started) * 1000
    scheduler = request.app.state.social_scheduler
    return JSONResponse(
        content={
            "status": "healthy",
            **base,
            "database": {"status": "connected", "response_time_ms": round(elapsed_ms, 2)},
            "scheduler": {"is_running": scheduler.is_running},
        }
    )
