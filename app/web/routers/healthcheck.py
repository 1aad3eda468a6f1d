"""Healthcheck endpoint with dependency checks."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.web.deps import DBSession

logger = logging.getLogger(__name__)

router = APIRouter()

APP_START_TIME = time.time()


@router.get("/healthz")
def healthz(db: DBSession):
    """Health check including database connectivity.

    Returns:
        200 OK if the database answers
        503 Service Unavailable otherwise
    """
    checks = {}
    healthy = True

    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency = (time.time() - start) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(latency, 2)}
    except SQLAlchemyError as e:
        logger.warning("healthcheck_database_failed", extra={"error": str(e)})
        checks["database"] = {"status": "error", "error": str(e)}
        healthy = False

    uptime_seconds = time.time() - APP_START_TIME
    checks["uptime"] = {
        "status": "ok",
        "uptime_seconds": round(uptime_seconds, 2),
        "uptime_human": _format_uptime(uptime_seconds),
    }
    checks["timestamp"] = datetime.now(timezone.utc).isoformat()

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "healthy": healthy,
        "checks": checks,
    }
    if not healthy:
        raise HTTPException(status_code=503, detail=response)
    return response


def _format_uptime(seconds: float) -> str:
    """Format uptime like "1d 2h 30m"."""
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0 or not parts:
        parts.append(f"{minutes}m")

    return " ".join(parts)
