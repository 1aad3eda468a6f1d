"""FastAPI application for the pricing profiles service."""

from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.core.config import get_settings
from app.core.logging import get_logger, get_request_id
from app.core.metrics import app_info, app_uptime_seconds
from app.web.middleware import PrometheusMiddleware, RequestIdMiddleware
from app.web.routers import catalog, healthcheck, pricing_profiles, products

log = get_logger("pricing_profiles.web")

# Application start time for uptime calculation
APP_START_TIME = time.time()

settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Pricing profiles: chained wholesale price adjustments over a product catalog",
)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Added last so it wraps everything and the id is bound before other middleware logs
app.add_middleware(RequestIdMiddleware)

app_info.labels(version=settings.app_version, environment=settings.app_env).set(1)


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        key = ".".join(loc) or "_"
        errors.setdefault(key, []).append(err.get("msg", "Invalid value"))
    return errors


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed input with 400 and per-field messages."""
    log.info(
        "request_validation_failed",
        extra={"path": str(request.url.path), "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "message": "Invalid body", "fieldErrors": _field_errors(exc)},
    )


# Global exception handler for unhandled errors (500)
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions with proper logging and response."""
    request_id = get_request_id() or str(uuid.uuid4())

    log.error(
        "unhandled_exception",
        extra={
            "request_id": request_id,
            "path": str(request.url.path),
            "method": request.method,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "ok": False,
            "error": "internal_server_error",
            "request_id": request_id,
            "hint": "Contact support with this request_id",
        },
    )


# Include routers
app.include_router(healthcheck.router, tags=["Monitoring"])
app.include_router(pricing_profiles.router, tags=["Pricing Profiles"])
app.include_router(products.router, tags=["Products"])
app.include_router(catalog.router, tags=["Catalog"])


@app.get("/health")
def health():
    """Basic health check for monitoring."""
    return {"status": "healthy"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint."""
    app_uptime_seconds.set(time.time() - APP_START_TIME)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
