"""Prometheus metrics middleware for FastAPI."""

from __future__ import annotations

import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        endpoint = normalize_path(request.url.path)

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                time.time() - start_time
            )
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()


def normalize_path(path: str) -> str:
    """Replace ids in a path with placeholders to bound label cardinality.

    Examples:
        /api/pricing-profiles/3f2b...e1/items -> /api/pricing-profiles/{id}/items
        /api/products/42 -> /api/products/{id}

    """
    parts = path.split("?")[0].split("/")
    return "/".join("{id}" if part.isdigit() or _UUID_RE.match(part) else part for part in parts)
