"""FastAPI middleware."""

from __future__ import annotations

from app.web.middleware.prometheus import PrometheusMiddleware
from app.web.middleware.request_id import RequestIdMiddleware

__all__ = ["PrometheusMiddleware", "RequestIdMiddleware"]
