"""Web utilities."""

from __future__ import annotations

from app.web.utils.serializers import error_response, money

__all__ = ["error_response", "money"]
