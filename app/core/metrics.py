"""Prometheus metrics for monitoring."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# HTTP Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
)

# Pricing engine metrics
pricing_previews_total = Counter(
    "pricing_previews_total",
    "Price previews computed",
    ["kind"],  # kind: adhoc, stored, validation
)

pricing_preview_products = Histogram(
    "pricing_preview_products",
    "Number of products resolved per preview",
    buckets=[1, 5, 10, 50, 100, 500, 1000, 5000],
)

pricing_chain_truncated_total = Counter(
    "pricing_chain_truncated_total",
    "Chain walks stopped before reaching the root",
    ["reason"],  # reason: cycle, depth, missing
)

pricing_profile_publish_total = Counter(
    "pricing_profile_publish_total",
    "Publish attempts by outcome",
    ["outcome"],  # outcome: published, not_found, not_draft, negative, conflict
)

pricing_profile_create_total = Counter(
    "pricing_profile_create_total",
    "Draft creation attempts by outcome",
    ["outcome"],  # outcome: created, invalid, negative
)

pricing_completed_profile_edits_total = Counter(
    "pricing_completed_profile_edits_total",
    "Pricing changes applied to already published profiles without re-validation",
    ["target"],  # target: profile, item
)

# App info
app_info = Gauge(
    "app_info",
    "Application info",
    ["version", "environment"],
)

app_uptime_seconds = Gauge(
    "app_uptime_seconds",
    "Application uptime in seconds",
)
