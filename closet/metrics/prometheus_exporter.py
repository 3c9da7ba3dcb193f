"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter


image_analysis_requests_total = Counter(
    "image_analysis_requests_total",
    "Total number of requests sent to image-analysis providers.",
    ["provider", "operation", "outcome"],
)

wear_logs_total = Counter(
    "wear_logs_total",
    "Total number of wear events logged.",
    ["kind"],
)
