"""Prometheus metric definitions for the gateway."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

approval_transitions_total = Counter(
    "approval_transitions_total",
    "Approval transitions by entity, action and outcome.",
    labelnames=["entity", "action", "outcome"],
)

envelope_request_seconds = Histogram(
    "envelope_request_seconds",
    "Latency of envelope calls to the stored-procedure API.",
    labelnames=["endpoint"],
)

notifications_total = Counter(
    "notifications_total",
    "Workflow notification deliveries by outcome.",
    labelnames=["outcome"],
)

__all__ = [
    "approval_transitions_total",
    "envelope_request_seconds",
    "notifications_total",
]
