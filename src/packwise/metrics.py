"""Prometheus metrics definitions for Packwise."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "packwise_http_requests_total",
    "Total number of HTTP requests processed by the Packwise API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "packwise_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Packwise API",
    ["method", "path"],
)

SUGGESTION_DELIVERIES = Counter(
    "packwise_suggestion_deliveries_total",
    "Suggestion lists delivered to callers by source",
    ["source"],
)

EXTERNAL_CALLS = Counter(
    "packwise_external_calls_total",
    "Text-generation calls by operation and outcome",
    ["operation", "result"],
)

DRAFT_PARSES = Counter(
    "packwise_draft_parses_total",
    "Event drafts produced from free text by parsing stage",
    ["stage"],
)

COMPLETION_FLIPS = Counter(
    "packwise_event_completion_flips_total",
    "Events automatically completed or reopened by reconciliation",
    ["direction"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SUGGESTION_DELIVERIES",
    "EXTERNAL_CALLS",
    "DRAFT_PARSES",
    "COMPLETION_FLIPS",
]
