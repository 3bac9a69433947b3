"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own a
behavior import the metric and update it at the point of action.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 15.0, 60.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Model API metrics (populated by services.llm_client)
# ---------------------------------------------------------------------------

LLM_REQUESTS = Counter(
    "llm_requests_total",
    "Chat-completion calls by purpose and outcome",
    ["purpose", "outcome"],  # purpose: chat|assessment; outcome: ok|http_error|transport_error|empty|not_configured
)

LLM_DURATION = Histogram(
    "llm_request_duration_seconds",
    "Chat-completion call latency in seconds",
    ["purpose"],
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 60.0],
)

# ---------------------------------------------------------------------------
# Domain metrics
# ---------------------------------------------------------------------------

ASSESSMENTS_CREATED = Counter(
    "assessments_created_total",
    "Assessments persisted for completed activity runs",
)

ASSESSMENTS_SKIPPED = Counter(
    "assessments_skipped_total",
    "Assessment requests short-circuited for exempt activities",
)
