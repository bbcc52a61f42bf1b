"""
Name: Prometheus Metrics

Responsibilities:
  - Count HTTP requests and measure their latency
  - Measure pipeline stage latency (extract, format, render, answer)
  - Count degraded work (rescue chunks, fallback chunks, failed renders)
  - Render the registry for the /metrics endpoint

Collaborators:
  - prometheus_client: Counter, Histogram, CollectorRegistry
  - middleware.py: record_request_metrics()
  - application layer: record_stage_metrics(), record_* counters

Constraints:
  - Private registry (no default process collectors, test friendly)
  - Endpoint labels are normalized to avoid high cardinality

Notes:
  - Session IDs (UUIDs) and concept indices are replaced by placeholders
"""

import re
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# R: Request counter with endpoint and status labels
_requests_total = Counter(
    "conceptviz_requests_total",
    "Total HTTP requests",
    ["endpoint", "method", "status"],
    registry=_registry,
)

# R: Buckets: 10ms .. 60s (visualize runs many model calls)
_request_latency = Histogram(
    "conceptviz_request_latency_seconds",
    "HTTP request latency in seconds",
    ["endpoint", "method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=_registry,
)

_stage_latency = Histogram(
    "conceptviz_stage_latency_seconds",
    "Pipeline stage latency in seconds",
    ["stage"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=_registry,
)

_rescue_chunks_total = Counter(
    "conceptviz_rescue_chunks_total",
    "Synthetic rescue chunks created for concepts no paragraph chunk contained",
    registry=_registry,
)

_degraded_chunks_total = Counter(
    "conceptviz_degraded_chunks_total",
    "Chunks that fell back to plain paragraph formatting",
    registry=_registry,
)

_failed_renders_total = Counter(
    "conceptviz_failed_renders_total",
    "Concept visualizations that failed to render",
    ["renderer"],
    registry=_registry,
)


def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    """
    R: Record HTTP request metrics.

    Args:
        endpoint: Request path (e.g., "/v1/sessions")
        method: HTTP method (e.g., "POST")
        status_code: Response status code
        latency_seconds: Request duration in seconds
    """
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized,
        method=method,
        status=_status_bucket(status_code),
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_stage_metrics(
    extract_seconds: Optional[float] = None,
    format_seconds: Optional[float] = None,
    render_seconds: Optional[float] = None,
    answer_seconds: Optional[float] = None,
) -> None:
    """R: Record pipeline stage latencies (only the ones measured)."""
    for stage, value in (
        ("extract", extract_seconds),
        ("format", format_seconds),
        ("render", render_seconds),
        ("answer", answer_seconds),
    ):
        if value is not None:
            _stage_latency.labels(stage=stage).observe(value)


def record_rescue_chunks(count: int) -> None:
    if count > 0:
        _rescue_chunks_total.inc(count)


def record_degraded_chunk() -> None:
    _degraded_chunks_total.inc()


def record_failed_render(renderer: str) -> None:
    _failed_renders_total.labels(renderer=renderer).inc()


def _normalize_endpoint(path: str) -> str:
    """
    R: Normalize endpoint path to prevent high cardinality.

    Replaces UUIDs and numeric segments with placeholders.
    """
    path = re.sub(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+", "/{n}", path)
    return path


def _status_bucket(code: int) -> str:
    """R: Bucket status code (2xx, 4xx, 5xx)."""
    if 200 <= code < 300:
        return "2xx"
    elif 400 <= code < 500:
        return "4xx"
    elif 500 <= code < 600:
        return "5xx"
    return "other"


def get_metrics_response() -> tuple[bytes, str]:
    """
    R: Generate Prometheus metrics response.

    Returns:
        Tuple of (body_bytes, content_type)
    """
    return generate_latest(_registry), CONTENT_TYPE_LATEST
