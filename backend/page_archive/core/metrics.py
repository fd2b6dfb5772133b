"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

PAGE_OPERATIONS = Counter(
    "pga_page_operations_total",
    "Page-level engine operations",
    labelnames=("operation", "outcome"),
    registry=REGISTRY,
)

SEARCH_LATENCY = Histogram(
    "pga_search_latency_seconds",
    "Latency of full-text searches",
    registry=REGISTRY,
)

FRAGMENTS_WRITTEN = Counter(
    "pga_fragments_written_total",
    "Fragments inserted into the fragment table",
    registry=REGISTRY,
)

ENGINE_READY = Gauge(
    "pga_engine_ready",
    "1 when the engine finished initialization without error",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "PAGE_OPERATIONS",
    "SEARCH_LATENCY",
    "FRAGMENTS_WRITTEN",
    "ENGINE_READY",
    "metrics_response",
]
