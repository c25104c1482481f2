"""
Prometheus metrics for PremiumHub observability.

Tracks scrape operations per provider, cache effectiveness, items dropped
during extraction, upstream fetches and circuit breaker state.

Usage:
    from premiumhub.monitoring.metrics import track_scrape_operation

    with track_scrape_operation("fsiblog5", "fetch_videos"):
        html = await fetcher.fetch_html(url)
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route


# =============================================================================
# Metric Definitions
# =============================================================================

SCRAPE_OPERATIONS = Counter(
    "premiumhub_scrape_operations_total",
    "Total provider scrape operations",
    ["provider", "operation", "status"],
)

SCRAPE_LATENCY = Histogram(
    "premiumhub_scrape_latency_seconds",
    "Latency of provider scrape operations",
    ["provider", "operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

ITEMS_DROPPED = Counter(
    "premiumhub_items_dropped_total",
    "Listing blocks skipped because a required field was missing",
    ["provider"],
)

CACHE_LOOKUPS = Counter(
    "premiumhub_cache_lookups_total",
    "Provider cache lookups",
    ["provider", "resource", "result"],
)

UPSTREAM_FETCHES = Counter(
    "premiumhub_upstream_fetches_total",
    "Upstream HTTP fetches by host and outcome",
    ["host", "outcome"],
)

CIRCUIT_BREAKER_STATE = Gauge(
    "premiumhub_circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
    ["service"],
)

CIRCUIT_BREAKER_FAILURES = Counter(
    "premiumhub_circuit_breaker_failures_total",
    "Total failures recorded by circuit breakers",
    ["service"],
)


# =============================================================================
# Tracking Helpers
# =============================================================================


@contextmanager
def track_scrape_operation(
    provider: str,
    operation: str,
) -> Generator[dict, None, None]:
    """
    Track duration and outcome of one scraper operation.

    The caller flips ``ctx["status"]`` to "error" for failures it handles
    itself; exceptions escaping the block are recorded as errors too.

    Usage:
        with track_scrape_operation("kamababa", "search_videos") as ctx:
            response = await scrape()
            ctx["status"] = "success" if response.success else "error"
    """
    start_time = time.perf_counter()
    context = {"status": "success"}
    try:
        yield context
    except Exception:
        context["status"] = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        SCRAPE_OPERATIONS.labels(
            provider=provider,
            operation=operation,
            status=context["status"],
        ).inc()
        SCRAPE_LATENCY.labels(provider=provider, operation=operation).observe(duration)


def record_cache_lookup(provider: str, resource: str, hit: bool) -> None:
    """Count a cache hit or miss."""
    CACHE_LOOKUPS.labels(
        provider=provider,
        resource=resource,
        result="hit" if hit else "miss",
    ).inc()


def record_items_dropped(provider: str, count: int) -> None:
    """Count listing blocks dropped during extraction."""
    if count > 0:
        ITEMS_DROPPED.labels(provider=provider).inc(count)


def record_upstream_fetch(host: str, outcome: str) -> None:
    """Count an upstream fetch ("ok", "http_error", "network_error")."""
    UPSTREAM_FETCHES.labels(host=host, outcome=outcome).inc()


def update_circuit_breaker_state(service: str, state: str) -> None:
    """
    Update circuit breaker state gauge.

    Args:
        service: Service name
        state: Circuit state ("closed", "half_open", "open")
    """
    state_map = {"closed": 0, "half_open": 1, "open": 2}
    CIRCUIT_BREAKER_STATE.labels(service=service).set(state_map.get(state, 0))


def record_circuit_breaker_failure(service: str) -> None:
    """Record a circuit breaker failure."""
    CIRCUIT_BREAKER_FAILURES.labels(service=service).inc()


# =============================================================================
# Metrics Endpoint
# =============================================================================


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint handler."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


def get_metrics_app() -> Starlette:
    """
    Get a Starlette app for serving metrics.

    Mounted at /metrics by the API application.
    """
    return Starlette(routes=[Route("/", metrics_endpoint)])
