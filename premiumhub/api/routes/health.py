"""Health check endpoints for the PremiumHub API.

Reports the provider registry, the cache backend and the upstream circuit
breakers.
"""

from datetime import datetime, timezone
import time
from typing import Optional

import structlog
from fastapi import APIRouter, HTTPException
from redis.exceptions import RedisError

from premiumhub import __version__
from premiumhub.api.dependencies import get_cache, get_registry
from premiumhub.api.models import HealthCheckResponse, HealthStatus
from premiumhub.core.circuit_breaker import CircuitState, get_all_circuit_breakers

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])

# Track server start time for uptime calculation
_server_start_time: Optional[float] = None

_PROBE_KEY = "premiumhub:health:probe"


def set_server_start_time() -> None:
    """Set the server start time. Called on application startup."""
    global _server_start_time
    _server_start_time = time.time()


def get_uptime_seconds() -> Optional[float]:
    """Get server uptime in seconds."""
    if _server_start_time is None:
        return None
    return time.time() - _server_start_time


async def check_cache_health() -> HealthStatus:
    """Check the provider cache backend with a probe read."""
    cache = get_cache()
    if cache is None:
        return HealthStatus(status="degraded", message="Provider cache disabled")

    backend = type(cache.store).__name__
    start_time = time.time()
    try:
        await cache.store.get(_PROBE_KEY)
        latency = (time.time() - start_time) * 1000
        return HealthStatus(
            status="healthy",
            latency_ms=round(latency, 2),
            message=f"{backend} reachable",
        )
    except (RedisError, OSError) as e:
        latency = (time.time() - start_time) * 1000
        logger.error("cache_health_check_failed", backend=backend, error=str(e))
        return HealthStatus(
            status="unhealthy",
            latency_ms=round(latency, 2),
            message=f"{backend} probe failed: {str(e)[:100]}",
        )


def check_registry_health() -> tuple[HealthStatus, list[str]]:
    """Check that providers were bootstrapped."""
    try:
        registry = get_registry()
    except RuntimeError as e:
        return HealthStatus(status="unhealthy", message=str(e)), []

    provider_ids = registry.list()
    if not provider_ids:
        return HealthStatus(status="unhealthy", message="No providers registered"), []
    return (
        HealthStatus(status="healthy", message=f"{len(provider_ids)} providers registered"),
        provider_ids,
    )


def check_upstream_health() -> HealthStatus:
    """Report upstream hosts whose circuit is currently open."""
    open_hosts = sorted(
        name.split(":", 1)[-1]
        for name, breaker in get_all_circuit_breakers().items()
        if breaker.state == CircuitState.OPEN
    )
    if open_hosts:
        return HealthStatus(
            status="degraded",
            message=f"Circuit open for: {', '.join(open_hosts)}",
        )
    return HealthStatus(status="healthy", message="All upstream circuits closed")


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health Check",
    description="Check the health status of the API and its dependencies.",
)
async def health_check() -> HealthCheckResponse:
    """
    Perform a health check of the scraping layer.

    Returns the status of:
    - Provider registry (bootstrapped providers)
    - Provider cache (in-memory or Redis)
    - Upstream hosts (circuit breaker states)
    """
    registry_status, provider_ids = check_registry_health()
    services = {
        "registry": registry_status,
        "cache": await check_cache_health(),
        "upstreams": check_upstream_health(),
    }

    statuses = [s.status for s in services.values()]
    if all(s == "healthy" for s in statuses):
        overall_status = "healthy"
    elif any(s == "unhealthy" for s in statuses):
        overall_status = "unhealthy"
    else:
        overall_status = "degraded"

    return HealthCheckResponse(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        services=services,
        providers=provider_ids,
        uptime_seconds=get_uptime_seconds(),
    )


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Simple liveness check for container orchestration.",
)
async def liveness() -> dict:
    """Returns 200 if the service is alive."""
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Check if the providers are bootstrapped and ready to serve.",
)
async def readiness() -> dict:
    registry_status, provider_ids = check_registry_health()
    if registry_status.status == "unhealthy":
        raise HTTPException(
            status_code=503,
            detail=f"Service not ready: {registry_status.message}",
        )
    return {
        "status": "ready",
        "providers": provider_ids,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
