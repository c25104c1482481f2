"""API route modules."""

from premiumhub.api.routes.aggregate import router as aggregate_router
from premiumhub.api.routes.health import router as health_router
from premiumhub.api.routes.providers import router as providers_router
from premiumhub.api.routes.proxy import router as proxy_router

__all__ = ["aggregate_router", "health_router", "providers_router", "proxy_router"]
