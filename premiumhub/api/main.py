"""PremiumHub API - Main FastAPI Application.

This module provides the FastAPI application serving the provider layer.
It includes:
- CORS middleware configuration
- API versioning (/api/v2)
- Health check and Prometheus metrics endpoints
- Provider, aggregate and image relay endpoints
- Provider registry bootstrap on startup

Usage:
    # Run with uvicorn
    uvicorn premiumhub.api.main:app --reload

    # Or run directly
    python -m premiumhub.api.main
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import structlog
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from premiumhub import __version__
from premiumhub.api.models import ErrorResponse, ValidationErrorDetail, ValidationErrorResponse
from premiumhub.api.routes import aggregate_router, health_router, providers_router, proxy_router
from premiumhub.api.routes.health import set_server_start_time
from premiumhub.config.settings import Settings, get_settings
from premiumhub.core.container import initialize_container, shutdown_container
from premiumhub.core.logging import configure_logging, is_configured
from premiumhub.monitoring.metrics import get_metrics_app

logger = structlog.get_logger(__name__)

# API metadata for OpenAPI documentation
API_TITLE = "PremiumHub API"
API_DESCRIPTION = """
## Multi-provider video metadata

PremiumHub scrapes several source sites and serves their listings,
categories, item details and search results in one normalized JSON shape.

### Response envelope

Provider endpoints return `{success, data, error, errorKind, provider, pagination}`.
Handled scraper failures are `success: false` with status 200, except
`errorKind: "NotFoundError"` which is returned as 404.

### Getting Started

1. **List providers**: `GET /api/v2/providers`
2. **Browse**: `GET /api/v2/providers/{id}/videos?page=1`
3. **Open an item**: `GET /api/v2/providers/{id}/video/{slug}`
4. **Search everywhere**: `GET /api/v2/search?q=...`
"""
API_PREFIX = "/api/v2"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Configure logging, bootstrap the provider registry
    - Shutdown: Close the HTTP client and cache connections
    """
    settings = get_settings()
    if not is_configured():
        configure_logging(settings.log_level, json_logs=settings.log_json)

    logger.info("application_starting", env=settings.app_env)
    set_server_start_time()

    container = await initialize_container()
    logger.info("application_started", providers=container.registry.list())

    yield

    logger.info("application_stopping")
    await shutdown_container()
    logger.info("application_stopped")


# =============================================================================
# Exception Handlers
# =============================================================================


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed query or path parameters are client errors (400)."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append(ValidationErrorDetail(
            field=field,
            message=error["msg"],
            value=error.get("input"),
        ))

    response = ValidationErrorResponse(
        errors=errors,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=response.model_dump(mode="json"),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    response = ErrorResponse(
        error=f"http_{exc.status_code}",
        message=str(exc.detail),
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=response.model_dump(mode="json"),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )

    response = ErrorResponse(
        error="internal_server_error",
        message="An unexpected error occurred",
        detail=str(exc) if get_settings().debug else None,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response.model_dump(mode="json"),
    )


# =============================================================================
# Application Factory
# =============================================================================


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application with middleware, handlers and routers."""
    settings = settings or get_settings()

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {
                "name": "Health",
                "description": "System health and status endpoints",
            },
            {
                "name": "Providers",
                "description": "Per-provider listings, categories, details and search",
            },
            {
                "name": "Aggregate",
                "description": "Categories and search across several providers at once",
            },
            {
                "name": "Assets",
                "description": "Image relay for thumbnails served without a worker",
            },
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "name": API_TITLE,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics",
            "api": API_PREFIX,
        }

    # Health endpoints at root level
    app.include_router(health_router)
    app.mount("/metrics", get_metrics_app())

    api_v2_router = APIRouter(prefix=API_PREFIX)
    api_v2_router.include_router(providers_router)
    api_v2_router.include_router(aggregate_router)
    api_v2_router.include_router(proxy_router)
    app.include_router(api_v2_router)

    return app


app = create_app()


# =============================================================================
# Development Server
# =============================================================================


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "premiumhub.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
