"""Cross-provider endpoints for the PremiumHub API.

Both routes fan out to several providers at once. A failing provider shows
up under ``errors`` and never fails the whole request.
"""

import asyncio
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from premiumhub.api.dependencies import get_registry
from premiumhub.api.models import (
    AggregateCategoriesResponse,
    AggregateSearchResponse,
    ErrorResponse,
)
from premiumhub.config.settings import Settings, get_settings
from premiumhub.providers.aggregate import aggregate_categories, aggregate_search
from premiumhub.providers.registry import ProviderRegistry

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Aggregate"])


def parse_provider_ids(providers: Optional[str]) -> Optional[list[str]]:
    """Comma-separated ``providers`` query value; None or blank selects all."""
    if not providers:
        return None
    ids = [provider_id.strip() for provider_id in providers.split(",") if provider_id.strip()]
    return ids or None


@router.get(
    "/categories",
    response_model=AggregateCategoriesResponse,
    summary="Aggregated categories",
    description="Categories of every selected provider, keyed by provider id.",
    response_model_exclude_none=True,
    responses={504: {"model": ErrorResponse, "description": "Providers did not answer in time"}},
)
async def get_all_categories(
    providers: Optional[str] = Query(None, description="Comma-separated provider ids"),
    registry: ProviderRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> AggregateCategoriesResponse:
    try:
        result = await asyncio.wait_for(
            aggregate_categories(registry, parse_provider_ids(providers)),
            timeout=settings.aggregate_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.error("aggregate_timeout", operation="categories", providers=providers)
        raise HTTPException(status_code=504, detail="Providers did not answer in time")

    return AggregateCategoriesResponse(
        success=result.success,
        data=result.data,
        errors=result.errors,
        providers=result.providers,
        total=result.total,
    )


@router.get(
    "/search",
    response_model=AggregateSearchResponse,
    summary="Aggregated search",
    description=(
        "Search every selected provider with native search. Set "
        "includeFallback=true to also title-filter providers without one."
    ),
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing query or invalid page"},
        504: {"model": ErrorResponse, "description": "Providers did not answer in time"},
    },
)
async def search_all(
    q: Optional[str] = Query(None, description="Search text"),
    page: int = Query(1, description="1-based page number"),
    providers: Optional[str] = Query(None, description="Comma-separated provider ids"),
    include_fallback: bool = Query(
        False,
        alias="includeFallback",
        description="Also search providers without native search by title filter",
    ),
    registry: ProviderRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> AggregateSearchResponse:
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
    if page < 1:
        raise HTTPException(status_code=400, detail=f"Page must be >= 1, got {page}")

    try:
        result = await asyncio.wait_for(
            aggregate_search(
                registry,
                q.strip(),
                page,
                parse_provider_ids(providers),
                include_fallback_search=include_fallback,
            ),
            timeout=settings.aggregate_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.error("aggregate_timeout", operation="search", query=q, providers=providers)
        raise HTTPException(status_code=504, detail="Providers did not answer in time")

    return AggregateSearchResponse(
        success=result.success,
        data=result.data,
        errors=result.errors,
        providers=result.providers,
        total=result.total,
        query=q.strip(),
        page=page,
    )
