"""Provider endpoints for the PremiumHub API.

Each route dispatches to one registered scraper and returns its
``ProviderResponse`` envelope as JSON. Handled scraper failures keep status
200 except ``NotFoundError``, which maps to 404; malformed input and unknown
provider ids are rejected with 400 before any scraping happens.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import JSONResponse

from premiumhub.api.dependencies import get_registry
from premiumhub.api.models import ProviderListResponse
from premiumhub.core.exceptions import NotFoundError, NotRegisteredError, PermanentError
from premiumhub.providers.base import BaseProvider
from premiumhub.providers.registry import ProviderRegistry
from premiumhub.providers.types import ProviderResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])

_ENVELOPE_RESPONSES = {
    400: {"description": "Malformed input or unknown provider"},
    404: {"description": "Item or category not found"},
}


def envelope_response(response: ProviderResponse) -> JSONResponse:
    """Serialize an envelope, mapping NotFoundError to HTTP 404."""
    status_code = status.HTTP_200_OK
    if not response.success and response.error_kind == NotFoundError.__name__:
        status_code = status.HTTP_404_NOT_FOUND
    return JSONResponse(status_code=status_code, content=response.to_json())


def bad_request(message: str, kind: str, provider: Optional[str] = None) -> JSONResponse:
    """400 response shaped like a failed envelope."""
    response = ProviderResponse(success=False, error=message, error_kind=kind, provider=provider)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=response.to_json())


def invalid_page(page: int, provider: Optional[str] = None) -> Optional[JSONResponse]:
    if page < 1:
        return bad_request(f"Page must be >= 1, got {page}", PermanentError.__name__, provider)
    return None


def resolve_provider(registry: ProviderRegistry, provider_id: str) -> BaseProvider | JSONResponse:
    """Registry lookup; unknown ids become a 400 response."""
    try:
        return registry.get_or_throw(provider_id)
    except NotRegisteredError as e:
        logger.warning("unknown_provider_requested", provider=provider_id, available=e.available)
        return bad_request(e.message, e.kind, provider_id)


@router.get(
    "",
    response_model=ProviderListResponse,
    summary="List providers",
    description="Metadata and capability flags of every registered provider.",
)
async def list_providers(
    registry: ProviderRegistry = Depends(get_registry),
) -> ProviderListResponse:
    metadata = registry.metadata()
    return ProviderListResponse(success=True, data=metadata, total=len(metadata))


@router.get(
    "/{provider_id}/videos",
    summary="List videos",
    description="Home/listing page of one provider.",
    responses=_ENVELOPE_RESPONSES,
)
async def fetch_videos(
    provider_id: str = Path(..., description="Provider id, e.g. fsiblog5"),
    page: int = Query(1, description="1-based page number"),
    registry: ProviderRegistry = Depends(get_registry),
) -> JSONResponse:
    provider = resolve_provider(registry, provider_id)
    if isinstance(provider, JSONResponse):
        return provider
    rejected = invalid_page(page, provider_id)
    if rejected is not None:
        return rejected

    return envelope_response(await provider.fetch_videos(page))


@router.get(
    "/{provider_id}/categories",
    summary="List categories",
    description="Static or scraped category list of one provider.",
    responses=_ENVELOPE_RESPONSES,
)
async def get_categories(
    provider_id: str = Path(..., description="Provider id"),
    registry: ProviderRegistry = Depends(get_registry),
) -> JSONResponse:
    provider = resolve_provider(registry, provider_id)
    if isinstance(provider, JSONResponse):
        return provider

    return envelope_response(await provider.get_categories())


@router.get(
    "/{provider_id}/category/{category_slug}",
    summary="List category videos",
    description=(
        "One page of a category. Providers that do not paginate categories "
        "always return page 1 with hasNextPage=false."
    ),
    responses=_ENVELOPE_RESPONSES,
)
async def fetch_category_videos(
    provider_id: str = Path(..., description="Provider id"),
    category_slug: str = Path(..., description="Category slug"),
    page: int = Query(1, description="1-based page number"),
    registry: ProviderRegistry = Depends(get_registry),
) -> JSONResponse:
    provider = resolve_provider(registry, provider_id)
    if isinstance(provider, JSONResponse):
        return provider
    rejected = invalid_page(page, provider_id)
    if rejected is not None:
        return rejected

    return envelope_response(await provider.fetch_category_videos(category_slug, page))


@router.get(
    "/{provider_id}/video/{slug}",
    summary="Video details",
    description=(
        "Full record of one item. For index-addressed providers pass the "
        "category the slug came from as categorySlug."
    ),
    responses=_ENVELOPE_RESPONSES,
)
async def get_video_details(
    provider_id: str = Path(..., description="Provider id"),
    slug: str = Path(..., description="Item slug"),
    category_slug: Optional[str] = Query(
        None,
        alias="categorySlug",
        description="Category listing the slug was taken from",
    ),
    registry: ProviderRegistry = Depends(get_registry),
) -> JSONResponse:
    provider = resolve_provider(registry, provider_id)
    if isinstance(provider, JSONResponse):
        return provider

    return envelope_response(await provider.get_video_details(slug, category_slug or None))


@router.get(
    "/{provider_id}/search",
    summary="Search videos",
    description=(
        "Native search where the provider has one, otherwise a title filter "
        "over the listing page."
    ),
    responses=_ENVELOPE_RESPONSES,
)
async def search_videos(
    provider_id: str = Path(..., description="Provider id"),
    q: Optional[str] = Query(None, description="Search text"),
    page: int = Query(1, description="1-based page number"),
    registry: ProviderRegistry = Depends(get_registry),
) -> JSONResponse:
    provider = resolve_provider(registry, provider_id)
    if isinstance(provider, JSONResponse):
        return provider
    if not q or not q.strip():
        return bad_request("Query parameter 'q' is required", PermanentError.__name__, provider_id)
    rejected = invalid_page(page, provider_id)
    if rejected is not None:
        return rejected

    return envelope_response(await provider.search_videos(q, page))
