"""Image relay endpoint.

Default asset relay for providers without a dedicated worker: thumbnails
are emitted as ``{image_proxy_url}/?url=<encoded>`` and served from here
with the upstream content type. Transient upstream failures are retried.
"""

from urllib.parse import urlparse

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from premiumhub.api.models import ErrorResponse
from premiumhub.api.dependencies import get_fetcher
from premiumhub.core.exceptions import FetchError
from premiumhub.providers.cache import CacheDurations
from premiumhub.providers.extract import is_absolute
from premiumhub.providers.fetcher import HtmlFetcher

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Assets"])

MAX_ATTEMPTS = 3


def is_transient(error: BaseException) -> bool:
    """Network failures and 5xx answers are worth another attempt."""
    if not isinstance(error, FetchError):
        return False
    return error.status_code is None or error.status_code >= 500


@retry(
    retry=retry_if_exception(is_transient),
    stop=stop_after_attempt(MAX_ATTEMPTS),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    reraise=True,
)
async def fetch_with_retry(fetcher: HtmlFetcher, url: str, referer: str) -> tuple[bytes, str]:
    return await fetcher.fetch_asset(url, referer=referer)


# Relayed asset URLs are written as ``{relay}/?url=``
@router.get("/image-proxy/", include_in_schema=False, response_class=Response)
@router.get(
    "/image-proxy",
    summary="Image relay",
    description="Fetch an upstream image and return it with its content type.",
    response_class=Response,
    responses={
        200: {"content": {"image/*": {}}, "description": "Upstream image bytes"},
        400: {"model": ErrorResponse, "description": "Missing or non-http URL"},
        502: {"model": ErrorResponse, "description": "Upstream image unavailable"},
    },
)
async def image_proxy(
    url: str = Query(..., description="Absolute http(s) URL of the image"),
    fetcher: HtmlFetcher = Depends(get_fetcher),
) -> Response:
    if not is_absolute(url):
        raise HTTPException(status_code=400, detail="Parameter 'url' must be an absolute http(s) URL")

    parsed = urlparse(url)
    referer = f"{parsed.scheme}://{parsed.netloc}/"

    try:
        content, content_type = await fetch_with_retry(fetcher, url, referer)
    except FetchError as e:
        logger.warning("image_proxy_failed", url=url, status_code=e.status_code, error=e.reason)
        status_code = 404 if e.status_code == 404 else 502
        raise HTTPException(status_code=status_code, detail=f"Upstream image unavailable: {e.reason}")

    if not content_type.lower().startswith("image/"):
        logger.warning("image_proxy_not_an_image", url=url, content_type=content_type)
        raise HTTPException(status_code=502, detail=f"Upstream returned {content_type}, not an image")

    return Response(
        content=content,
        media_type=content_type,
        headers={"Cache-Control": f"public, max-age={CacheDurations.THUMBNAILS // 1000}"},
    )
