"""Base provider interface shared by every scraper.

Concrete providers implement a handful of ``_scrape_*`` hooks that either
return normalized data or raise a PremiumHubError. The public operations
defined here wrap those hooks with the cache, pagination bookkeeping,
metrics and the failure boundary: every public operation returns a
``ProviderResponse`` and never raises.

Index-based detail lookup:
    Providers without a stable per-item id (``ListingIndexLookup``) mint
    slugs ending in the item's listing position. ``get_video_details``
    re-fetches the same listing (home page, or the category passed as
    ``category_slug``) and picks that position. If the upstream listing was
    reordered in between, a different item is returned, or NotFoundError
    when the index falls outside the fresh listing. This is an accepted
    limitation of sources that expose no ids.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar
from urllib.parse import urlparse

import structlog
from pydantic import ValidationError

from premiumhub.core.exceptions import FetchError, NotFoundError, ParseError, PermanentError, PremiumHubError
from premiumhub.monitoring.metrics import record_items_dropped, track_scrape_operation
from premiumhub.providers.cache import CacheDurations, ProviderCache
from premiumhub.providers.config import ProviderConfig
from premiumhub.providers.extract import (
    clean_url_tail,
    is_absolute,
    normalize_url,
    proxy_asset,
    slug_from_url,
    strip_size_suffix,
)
from premiumhub.providers.fetcher import HtmlFetcher
from premiumhub.providers.slug import parse_slug_index
from premiumhub.providers.types import (
    CategoryListResponse,
    Pagination,
    ProviderMetadata,
    ProviderResponse,
    UnifiedCategoryData,
    UnifiedVideoData,
    VideoListResponse,
    VideoResponse,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_PAGE_SUFFIX = "/page/"


@dataclass
class ListingPage:
    """One scraped listing page before pagination is decided.

    Attributes:
        items: Normalized items, in listing order.
        has_next: Exact next-page flag when the source exposes one.
        total_pages: Exact page count when the source exposes one.
    """

    items: list[UnifiedVideoData]
    has_next: Optional[bool] = None
    total_pages: Optional[int] = None


class BaseProvider(ABC):
    """Abstract base class for all provider scrapers."""

    def __init__(
        self,
        config: ProviderConfig,
        fetcher: HtmlFetcher,
        cache: Optional[ProviderCache] = None,
    ):
        """Initialize the provider.

        Args:
            config: Static description and capability flags of the source.
            fetcher: Shared HTTP fetcher.
            cache: Provider cache; caching is skipped when omitted.
        """
        self.config = config
        self.fetcher = fetcher
        self.cache = cache
        self.logger = logger.bind(provider=config.id)

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def features(self):
        return self.config.features

    def metadata(self) -> ProviderMetadata:
        return self.config.metadata()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"

    # -------------------------------------------------------------------------
    # Hooks implemented by providers
    # -------------------------------------------------------------------------

    @abstractmethod
    async def _scrape_videos(self, page: int) -> ListingPage:
        """Scrape the home/listing page ``page``."""

    @abstractmethod
    async def _scrape_category_videos(self, category: str, page: int) -> ListingPage:
        """Scrape one page of a category. ``category`` is a slug, path or URL."""

    @abstractmethod
    async def _scrape_video_details(
        self, slug: str, category_slug: Optional[str]
    ) -> UnifiedVideoData:
        """Resolve one item's full record or raise NotFoundError."""

    async def _scrape_categories(self) -> list[UnifiedCategoryData]:
        """Scrape the category index. Only called for dynamic-category providers."""
        raise NotImplementedError(f"{self.id} does not scrape categories")

    async def _scrape_search(self, query: str, page: int) -> ListingPage:
        """Run a native search. Only called for providers with ``has_search``."""
        raise NotImplementedError(f"{self.id} has no native search")

    async def _scrape_category_listing(self, category: str, page: int) -> ListingPage:
        """Category hook with an upstream 404 reported as an unknown category."""
        try:
            return await self._scrape_category_videos(category, page)
        except FetchError as e:
            if e.status_code == 404:
                raise NotFoundError(self.id, f"No category found for '{category}'") from e
            raise

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def fetch_videos(self, page: int = 1) -> VideoListResponse:
        """List items from the provider's home/listing page."""
        page = self._effective_page(page, self.features.paginates_listing)

        async def operation() -> VideoListResponse:
            return await self._cached_listing(
                "videos",
                {"page": page},
                CacheDurations.VIDEOS,
                lambda: self._scrape_videos(page),
                page,
                self.features.paginates_listing,
            )

        return await self._guarded("fetch_videos", operation, page=page)

    async def fetch_category_videos(self, category: str, page: int = 1) -> VideoListResponse:
        """List items of one category.

        Providers that do not paginate categories always serve page 1 and
        report ``has_next_page=False`` whatever page was requested.
        """
        paginated = self.features.paginates_categories
        page = self._effective_page(page, paginated)

        async def operation() -> VideoListResponse:
            if not category or not category.strip():
                raise NotFoundError(self.id, "Category is required")
            return await self._cached_listing(
                "category_videos",
                {"category": category.strip(), "page": page},
                CacheDurations.VIDEOS,
                lambda: self._scrape_category_listing(category.strip(), page),
                page,
                paginated,
            )

        return await self._guarded(
            "fetch_category_videos", operation, category=category, page=page
        )

    async def get_video_details(
        self, slug: str, category_slug: Optional[str] = None
    ) -> VideoResponse:
        """Resolve one item's full detail record."""

        async def operation() -> VideoResponse:
            if not slug or not slug.strip():
                raise NotFoundError(self.id, "Video slug is required")
            params = {"slug": slug, "category": category_slug}
            cached = await self._cache_get("video_details", params, VideoResponse)
            if cached is not None:
                return cached

            video = await self._scrape_video_details(slug.strip(), category_slug)
            response = self._ok(video, response_type=VideoResponse)
            await self._cache_set("video_details", response, CacheDurations.VIDEO_DETAILS, params)
            self.logger.info("video_details_resolved", slug=slug, type=video.type.value)
            return response

        return await self._guarded(
            "get_video_details", operation, slug=slug, category_slug=category_slug
        )

    async def get_categories(self) -> CategoryListResponse:
        """Return the static category list or scrape the category index."""

        async def operation() -> CategoryListResponse:
            if not self.features.has_dynamic_categories:
                return self._ok(self._static_categories(), response_type=CategoryListResponse)

            cached = await self._cache_get("categories", None, CategoryListResponse)
            if cached is not None:
                return cached

            categories = await self._scrape_categories()
            response = self._ok(categories, response_type=CategoryListResponse)
            await self._cache_set("categories", response, CacheDurations.CATEGORIES)
            self.logger.info("categories_scraped", count=len(categories))
            return response

        return await self._guarded("get_categories", operation)

    async def search_videos(self, query: str, page: int = 1) -> VideoListResponse:
        """Search items by text.

        Providers without native search fall back to filtering the listing
        page's titles case-insensitively. That fallback only sees one listing
        page, so it returns fewer hits than a real search would.
        """
        query = (query or "").strip()
        page = max(1, page)

        async def operation() -> VideoListResponse:
            if not query:
                raise PermanentError("Search query must not be empty")
            if self.features.has_search:
                return await self._cached_listing(
                    "search",
                    {"query": query.lower(), "page": page},
                    CacheDurations.SEARCH,
                    lambda: self._scrape_search(query, page),
                    page,
                    True,
                )
            return await self._filter_search(query, page)

        return await self._guarded("search_videos", operation, query=query, page=page)

    # -------------------------------------------------------------------------
    # Operation plumbing
    # -------------------------------------------------------------------------

    async def _guarded(
        self,
        operation: str,
        run: Callable[[], Awaitable[ProviderResponse]],
        **context: Any,
    ) -> ProviderResponse:
        """Run ``run`` and convert every failure into an error envelope."""
        with track_scrape_operation(self.id, operation) as tracking:
            try:
                return await run()
            except NotFoundError as e:
                tracking["status"] = "error"
                self.logger.warning(
                    "provider_item_not_found", operation=operation, error=e.reason, **context
                )
                return self._error(e.reason, e.kind)
            except PremiumHubError as e:
                tracking["status"] = "error"
                self.logger.error(
                    "provider_operation_failed",
                    operation=operation,
                    error=getattr(e, "reason", e.message),
                    error_kind=e.kind,
                    **context,
                )
                return self._error(getattr(e, "reason", e.message), e.kind)
            except ValidationError as e:
                tracking["status"] = "error"
                self.logger.error(
                    "provider_record_invalid",
                    operation=operation,
                    error=str(e),
                    **context,
                )
                return self._error("Scraped record failed validation", ParseError.__name__)
            except Exception as e:
                tracking["status"] = "error"
                self.logger.exception(
                    "provider_operation_crashed",
                    operation=operation,
                    error=str(e),
                    error_type=type(e).__name__,
                    **context,
                )
                return self._error(f"Unexpected error in {operation}", type(e).__name__)

    async def _cached_listing(
        self,
        resource: str,
        params: dict[str, Any],
        ttl_ms: int,
        scrape: Callable[[], Awaitable[ListingPage]],
        page: int,
        paginated: bool,
    ) -> VideoListResponse:
        cached = await self._cache_get(resource, params, VideoListResponse)
        if cached is not None:
            return cached

        listing = await scrape()
        response = self._ok(listing.items, self._pagination(page, listing, paginated))
        await self._cache_set(resource, response, ttl_ms, params)
        self.logger.info(
            "listing_scraped",
            resource=resource,
            page=page,
            count=len(listing.items),
            has_next_page=response.pagination.has_next_page,
        )
        return response

    async def _filter_search(self, query: str, page: int) -> VideoListResponse:
        listing_response = await self.fetch_videos(page)
        if not listing_response.success:
            raise PermanentError(listing_response.error or "Listing unavailable for search")
        needle = query.lower()
        matches = [
            item for item in (listing_response.data or []) if needle in item.title.lower()
        ]
        self.logger.info(
            "search_title_filter",
            query=query,
            scanned=len(listing_response.data or []),
            matched=len(matches),
        )
        return self._ok(matches, listing_response.pagination)

    async def _cache_get(
        self,
        resource: str,
        params: Optional[dict[str, Any]],
        response_type: type[ProviderResponse],
    ) -> Optional[ProviderResponse]:
        if self.cache is None:
            return None
        raw = await self.cache.get(self.id, resource, params)
        if raw is None:
            return None
        try:
            return response_type.model_validate(raw)
        except ValidationError:
            self.logger.warning("cache_entry_stale_shape", resource=resource, params=params)
            return None

    async def _cache_set(
        self,
        resource: str,
        response: ProviderResponse,
        ttl_ms: int,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        if self.cache is None or not response.success:
            return
        await self.cache.set(self.id, resource, response, ttl_ms, params)

    # -------------------------------------------------------------------------
    # Envelope helpers
    # -------------------------------------------------------------------------

    def _ok(
        self,
        data: T,
        pagination: Optional[Pagination] = None,
        response_type: type[ProviderResponse] = VideoListResponse,
    ) -> ProviderResponse:
        return response_type(
            success=True,
            data=data,
            provider=self.id,
            pagination=pagination,
        )

    def _error(self, message: str, kind: Optional[str] = None) -> ProviderResponse:
        return ProviderResponse(
            success=False,
            error=message,
            error_kind=kind,
            provider=self.id,
        )

    @staticmethod
    def _effective_page(page: Optional[int], paginated: bool) -> int:
        if not paginated:
            return 1
        return max(1, page or 1)

    def _pagination(self, page: int, listing: ListingPage, paginated: bool) -> Pagination:
        """Honest pagination: exact values when known, page-size heuristic otherwise."""
        if not paginated:
            return Pagination(current_page=1, total_pages=1, has_next_page=False)

        if listing.has_next is not None:
            has_next = listing.has_next
        else:
            has_next = len(listing.items) >= self.config.items_per_page
        max_pages = listing.total_pages or self.config.max_pages
        if max_pages is not None and page >= max_pages:
            has_next = False

        if listing.total_pages:
            total_pages = max(listing.total_pages, page)
        else:
            total_pages = page + 1 if has_next else page
        return Pagination(current_page=page, total_pages=total_pages, has_next_page=has_next)

    def _static_categories(self) -> list[UnifiedCategoryData]:
        return [
            UnifiedCategoryData(
                slug=category.slug,
                name=category.name,
                url=self.category_url(category.slug),
                provider=self.id,
            )
            for category in self.config.static_categories
        ]

    # -------------------------------------------------------------------------
    # Extraction helpers
    # -------------------------------------------------------------------------

    def collect_items(
        self,
        blocks: Iterable[Any],
        parse_block: Callable[[Any, int], UnifiedVideoData],
        *,
        source: str,
    ) -> list[UnifiedVideoData]:
        """Parse listing blocks, skipping the ones missing required fields.

        ``parse_block`` receives the block and the index it will occupy in
        the returned list, and raises ParseError for blocks to skip.
        """
        items: list[UnifiedVideoData] = []
        dropped = 0
        for block in blocks:
            try:
                items.append(parse_block(block, len(items)))
            except (ParseError, ValidationError) as e:
                dropped += 1
                self.logger.debug(
                    "listing_item_skipped",
                    source=source,
                    reason=getattr(e, "reason", str(e)),
                )
        record_items_dropped(self.id, dropped)
        if dropped:
            self.logger.debug("listing_partial", source=source, kept=len(items), dropped=dropped)
        return items

    def require(self, value: Optional[str], field: str) -> str:
        """Return ``value`` or raise ParseError naming the missing field."""
        if not value:
            raise ParseError(self.id, f"missing {field}")
        return value

    def absolute(self, url: Optional[str]) -> str:
        """Absolute-ize ``url`` against the provider's base URL."""
        return normalize_url(clean_url_tail(url), self.config.base_url)

    def media_url(self, url: Optional[str]) -> Optional[str]:
        """Absolute http(s) player or media URL, or None.

        Lazy-load placeholders such as ``about:blank`` or ``javascript:false``
        are dropped.
        """
        if not url:
            return None
        absolute = self.absolute(url)
        return absolute if is_absolute(absolute) else None

    def image_url(self, url: Optional[str], *, full_size: bool = False) -> str:
        """Normalize a thumbnail or gallery URL and route it through the asset relay.

        ``data:`` placeholders and non-http leftovers become an empty string.
        """
        absolute = self.absolute(url)
        if not is_absolute(absolute):
            return ""
        if full_size:
            absolute = strip_size_suffix(absolute)
        return proxy_asset(absolute, self.config.asset_relay_url)

    def page_url(self, path: str) -> str:
        return normalize_url(path, self.config.base_url)

    def category_url(self, slug: str, page: int = 1) -> str:
        """Default WordPress-style category URL."""
        url = self.page_url(f"/category/{slug}/")
        if page > 1:
            url = f"{url}page/{page}/"
        return url

    def category_slug(self, category: str) -> str:
        """Reduce a category slug, path or URL to its slug."""
        category = category.strip()
        if "/" not in category:
            return category
        path = urlparse(category).path if "://" in category else category
        if _PAGE_SUFFIX in path:
            path = path.split(_PAGE_SUFFIX, 1)[0]
        return slug_from_url(path) or category.strip("/")

    async def fetch_page(self, url: str) -> str:
        """Fetch a source page, through the provider relay when it has one."""
        return await self.fetcher.fetch_html(
            url,
            provider=self.id,
            relay_url=self.config.relay_url or None,
            requires_relay=self.features.requires_relay,
        )


class ListingIndexLookup:
    """Detail lookup by position in a re-fetched listing.

    Mixed into providers whose listings expose no stable per-item id. Their
    slugs end in ``-{index}`` (see ``generate_video_slug``).
    """

    async def locate_by_index(
        self: BaseProvider, slug: str, category_slug: Optional[str]
    ) -> tuple[int, UnifiedVideoData]:
        index = parse_slug_index(slug)
        if index is None:
            raise NotFoundError(self.id, f"Slug '{slug}' carries no listing index")

        if category_slug:
            listing = await self._scrape_category_videos(category_slug, 1)
            source = f"category {category_slug}"
        else:
            listing = await self._scrape_videos(1)
            source = "home listing"

        if index >= len(listing.items):
            raise NotFoundError(
                self.id,
                f"Index {index} is out of range of the {source} ({len(listing.items)} items)",
            )
        self.logger.debug("listing_index_resolved", slug=slug, index=index, source=source)
        return index, listing.items[index]
