"""Superporn provider.

Unlike the HTML scrapers this one reads a JSON relay that already parsed
the source site:

    {relay}/videos[/N]          -> {"videos": [...], "pagination": {...}}
    {relay}/{category}[/N]      -> same shape
    {relay}/categories[/N]      -> {"categories": [...]}
    {search}?q=...&page=N       -> same shape as videos

Relay records are camelCase dicts. Missing ids or titles drop the record.
"""

import asyncio
from typing import Any, Optional

from premiumhub.core.exceptions import ConfigurationError, FetchError, NotFoundError, ParseError
from premiumhub.providers.base import BaseProvider, ListingPage
from premiumhub.providers.extract import clean_text, is_absolute, parse_count
from premiumhub.providers.types import UnifiedCategoryData, UnifiedVideoData

CATEGORY_PAGES = 5


def _text(record: dict[str, Any], *keys: str) -> Optional[str]:
    """First non-empty value among ``keys``, as stripped text."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return None


class SuperpornProvider(BaseProvider):
    """Client for the Superporn JSON relay."""

    def api_url(self, *parts: Any) -> str:
        base = self.config.relay_url.rstrip("/")
        if not base:
            raise ConfigurationError(
                f"[{self.id}] no relay API URL configured",
                config_key="superporn_api_url",
            )
        return "/".join([base, *(str(part).strip("/") for part in parts)])

    async def _get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        payload = await self.fetcher.fetch_json(url, provider=self.id, params=params)
        if not isinstance(payload, dict):
            raise ParseError(self.id, "relay payload is not an object", {"url": url})
        return payload

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def parse_listing(self, payload: dict[str, Any], *, source: str, category: Optional[str] = None) -> ListingPage:
        records = payload.get("videos")
        if not isinstance(records, list):
            raise ParseError(self.id, f"{source}: payload has no videos list")

        items = self.collect_items(
            records,
            lambda record, index: self._parse_record(record, category),
            source=source,
        )

        pagination = payload.get("pagination")
        has_next = None
        total_pages = None
        if isinstance(pagination, dict):
            if "hasNextPage" in pagination:
                has_next = bool(pagination["hasNextPage"])
            total_pages = parse_count(pagination.get("totalPages"))
        return ListingPage(items, has_next=has_next, total_pages=total_pages or None)

    def _parse_record(self, record: Any, category: Optional[str]) -> UnifiedVideoData:
        if not isinstance(record, dict):
            raise ParseError(self.id, "video record is not an object")

        video_id = self.require(_text(record, "id"), "id")
        title = self.require(clean_text(_text(record, "title")), "title")
        thumbnail = self.image_url(_text(record, "thumbnailUrl", "thumbnail"))
        page_url = _text(record, "url")
        player_url = self.absolute(_text(record, "playerUrl"))
        record_category = category or _text(record, "category")

        return UnifiedVideoData(
            id=video_id,
            slug=video_id,
            title=title,
            provider=self.id,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            embed_url=player_url if is_absolute(player_url) else None,
            url=page_url,
            post_url=self.absolute(page_url) if is_absolute(page_url) else self.page_url(f"/video/{video_id}"),
            duration=_text(record, "duration") or "0:00",
            views=_text(record, "views") or "0",
            categories=[record_category] if record_category else [],
        )

    async def _scrape_videos(self, page: int) -> ListingPage:
        url = self.api_url("videos", page) if page > 1 else self.api_url("videos")
        return self.parse_listing(await self._get_json(url), source=f"page {page}")

    async def _scrape_category_videos(self, category: str, page: int) -> ListingPage:
        slug = self.category_slug(category)
        url = self.api_url(slug, page) if page > 1 else self.api_url(slug)
        return self.parse_listing(
            await self._get_json(url),
            source=f"category {slug} page {page}",
            category=slug,
        )

    async def _scrape_search(self, query: str, page: int) -> ListingPage:
        search_url = self.config.search_url
        if not search_url:
            raise ConfigurationError(
                f"[{self.id}] no search API URL configured",
                config_key="superporn_search_url",
            )
        payload = await self._get_json(search_url, params={"q": query, "page": page})
        return self.parse_listing(payload, source=f"search {query!r}")

    # -------------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------------

    async def _scrape_video_details(self, slug: str, category_slug: Optional[str]) -> UnifiedVideoData:
        """The relay has no detail endpoint: find the id in page 1 listings."""
        if category_slug:
            listing = await self._scrape_category_videos(category_slug, 1)
            found = self._find(listing, slug)
            if found is not None:
                return found

        found = self._find(await self._scrape_videos(1), slug)
        if found is None:
            raise NotFoundError(self.id, f"Video '{slug}' is not in the current listings")
        return found

    @staticmethod
    def _find(listing: ListingPage, slug: str) -> Optional[UnifiedVideoData]:
        return next((item for item in listing.items if slug in (item.id, item.slug)), None)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def _scrape_categories(self) -> list[UnifiedCategoryData]:
        urls = [
            self.api_url("categories", page) if page > 1 else self.api_url("categories")
            for page in range(1, CATEGORY_PAGES + 1)
        ]
        pages = await asyncio.gather(*(self._get_json(url) for url in urls), return_exceptions=True)

        categories: list[UnifiedCategoryData] = []
        seen: set[str] = set()
        failures = 0
        for url, page in zip(urls, pages):
            if isinstance(page, BaseException):
                if not isinstance(page, (FetchError, ParseError)):
                    raise page
                failures += 1
                self.logger.warning("category_page_failed", url=url, error=str(page))
                continue
            for record in page.get("categories") or []:
                category = self._parse_category(record)
                if category is not None and category.slug not in seen:
                    seen.add(category.slug)
                    categories.append(category)

        if failures == len(urls):
            raise FetchError(self.id, "every category page failed", url=urls[0])
        return categories

    def _parse_category(self, record: Any) -> Optional[UnifiedCategoryData]:
        if not isinstance(record, dict):
            return None
        slug = _text(record, "slug")
        name = clean_text(_text(record, "name"))
        if not slug or not name:
            return None
        thumbnail = self.image_url(_text(record, "imageUrl"))
        return UnifiedCategoryData(
            slug=slug,
            name=name,
            url=self.category_url(slug),
            provider=self.id,
            count=parse_count(record.get("videoCount")),
            thumbnail=thumbnail or None,
        )

    def category_url(self, slug: str, page: int = 1) -> str:
        url = self.page_url(f"/category/{slug}")
        return f"{url}/{page}" if page > 1 else url
