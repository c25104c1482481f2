"""WebXSeries provider.

Fetched directly. Every listing item is an ``<a class="... video ...">``
anchor with the title in its ``title`` attribute and the thumbnail in a
lazy ``data-bg``. Categories are the OTT platforms listed under ``/ott/``.
"""

import re
from typing import Optional
from urllib.parse import quote_plus

from premiumhub.core.exceptions import FetchError, NotFoundError, ParseError
from premiumhub.providers.base import BaseProvider, ListingPage
from premiumhub.providers.extract import (
    FieldRule,
    all_matches,
    clean_text,
    dedupe,
    extract_all,
    find_blocks,
    first_match,
    section_after,
    slug_from_url,
)
from premiumhub.providers.types import UnifiedCategoryData, UnifiedVideoData

VIDEO_BLOCK_PATTERN = re.compile(r'<a\s+class="[^"]*video[^"]*".*?</a>', re.IGNORECASE | re.DOTALL)

HREF_RULES = (FieldRule(r'href="([^"]*)"', reject=("#",)),)
TITLE_RULES = (FieldRule(r'title="([^"]*)"', transform=clean_text),)
THUMBNAIL_RULES = (
    FieldRule(r'data-bg="([^"]*)"', reject=("data:",)),
    FieldRule(r'<img[^>]+(?:data-src|src)="([^"]+)"', reject=("data:",)),
)
DURATION_RULES = (FieldRule(r'<span\s+class="time\s+clock">([^<]*)</span>', transform=clean_text),)
AGO_RULES = (FieldRule(r'<span\s+class="ago">([^<]*)</span>', transform=clean_text),)

# Anchors with these slugs are navigation, not videos
NON_VIDEO_SLUGS = frozenset({"ott", "tag", "model", "series", "page", "hot-web-series"})

DETAIL_TITLE_RULES = (
    FieldRule(r"<h1[^>]*>([^<]+)</h1>", transform=clean_text),
    FieldRule(r'<meta[^>]*property="og:title"[^>]*content="([^"]+)"', transform=clean_text),
)
DESCRIPTION_RULES = (FieldRule(r"<p[^>]*>([^<]+)</p>", transform=clean_text),)
DETAIL_THUMBNAIL_RULES = (FieldRule(r'<meta[^>]*property="og:image"[^>]*content="([^"]+)"'),)
VIDEO_SOURCE_RULES = (
    FieldRule(r'<source\s+src="([^"]+)"\s+type="video/mp4"'),
    FieldRule(r'<source[^>]+type="video/mp4"[^>]+src="([^"]+)"'),
)
EMBED_RULES = (FieldRule(r'<iframe[^>]*src="([^"]+)"', reject=("about:", "javascript:", "data:")),)

SERIES_RULES = (FieldRule(r'<a[^>]*href="[^"]*/series/[^"]*">([^<]+)</a>', transform=clean_text),)
MODEL_RULES = (FieldRule(r'<a[^>]*href="[^"]*/model/[^"]*">([^<]+)</a>', transform=clean_text),)
PLATFORM_RULES = (FieldRule(r'<a[^>]*href="[^"]*/ott/[^"]*/">([^<]+)</a>', transform=clean_text),)
TAG_RULES = (FieldRule(r'<a[^>]*href="[^"]*/tag/[^"]*">([^<]+)</a>', transform=clean_text),)
MAX_TAGS = 10

RELATED_HEADING = re.compile(r"<h2[^>]*>\s*Related Videos\s*</h2>", re.IGNORECASE)
RELATED_END = re.compile(r"</section>|<footer", re.IGNORECASE)

TAXONOMY_CARD_PATTERN = re.compile(
    r'<article[^>]*class="taxonomy-card"[^>]*data-name="(?P<slug>[^"]*)"[^>]*>.*?'
    r'<a[^>]*href="(?P<href>[^"]*)"[^>]*>.*?<h2>(?P<name>[^<]+)</h2>.*?'
    r'<span[^>]*class="taxonomy-count"[^>]*>(?P<count>\d+)\s+Videos?</span>',
    re.IGNORECASE | re.DOTALL,
)


class WebXSeriesProvider(BaseProvider):
    """Scraper for webxseries.to."""

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def listing_url(self, page: int) -> str:
        return self.page_url(f"/page/{page}/") if page > 1 else self.page_url("/")

    def category_url(self, slug: str, page: int = 1) -> str:
        return self.page_url(f"/ott/{slug}/page/{page}/")

    def search_url(self, query: str, page: int) -> str:
        return self.page_url(f"/?s={quote_plus(query)}&paged={page}")

    def parse_listing(self, html: str, *, source: str, category: Optional[str] = None) -> list[UnifiedVideoData]:
        items = self.collect_items(
            find_blocks(html, VIDEO_BLOCK_PATTERN),
            lambda block, index: self._parse_block(block, category),
            source=source,
        )
        unique: dict[str, UnifiedVideoData] = {}
        for item in items:
            unique.setdefault(item.slug, item)
        return list(unique.values())

    def _parse_block(self, block: str, category: Optional[str]) -> UnifiedVideoData:
        href = self.require(first_match(block, HREF_RULES), "url")
        title = self.require(first_match(block, TITLE_RULES), "title")
        post_url = self.absolute(href)
        slug = self.require(slug_from_url(post_url), "slug")
        if slug in NON_VIDEO_SLUGS or "/page/" in post_url:
            raise ParseError(self.id, f"navigation link '{slug}'")

        thumbnail = self.image_url(first_match(block, THUMBNAIL_RULES))
        return UnifiedVideoData(
            id=slug,
            slug=slug,
            title=title,
            provider=self.id,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            post_url=post_url,
            duration=first_match(block, DURATION_RULES) or "Unknown",
            upload_date=first_match(block, AGO_RULES),
            categories=[category] if category else [],
        )

    async def _scrape_videos(self, page: int) -> ListingPage:
        html = await self.fetch_page(self.listing_url(page))
        return ListingPage(self.parse_listing(html, source=f"page {page}"))

    async def _scrape_category_videos(self, category: str, page: int) -> ListingPage:
        slug = self.category_slug(category)
        html = await self.fetch_page(self.category_url(slug, page))
        return ListingPage(self.parse_listing(html, source=f"ott {slug} page {page}", category=slug))

    async def _scrape_search(self, query: str, page: int) -> ListingPage:
        html = await self.fetch_page(self.search_url(query, page))
        return ListingPage(self.parse_listing(html, source=f"search {query!r}"))

    # -------------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------------

    async def _scrape_video_details(self, slug: str, category_slug: Optional[str]) -> UnifiedVideoData:
        post_url = self.page_url(f"/{slug}/")
        try:
            html = await self.fetch_page(post_url)
        except FetchError as e:
            if e.status_code == 404:
                raise NotFoundError(self.id, f"No episode found for slug '{slug}'") from e
            raise
        return self.parse_detail(html, slug=slug, post_url=post_url)

    def parse_detail(self, html: str, *, slug: str, post_url: str) -> UnifiedVideoData:
        title = self.require(first_match(html, DETAIL_TITLE_RULES), "title")
        thumbnail = self.image_url(first_match(html, DETAIL_THUMBNAIL_RULES))
        video_url = first_match(html, VIDEO_SOURCE_RULES)
        embed_url = first_match(html, EMBED_RULES)

        related = [
            item.as_related()
            for item in self.parse_listing(
                section_after(html, RELATED_HEADING, RELATED_END),
                source="related",
            )
            if item.slug != slug
        ][: self.config.related_limit]

        return UnifiedVideoData(
            id=slug,
            slug=slug,
            title=title,
            provider=self.id,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            video_url=self.media_url(video_url),
            embed_url=self.media_url(embed_url),
            post_url=post_url,
            description=first_match(html, DESCRIPTION_RULES),
            categories=dedupe([first_match(html, PLATFORM_RULES), first_match(html, SERIES_RULES)]),
            models=dedupe(all_matches(html, MODEL_RULES)),
            tags=dedupe(all_matches(html, TAG_RULES))[:MAX_TAGS],
            related_videos=related or None,
        )

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def _scrape_categories(self) -> list[UnifiedCategoryData]:
        html = await self.fetch_page(self.page_url("/ott/"))
        return self.parse_categories(html)

    def parse_categories(self, html: str) -> list[UnifiedCategoryData]:
        categories: dict[str, UnifiedCategoryData] = {}
        for card in extract_all(html, TAXONOMY_CARD_PATTERN):
            slug = card.group("slug").strip()
            name = clean_text(card.group("name"))
            if not slug or not name:
                continue
            categories[slug] = UnifiedCategoryData(
                slug=slug,
                name=name,
                url=self.absolute(card.group("href")),
                provider=self.id,
                count=int(card.group("count")),
            )
        return sorted(categories.values(), key=lambda category: category.name.lower())
