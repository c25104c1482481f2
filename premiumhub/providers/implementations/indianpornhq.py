"""IndianPornHQ provider.

Plain HTML site without item ids, search or pagination. Listings are cut at
every ``<div class="kmq"`` marker; slugs are generated from the title and
the item's position (see ``ListingIndexLookup``). Detail pages usually embed
an xHamster player whose video id is re-routed through the xHamster worker.
"""

import re
from typing import Optional

from premiumhub.core.exceptions import FetchError
from premiumhub.providers.base import BaseProvider, ListingIndexLookup, ListingPage
from premiumhub.providers.extract import (
    FieldRule,
    all_matches,
    clean_text,
    dedupe,
    extract_all,
    extract_first,
    first_match,
    is_absolute,
    slug_from_url,
    split_blocks,
    strip_tags,
)
from premiumhub.providers.slug import generate_slug, generate_video_slug
from premiumhub.providers.types import UnifiedCategoryData, UnifiedVideoData

BLOCK_MARKER = '<div class="kmq"'

# =============================================================================
# Listing Rules
# =============================================================================

THUMBNAIL_RULES = (FieldRule(r"""<img[^>]*(?:src|data-src)=["']?([^"'>\s]+\.jpg)""", reject=("data:",)),)
DURATION_RULES = (FieldRule(r'<span class="thumb-duration">([\d:]+)</span>'),)
TITLE_RULES = (FieldRule(r'<div class="iol">(.*?)</div>', transform=strip_tags),)
LINK_RULES = (FieldRule(r"""href=["']([^"']+)["']""", reject=("#", "javascript:")),)
VIEWS_RULES = (FieldRule(r'<span class="thumb-views">([^<]+)</span>', transform=clean_text),)

# =============================================================================
# Detail Rules
# =============================================================================

DETAIL_TITLE_RULES = (FieldRule(r"<h1[^>]*>(.*?)</h1>", transform=strip_tags),)
DESCRIPTION_RULES = (
    FieldRule(r'<div[^>]*class="[^"]*description[^"]*"[^>]*>(.*?)</div>', transform=strip_tags),
)
DETAIL_THUMBNAIL_RULES = (
    FieldRule(r"""poster=["']([^"']+)["']"""),
    FieldRule(r"""<img[^>]*(?:src|data-src)=["']?([^"'>\s]+\.jpg)""", reject=("data:",)),
)
DETAIL_DURATION_RULES = (FieldRule(r'<span[^>]*class="[^"]*duration[^"]*"[^>]*>([\d:]+)</span>'),)
DETAIL_VIEWS_RULES = (FieldRule(r'<span[^>]*class="[^"]*views[^"]*"[^>]*>([^<]+)</span>', transform=clean_text),)
DETAIL_DATE_RULES = (FieldRule(r'<span[^>]*class="[^"]*date[^"]*"[^>]*>([^<]+)</span>', transform=clean_text),)

VIDEO_SOURCE_RULES = tuple(
    FieldRule(rf"""<source[^>]*(?:src|data-src)=["']([^"']*\.{ext}(?:\?[^"']*)?)["']""")
    for ext in ("mp4", "webm", "ogg", "m3u8", "avi", "mov")
) + (
    FieldRule(r"""<video[^>]*(?:src|data-src)=["']([^"']+)["']""", reject=("blob:",)),
    FieldRule(r"""(?:video|src|url)["']?\s*[:=]\s*["']([^"']*\.(?:mp4|webm|ogg|m3u8|avi|mov)(?:\?[^"']*)?)["']"""),
)

EMBED_RULES = (FieldRule(r"""<iframe[^>]*\bsrc=["']([^"']+)["']""", reject=("about:",)),)
XHAMSTER_ID_PATTERN = re.compile(r"[?&]i=([a-zA-Z0-9]+)")

TAG_SECTION_PATTERN = re.compile(r'<div class="gwt">(.*?)</div>', re.IGNORECASE | re.DOTALL)
TAG_LINK_RULES = (FieldRule(r'<a[^>]*href="[^"]*"[^>]*>([^<]+)</a>', transform=clean_text),)
TAG_SKIP_TOKENS = ("Home", "To Top")

# =============================================================================
# Category Rules
# =============================================================================

CATEGORY_ITEM_PATTERN = re.compile(
    r"""<li>\s*<a[^>]*href=["'](?P<url>[^"']+)["'][^>]*>(?P<name>[^<]+)</a>"""
    r"""(?:[^<]*<span[^>]*>(?P<count>\d+)</span>)?[^<]*</li>""",
    re.IGNORECASE,
)
CATEGORY_LINK_PATTERN = re.compile(
    r"""<a[^>]*href=["'](?P<url>/[^"']+/)["'][^>]*>(?P<name>[^<]+)</a>""",
    re.IGNORECASE,
)
ITEM_URL_SKIP = re.compile(r"^/(home|about|contact|login|sign|search|user|admin)", re.IGNORECASE)
LINK_URL_SKIP = re.compile(r"^/(videos?|photo|image|tag|search|user|login|register)", re.IGNORECASE)
LINK_NAME_SKIP = re.compile(
    r"home|about|contact|privacy|terms|login|sign|register|search|help|faq|dmca|sitemap",
    re.IGNORECASE,
)
MAX_CATEGORY_NAME = 100


class IndianPornHQProvider(ListingIndexLookup, BaseProvider):
    """Scraper for indianpornhq.com."""

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def category_page_url(self, category: str) -> str:
        """Category input may be a full URL, a site path or a bare slug."""
        category = category.strip()
        if is_absolute(category):
            return category
        if category.startswith("/"):
            return self.page_url(category)
        return self.page_url(f"/{category}/")

    def parse_listing(self, html: str, *, source: str, category: Optional[str] = None) -> list[UnifiedVideoData]:
        blocks = split_blocks(html, BLOCK_MARKER, limit=self.config.max_items)
        return self.collect_items(
            blocks,
            lambda block, index: self._parse_block(block, index, category),
            source=source,
        )

    def _parse_block(self, block: str, index: int, category: Optional[str]) -> UnifiedVideoData:
        title = self.require(first_match(block, TITLE_RULES), "title")
        post_url = self.absolute(self.require(first_match(block, LINK_RULES), "url"))
        thumbnail = self.image_url(self._host_relative(first_match(block, THUMBNAIL_RULES)))

        return UnifiedVideoData(
            id=slug_from_url(post_url) or f"video-{index}",
            slug=generate_video_slug(title, self.id, index),
            title=title,
            provider=self.id,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            post_url=post_url,
            url=post_url,
            duration=first_match(block, DURATION_RULES) or "0:00",
            views=first_match(block, VIEWS_RULES) or "0",
            categories=[category] if category else [],
        )

    @staticmethod
    def _host_relative(url: Optional[str]) -> Optional[str]:
        """Thumbnails are often written as ``cdn.host/path.jpg`` without a scheme."""
        if url and not url.startswith(("http://", "https://", "/", "data:")):
            return f"https://{url}"
        return url

    async def _scrape_videos(self, page: int) -> ListingPage:
        html = await self.fetch_page(self.page_url("/"))
        return ListingPage(self.parse_listing(html, source="home listing"))

    async def _scrape_category_videos(self, category: str, page: int) -> ListingPage:
        html = await self.fetch_page(self.category_page_url(category))
        return ListingPage(
            self.parse_listing(html, source=f"category {category}", category=self.category_slug(category))
        )

    # -------------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------------

    async def _scrape_video_details(self, slug: str, category_slug: Optional[str]) -> UnifiedVideoData:
        _, item = await self.locate_by_index(slug, category_slug)
        try:
            html = await self.fetch_page(item.post_url)
        except FetchError as e:
            # The listing record is still a usable answer
            self.logger.warning(
                "video_page_unavailable",
                slug=slug,
                url=item.post_url,
                error=e.reason,
            )
            return item
        return self.merge_detail(item, html)

    def merge_detail(self, item: UnifiedVideoData, html: str) -> UnifiedVideoData:
        """Overlay what the video page adds on top of the listing record."""
        title = first_match(html, DETAIL_TITLE_RULES)
        if not title:
            return item

        thumbnail = self.image_url(self._host_relative(first_match(html, DETAIL_THUMBNAIL_RULES)))
        embed_url = self._absolute_media(first_match(html, EMBED_RULES))
        video_url = self._absolute_media(first_match(html, VIDEO_SOURCE_RULES))

        return UnifiedVideoData.model_validate(
            {
                **item.model_dump(),
                "title": title,
                "description": first_match(html, DESCRIPTION_RULES),
                "thumbnail": thumbnail or item.thumbnail,
                "thumbnail_url": thumbnail or item.thumbnail_url,
                "video_url": video_url,
                "embed_url": embed_url,
                "proxy_embed_url": self.xhamster_embed_url(embed_url),
                "duration": first_match(html, DETAIL_DURATION_RULES) or item.duration,
                "views": first_match(html, DETAIL_VIEWS_RULES) or item.views,
                "upload_date": first_match(html, DETAIL_DATE_RULES),
                "tags": self.extract_tags(html),
            }
        )

    def _absolute_media(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        cleaned = re.sub(r"[<>\"']", "", url).strip()
        return self.media_url(self._host_relative(cleaned))

    def xhamster_embed_url(self, embed_url: Optional[str]) -> Optional[str]:
        """Worker-proxied xHamster page for embeds carrying an ``i=`` video id."""
        video_id = extract_first(embed_url or "", XHAMSTER_ID_PATTERN)
        if not video_id:
            return None
        worker = self.config.embed_relay_url.rstrip("/")
        if not worker:
            return None
        return f"{worker}/https://xhamster.com/videos/{video_id}"

    def extract_tags(self, html: str) -> list[str]:
        section = extract_first(html, TAG_SECTION_PATTERN) or ""
        return dedupe(
            tag for tag in all_matches(section, TAG_LINK_RULES)
            if not any(token in tag for token in TAG_SKIP_TOKENS)
        )

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def _scrape_categories(self) -> list[UnifiedCategoryData]:
        html = await self.fetch_page(self.page_url("/"))
        return self.parse_categories(html)

    def parse_categories(self, html: str) -> list[UnifiedCategoryData]:
        """Category links from list items first, then bare directory links."""
        seen: set[str] = set()
        categories: list[UnifiedCategoryData] = []

        def add(path: str, name: str, count: Optional[str] = None) -> None:
            slug = slug_from_url(path) or generate_slug(name)
            if not slug:
                return
            seen.add(path)
            categories.append(
                UnifiedCategoryData(
                    slug=slug,
                    name=name,
                    url=self.page_url(path),
                    provider=self.id,
                    count=int(count) if count else None,
                )
            )

        for match in extract_all(html, CATEGORY_ITEM_PATTERN):
            path, name = match.group("url").strip(), clean_text(match.group("name"))
            if (
                not path.startswith("/")
                or path.startswith("//")
                or "#" in path
                or ITEM_URL_SKIP.match(path)
                or not 0 < len(name) < MAX_CATEGORY_NAME
                or path in seen
            ):
                continue
            add(path, name, match.group("count"))

        for match in extract_all(html, CATEGORY_LINK_PATTERN):
            path, name = match.group("url").strip(), clean_text(match.group("name"))
            if (
                path in seen
                or path == "/"
                or LINK_URL_SKIP.match(path)
                or not 0 < len(name) <= MAX_CATEGORY_NAME
                or LINK_NAME_SKIP.search(name)
                or LINK_NAME_SKIP.search(path)
            ):
                continue
            add(path, name)

        categories.sort(key=lambda category: category.name.lower())
        return categories
