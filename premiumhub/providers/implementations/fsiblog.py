"""FSIBlog provider.

Elementor WordPress site serving videos, photo galleries and text stories.
Every page goes through the FSIBlog worker relay; thumbnails and gallery
images are proxied through the same worker.

Listing markup: one ``<article class="elementor-post post-{id} type-{type}">``
per item, title link in ``h3.elementor-post__title``. Post URLs look like
``/{category}/{slug}/``. Video sources on detail pages hide either in an
``itemprop="contentURL"`` meta or in a base64 ``?q=`` payload of the player
iframe.
"""

import re
from typing import Optional
from urllib.parse import quote_plus, urlparse

from premiumhub.core.exceptions import FetchError, NotFoundError, ParseError
from premiumhub.providers.base import BaseProvider, ListingPage
from premiumhub.providers.extract import (
    FieldRule,
    all_matches,
    clean_text,
    decode_base64,
    dedupe,
    extract_first,
    first_match,
    section_after,
    slug_from_url,
    strip_tags,
)
from premiumhub.providers.types import ContentType, UnifiedVideoData

IMAGE_EXT = r"\.(?:jpg|jpeg|png|webp|gif)"

ARTICLE_PATTERN = re.compile(
    r'<article[^>]+class="[^"]*elementor-post[^"]*\bpost-(?P<id>\d+)[^"]*'
    r'type-(?P<type>porn-video|sex-gallery|sex-story)[^"]*"[^>]*>(?P<body>.*?)</article>',
    re.IGNORECASE | re.DOTALL,
)

TITLE_LINK_PATTERN = re.compile(
    r'<h3[^>]*class="[^"]*elementor-post__title[^"]*"[^>]*>\s*<a[^>]+href="(?P<href>[^"]+)"[^>]*>(?P<title>.*?)</a>',
    re.IGNORECASE | re.DOTALL,
)

# =============================================================================
# Field Rules
# =============================================================================

THUMBNAIL_RULES = (
    FieldRule(rf'data-src="([^"]+{IMAGE_EXT}[^"]*)"', reject=("data:",)),
    FieldRule(rf'data-lazy-src="([^"]+{IMAGE_EXT}[^"]*)"', reject=("data:",)),
    FieldRule(rf'<img[^>]+\bsrc="([^"]+{IMAGE_EXT}[^"]*)"', reject=("data:",)),
    FieldRule(rf"background-image:\s*url\(['\"]?([^'\")]+{IMAGE_EXT}[^'\")]*)", reject=("data:",)),
)

EXCERPT_RULES = (
    FieldRule(r'<div[^>]*class="[^"]*elementor-post__excerpt[^"]*"[^>]*>\s*<p>(.*?)</p>', transform=clean_text),
)

DETAIL_ARTICLE_PATTERN = re.compile(
    r'<article[^>]+class="[^"]*\bpost-(?P<id>\d+)[^"]*type-(?P<type>porn-video|sex-gallery|sex-story)',
    re.IGNORECASE,
)

DETAIL_TITLE_RULES = (
    FieldRule(r'<h1[^>]*class="[^"]*elementor-heading-title[^"]*"[^>]*>(.*?)</h1>', transform=clean_text),
    FieldRule(r'<meta[^>]+property="og:title"[^>]+content="([^"]+)"', transform=clean_text),
    FieldRule(r"<title>(.*?)</title>", transform=clean_text),
)

DETAIL_THUMBNAIL_RULES = (
    FieldRule(r'<meta[^>]+itemprop="thumbnailUrl"[^>]+content="([^"]+)"'),
    FieldRule(r'<meta[^>]+property="og:image"[^>]+content="([^"]+)"'),
)

VIDEO_SOURCE_RULES = (
    FieldRule(r'<meta[^>]+itemprop="contentURL"[^>]+content="([^"]+)"'),
    FieldRule(r'<source[^>]+src="([^"]+\.mp4[^"]*)"'),
    FieldRule(r'<video[^>]+src="([^"]+)"', reject=("blob:",)),
)

PLAYER_PAYLOAD_RULES = (
    FieldRule(r'<iframe[^>]+data-src="[^"]*\?q=([A-Za-z0-9+/=_-]+)"'),
    FieldRule(r'<iframe[^>]+\bsrc="[^"]*\?q=([A-Za-z0-9+/=_-]+)"'),
)

DECODED_SOURCE_RULES = (
    FieldRule(r'src="(https://cdn\.fsiblog\d*\.com[^"]+)"'),
    FieldRule(r'src="(https?://[^"]+\.mp4[^"]*)"'),
    FieldRule(r'(https?://[^\s"\']+\.mp4[^\s"\']*)'),
)

UPLOAD_DATE_RULES = (
    FieldRule(r'<meta[^>]+itemprop="uploadDate"[^>]+content="([^"]+)"'),
    FieldRule(r'<meta[^>]+property="article:published_time"[^>]+content="([^"]+)"'),
)

DESCRIPTION_RULES = (
    FieldRule(
        r'<div[^>]*class="[^"]*elementor-widget-theme-post-content[^"]*"[^>]*>.*?<p>(.*?)</p>',
        transform=clean_text,
    ),
    FieldRule(r'<meta[^>]+name="description"[^>]+content="([^"]+)"', transform=clean_text),
)

CATEGORY_LINK_RULES = (FieldRule(r'<a[^>]+href="[^"]*/category/[^"/]+/?"[^>]*>([^<]+)</a>', transform=clean_text),)
TAG_LINK_RULES = (FieldRule(r'<a[^>]+href="[^"]*/tag/[^"/]+/?"[^>]*>([^<]+)</a>', transform=clean_text),)

GALLERY_ITEM_RULES = (
    FieldRule(rf'<a[^>]*class="[^"]*e-gallery-item[^"]*"[^>]*href="([^"]+{IMAGE_EXT}[^"]*)"'),
    FieldRule(rf'<a[^>]*href="([^"]+{IMAGE_EXT}[^"]*)"[^>]*class="[^"]*e-gallery-item[^"]*"'),
)

CONTENT_IMAGE_RULES = (
    FieldRule(rf'<img[^>]+(?:data-src|src)="([^"]+{IMAGE_EXT}[^"]*)"', reject=("data:",)),
)

POST_CONTENT_PATTERN = re.compile(
    r'<div[^>]*class="[^"]*elementor-widget-theme-post-content[^"]*"[^>]*>(.*?)</div>\s*</div>',
    re.IGNORECASE | re.DOTALL,
)

RELATED_HEADING = re.compile(r"<h[23][^>]*>\s*Related Porn Videos\s*</h[23]>", re.IGNORECASE)
RELATED_END = re.compile(r"</section>", re.IGNORECASE)

# Post URLs are /{category}/{slug}/; unlisted slugs without a category are tried here.
FALLBACK_CATEGORY = "blowjob"

GALLERY_SKIP_TOKENS = ("icon", "logo", "placeholder")
TITLE_SUFFIXES = (" - FSI Blog", " - FSIBlog5", " - FSIBlog")


class FsiBlogProvider(BaseProvider):
    """Scraper for fsiblog5.com."""

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def listing_url(self, page: int) -> str:
        if page > 1:
            return self.page_url(f"/page/{page}/")
        return self.page_url("/")

    def search_url(self, query: str, page: int) -> str:
        if page > 1:
            return self.page_url(f"/page/{page}/?s={quote_plus(query)}")
        return self.page_url(f"/?s={quote_plus(query)}")

    def parse_listing(self, html: str, *, source: str, exclude_id: Optional[str] = None) -> list[UnifiedVideoData]:
        articles = [
            match for match in ARTICLE_PATTERN.finditer(html)
            if match.group("id") != exclude_id
        ]

        return self.collect_items(
            articles,
            lambda article, index: self._parse_article(article),
            source=source,
        )

    def _parse_article(self, article: re.Match) -> UnifiedVideoData:
        post_id = article.group("id")
        content_type = ContentType(article.group("type").lower())
        body = article.group("body")

        link = TITLE_LINK_PATTERN.search(body)
        if not link:
            raise ParseError(self.id, f"post {post_id}: missing title link")
        post_url = self.absolute(link.group("href"))
        title = self.require(strip_tags(link.group("title")), "title")
        slug = self.require(slug_from_url(post_url), "slug")

        thumbnail = self.image_url(first_match(body, THUMBNAIL_RULES), full_size=True)
        category = self._category_from_url(post_url)

        return UnifiedVideoData(
            id=post_id,
            slug=slug,
            title=title,
            provider=self.id,
            type=content_type,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            post_url=post_url,
            excerpt=first_match(body, EXCERPT_RULES),
            categories=[category] if category else [],
            duration="0",
            views="0",
        )

    def _category_from_url(self, post_url: str) -> Optional[str]:
        segments = [segment for segment in urlparse(post_url).path.split("/") if segment]
        if len(segments) >= 2:
            return segments[-2]
        return None

    async def _scrape_videos(self, page: int) -> ListingPage:
        html = await self.fetch_page(self.listing_url(page))
        return ListingPage(self.parse_listing(html, source=f"page {page}"))

    async def _scrape_category_videos(self, category: str, page: int) -> ListingPage:
        slug = self.category_slug(category)
        html = await self.fetch_page(self.category_url(slug, page))
        return ListingPage(self.parse_listing(html, source=f"category {slug} page {page}"))

    async def _scrape_search(self, query: str, page: int) -> ListingPage:
        html = await self.fetch_page(self.search_url(query, page))
        return ListingPage(self.parse_listing(html, source=f"search {query!r}"))

    # -------------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------------

    async def _resolve_post_url(self, slug: str, category_slug: Optional[str]) -> str:
        if category_slug:
            return self.page_url(f"/{self.category_slug(category_slug)}/{slug}/")
        listing = await self._scrape_videos(1)
        for item in listing.items:
            if item.slug == slug:
                return item.post_url
        return self.page_url(f"/{FALLBACK_CATEGORY}/{slug}/")

    async def _scrape_video_details(self, slug: str, category_slug: Optional[str]) -> UnifiedVideoData:
        post_url = await self._resolve_post_url(slug, category_slug)
        try:
            html = await self.fetch_page(post_url)
        except FetchError as e:
            if e.status_code == 404:
                raise NotFoundError(self.id, f"No post found for slug '{slug}'") from e
            raise
        return self.parse_detail(html, slug=slug, post_url=post_url)

    def parse_detail(self, html: str, *, slug: str, post_url: str) -> UnifiedVideoData:
        """Build the full record from a post page."""
        article = DETAIL_ARTICLE_PATTERN.search(html)
        post_id = article.group("id") if article else slug
        content_type = ContentType(article.group("type").lower()) if article else ContentType.PORN_VIDEO

        title = first_match(html, DETAIL_TITLE_RULES) or ""
        for suffix in TITLE_SUFFIXES:
            title = title.replace(suffix, "")
        title = self.require(title.strip(), "title")

        thumbnail = self.image_url(first_match(html, DETAIL_THUMBNAIL_RULES), full_size=True)

        video_url = None
        gallery_images = None
        if content_type == ContentType.PORN_VIDEO:
            video_url = self.extract_video_url(html)
        elif content_type == ContentType.SEX_GALLERY:
            gallery_images = self.extract_gallery(html)

        related = [
            item.as_related()
            for item in self.parse_listing(
                section_after(html, RELATED_HEADING, RELATED_END),
                source="related",
                exclude_id=post_id,
            )[: self.config.related_limit]
        ]

        description = first_match(html, DESCRIPTION_RULES)
        return UnifiedVideoData(
            id=post_id,
            slug=slug,
            title=title,
            provider=self.id,
            type=content_type,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            video_url=video_url,
            post_url=post_url,
            description=description,
            excerpt=description[:200] if description else None,
            categories=dedupe(all_matches(html, CATEGORY_LINK_RULES)),
            tags=dedupe(all_matches(html, TAG_LINK_RULES)),
            upload_date=first_match(html, UPLOAD_DATE_RULES),
            gallery_images=gallery_images,
            related_videos=related or None,
            duration="0",
            views="0",
        )

    def extract_video_url(self, html: str) -> Optional[str]:
        """Direct media URL from the meta tag, a source tag or the base64 player payload."""
        direct = self.media_url(first_match(html, VIDEO_SOURCE_RULES))
        if direct:
            return direct

        payload = first_match(html, PLAYER_PAYLOAD_RULES)
        decoded = decode_base64(payload)
        if decoded:
            source = first_match(decoded, DECODED_SOURCE_RULES)
            if source:
                return self.media_url(source)
        return None

    def extract_gallery(self, html: str) -> list[str]:
        """Gallery images from Elementor gallery links, else post-content images."""
        candidates = all_matches(html, GALLERY_ITEM_RULES)
        if not candidates:
            content = extract_first(html, POST_CONTENT_PATTERN) or ""
            candidates = [
                url for url in all_matches(content, CONTENT_IMAGE_RULES)
                if not any(token in url.lower() for token in GALLERY_SKIP_TOKENS)
            ]
        images = dedupe(self.image_url(url, full_size=True) for url in candidates)
        self.logger.debug("gallery_extracted", candidates=len(candidates), unique=len(images))
        return images
