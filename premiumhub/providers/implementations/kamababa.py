"""Kamababa provider.

WordPress video theme behind the shared worker relay. Items are
``<article id="post-N" class="... thumb-block">`` blocks whose link carries
the title attribute. The player is an iframe to ``player-x.php?q=...`` with
a base64, URL-encoded HTML payload that contains the real mp4 source.
"""

import re
from typing import Optional
from urllib.parse import quote_plus, unquote

from premiumhub.core.exceptions import FetchError, NotFoundError, ParseError
from premiumhub.providers.base import BaseProvider, ListingPage
from premiumhub.providers.extract import (
    FieldRule,
    Rules,
    all_matches,
    clean_text,
    decode_base64,
    dedupe,
    extract_all,
    first_match,
    parse_count,
    slug_from_url,
)
from premiumhub.providers.types import UnifiedCategoryData, UnifiedVideoData

IMAGE_EXT = r"\.(?:jpg|jpeg|png|webp|gif)"

ARTICLE_PATTERN = re.compile(
    r'<article[^>]+id="post-(?P<id>\d+)"[^>]+class="[^"]*thumb-block[^"]*"[^>]*>(?P<body>.*?)</article>',
    re.IGNORECASE | re.DOTALL,
)
CATEGORY_ARTICLE_PATTERN = re.compile(
    r'<article[^>]+class="[^"]*thumb-block[^"]*"[^>]*>(?P<body>.*?)</article>',
    re.IGNORECASE | re.DOTALL,
)
TITLE_LINK_PATTERN = re.compile(r'<a[^>]+href="(?P<href>[^"]+)"[^>]+title="(?P<title>[^"]+)"', re.IGNORECASE)
CATEGORY_LINK_PATTERN = re.compile(
    r'<a[^>]+href="(?P<href>[^"]*/category/(?P<slug>[^"/]+)/)"[^>]+title="(?P<name>[^"]+)"',
    re.IGNORECASE,
)

THUMBNAIL_RULES = (
    FieldRule(r'<video[^>]+poster="([^"]+)"'),
    FieldRule(rf'data-perfmatters-preload[^>]*src="([^"]+{IMAGE_EXT}[^"]*)"'),
    FieldRule(rf'data-src="([^"]+{IMAGE_EXT}[^"]*)"', reject=("data:",)),
    FieldRule(rf'<img[^>]+src="([^"]+{IMAGE_EXT}[^"]*)"', reject=("data:",)),
)
RELATED_THUMBNAIL_RULES = (THUMBNAIL_RULES[0], THUMBNAIL_RULES[3])
DURATION_RULES = (FieldRule(r'<span[^>]*class="duration"[^>]*>([^<]+)<', transform=clean_text),)
CATEGORY_NAME_RULES = (FieldRule(r'<a[^>]+href="[^"]*/category/[^"/]+/?"[^>]*>([^<]+)<', transform=clean_text),)
TAG_NAME_RULES = (FieldRule(r'<a[^>]+href="[^"]*/tag/[^"/]+/?"[^>]*>([^<]+)<', transform=clean_text),)

DETAIL_ID_PATTERN = re.compile(r'<article[^>]+id="post-(\d+)"', re.IGNORECASE)
DETAIL_TITLE_RULES = (
    FieldRule(r'<h1[^>]*class="entry-title"[^>]*>([^<]+)<', transform=clean_text),
    FieldRule(r'<meta[^>]+property="og:title"[^>]+content="([^"]+)"', transform=clean_text),
)
DETAIL_THUMBNAIL_RULES = (FieldRule(r'<meta[^>]+property="og:image"[^>]+content="([^"]+)"'),)
DESCRIPTION_RULES = (FieldRule(r'<meta[^>]+name="description"[^>]+content="([^"]+)"', transform=clean_text),)
UPLOAD_DATE_RULES = (FieldRule(r'<meta[^>]+property="article:published_time"[^>]+content="([^"]+)"'),)

PLAYER_PATTERN = re.compile(r'<iframe[^>]*src="(?P<embed>[^"]+player-x\.php\?q=(?P<payload>[^"]+))"', re.IGNORECASE)
DECODED_SOURCE_RULES = (
    FieldRule(r'src=\\"([^\\]+\.mp4[^\\]*)\\"'),
    FieldRule(r'src="([^"]+\.mp4[^"]*)"'),
)

COUNT_RULES = (FieldRule(r"(\d[\d,]*)\s+videos?"),)


class KamababaProvider(BaseProvider):
    """Scraper for kamababa.desi."""

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def listing_url(self, page: int) -> str:
        return self.page_url(f"/page/{page}/") if page > 1 else self.page_url("/")

    def search_url(self, query: str, page: int) -> str:
        prefix = f"/page/{page}/" if page > 1 else "/"
        return self.page_url(f"{prefix}?s={quote_plus(query)}")

    def parse_listing(self, html: str, *, source: str) -> list[UnifiedVideoData]:
        return self.collect_items(
            ARTICLE_PATTERN.finditer(html),
            lambda article, index: self._parse_article(article.group("id"), article.group("body"), THUMBNAIL_RULES),
            source=source,
        )

    def _parse_article(self, post_id: str, body: str, thumbnail_rules: Rules) -> UnifiedVideoData:
        link = TITLE_LINK_PATTERN.search(body)
        if not link:
            raise ParseError(self.id, f"post {post_id}: missing title link")
        post_url = self.absolute(link.group("href"))
        title = self.require(clean_text(link.group("title")), "title")
        thumbnail = self.image_url(first_match(body, thumbnail_rules))

        return UnifiedVideoData(
            id=post_id,
            slug=slug_from_url(post_url) or post_id,
            title=title,
            provider=self.id,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            post_url=post_url,
            duration=first_match(body, DURATION_RULES),
            categories=dedupe(all_matches(body, CATEGORY_NAME_RULES)),
            tags=dedupe(all_matches(body, TAG_NAME_RULES)),
        )

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

    async def _scrape_video_details(self, slug: str, category_slug: Optional[str]) -> UnifiedVideoData:
        post_url = self.page_url(f"/{slug}/")
        try:
            html = await self.fetch_page(post_url)
        except FetchError as e:
            if e.status_code == 404:
                raise NotFoundError(self.id, f"No post found for slug '{slug}'") from e
            raise
        return self.parse_detail(html, slug=slug, post_url=post_url)

    def parse_detail(self, html: str, *, slug: str, post_url: str) -> UnifiedVideoData:
        """Build the full record from a post page, related thumbs included."""
        id_match = DETAIL_ID_PATTERN.search(html)
        post_id = id_match.group(1) if id_match else slug
        title = self.require(first_match(html, DETAIL_TITLE_RULES), "title")
        thumbnail = self.image_url(first_match(html, DETAIL_THUMBNAIL_RULES))
        embed_url, video_url = self.extract_player(html)

        return UnifiedVideoData(
            id=post_id,
            slug=slug,
            title=title,
            provider=self.id,
            thumbnail=thumbnail,
            thumbnail_url=thumbnail or None,
            video_url=video_url,
            embed_url=embed_url,
            post_url=post_url,
            description=first_match(html, DESCRIPTION_RULES),
            duration=first_match(html, DURATION_RULES),
            upload_date=first_match(html, UPLOAD_DATE_RULES),
            categories=dedupe(all_matches(html, CATEGORY_NAME_RULES)),
            tags=dedupe(all_matches(html, TAG_NAME_RULES)),
            related_videos=self.parse_related(html, exclude_id=post_id) or None,
        )

    def extract_player(self, html: str) -> tuple[Optional[str], Optional[str]]:
        """Return ``(embed_url, video_url)`` from the base64 player iframe."""
        player = PLAYER_PATTERN.search(html)
        if not player:
            return None, None
        embed_url = self.media_url(player.group("embed"))
        decoded = decode_base64(unquote(player.group("payload")))
        if not decoded:
            self.logger.debug("player_payload_undecodable", embed_url=embed_url)
            return embed_url, None
        source = first_match(unquote(decoded), DECODED_SOURCE_RULES)
        video_url = self.media_url(source.replace("\\", "")) if source else None
        return embed_url, video_url

    def parse_related(self, html: str, *, exclude_id: str) -> list[UnifiedVideoData]:
        """Thumb blocks other than the current post and the player itself."""
        articles = [
            article for article in ARTICLE_PATTERN.finditer(html)
            if article.group("id") != exclude_id
            and "player-x.php" not in article.group("body")
            and "<iframe" not in article.group("body")
        ]
        related = self.collect_items(
            articles,
            lambda article, index: self._parse_article(
                article.group("id"), article.group("body"), RELATED_THUMBNAIL_RULES
            ),
            source="related",
        )
        return [item.as_related() for item in related[: self.config.related_limit]]

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def _scrape_categories(self) -> list[UnifiedCategoryData]:
        html = await self.fetch_page(self.page_url("/categories/"))
        return self.parse_categories(html)

    def parse_categories(self, html: str) -> list[UnifiedCategoryData]:
        categories: list[UnifiedCategoryData] = []
        for article in extract_all(html, CATEGORY_ARTICLE_PATTERN):
            body = article.group("body")
            link = CATEGORY_LINK_PATTERN.search(body)
            if not link:
                continue
            thumbnail = self.image_url(first_match(body, RELATED_THUMBNAIL_RULES[1:]))
            categories.append(
                UnifiedCategoryData(
                    slug=link.group("slug"),
                    name=clean_text(link.group("name")),
                    url=self.absolute(link.group("href")),
                    provider=self.id,
                    count=parse_count(first_match(body, COUNT_RULES)),
                    thumbnail=thumbnail or None,
                )
            )
        return categories
