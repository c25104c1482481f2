"""Slug generation for routing to individual items.

Providers with real URL slugs reuse them. Providers whose listings expose no
stable per-item identifier get a generated slug of the form
``{title-slug}-{provider}-{index}``, where ``index`` is the item's position
in the listing it came from. Detail lookup re-fetches that listing and reads
the trailing index back.
"""

import re
import unicodedata
from typing import Optional

MAX_SLUG_LENGTH = 100

_NON_WORD_RE = re.compile(r"[^\w\s-]")
_SEPARATOR_RE = re.compile(r"[\s_-]+")
_INDEX_SUFFIX_RE = re.compile(r"-(\d+)$")


def generate_slug(text: Optional[str], max_length: int = MAX_SLUG_LENGTH) -> str:
    """Lowercase, drop punctuation, hyphenate whitespace, trim and truncate."""
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKD", text)
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    slug = _NON_WORD_RE.sub("", normalized.lower().strip())
    slug = _SEPARATOR_RE.sub("-", slug).strip("-")
    return slug[:max_length].rstrip("-")


def generate_video_slug(title: Optional[str], provider: str, index: int) -> str:
    """Title-derived, provider- and index-qualified slug.

    >>> generate_video_slug("Hot Desi Clip!", "indianpornhq", 2)
    'hot-desi-clip-indianpornhq-2'
    """
    base = generate_slug(title) or "video"
    return f"{base}-{provider}-{index}"


def parse_slug_index(slug: Optional[str]) -> Optional[int]:
    """Trailing positional index of a generated slug, or None."""
    if not slug:
        return None
    match = _INDEX_SUFFIX_RE.search(slug.strip().rstrip("/"))
    if not match:
        return None
    return int(match.group(1))
