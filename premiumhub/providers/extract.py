"""Text-pattern extraction helpers shared by every provider scraper.

Scrapers work on raw HTML strings with regular expressions rather than a DOM.
The repeated shape is block -> field -> first match of several patterns:
a listing page is cut into item blocks, and each field of a block is read
with an ordered tuple of ``FieldRule`` candidates where the first non-empty,
non-rejected match wins. Adding a fallback is adding a rule to the tuple.

Everything here is pure: no I/O, no clock, no randomness.
"""

import base64
import binascii
import html
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Pattern, Sequence, Union
from urllib.parse import quote, urljoin, urlparse

DEFAULT_FLAGS = re.IGNORECASE | re.DOTALL

PatternLike = Union[str, Pattern[str]]


def compile_pattern(pattern: PatternLike, flags: int = DEFAULT_FLAGS) -> Pattern[str]:
    """Compile ``pattern`` unless it already is a compiled regex."""
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, flags)


# =============================================================================
# Field Rules
# =============================================================================


@dataclass(frozen=True)
class FieldRule:
    """One candidate pattern for a field.

    Attributes:
        pattern: Regex applied with ``search``; compiled on construction.
        group: Group holding the value (index or name).
        reject: Values starting with any of these prefixes are skipped, so the
            next rule gets a chance (``data:`` placeholders, ``#`` links).
        contains: Values must contain one of these substrings when given.
        transform: Optional post-processing; returning a falsy value skips
            the rule.
    """

    pattern: PatternLike
    group: Union[int, str] = 1
    reject: tuple[str, ...] = ()
    contains: tuple[str, ...] = ()
    transform: Optional[Callable[[str], Optional[str]]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", compile_pattern(self.pattern))

    def apply(self, text: str) -> Optional[str]:
        """Return this rule's value in ``text`` or None."""
        match = self.pattern.search(text)
        if not match:
            return None
        value = match.group(self.group)
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        lowered = value.lower()
        if any(lowered.startswith(prefix) for prefix in self.reject):
            return None
        if self.contains and not any(token in lowered for token in self.contains):
            return None
        if self.transform is not None:
            value = self.transform(value)
        return value or None


Rules = Sequence[FieldRule]


def first_match(text: str, rules: Rules) -> Optional[str]:
    """Apply ``rules`` in order and return the first value found."""
    if not text:
        return None
    for rule in rules:
        value = rule.apply(text)
        if value:
            return value
    return None


def all_matches(text: str, rules: Rules) -> list[str]:
    """Collect every value of every rule, rules in order, matches in document order."""
    values: list[str] = []
    if not text:
        return values
    for rule in rules:
        for match in rule.pattern.finditer(text):
            raw = match.group(rule.group)
            if not raw:
                continue
            raw = raw.strip()
            lowered = raw.lower()
            if not raw or any(lowered.startswith(prefix) for prefix in rule.reject):
                continue
            if rule.contains and not any(token in lowered for token in rule.contains):
                continue
            value = rule.transform(raw) if rule.transform else raw
            if value:
                values.append(value)
    return values


# =============================================================================
# Raw Pattern Helpers
# =============================================================================


def extract_first(text: str, pattern: PatternLike, group: Union[int, str] = 1) -> Optional[str]:
    """Return the stripped ``group`` of the first match, or None when absent/empty."""
    if not text:
        return None
    match = compile_pattern(pattern).search(text)
    if not match:
        return None
    value = match.group(group)
    if value is None:
        return None
    value = value.strip()
    return value or None


def extract_all(text: str, pattern: PatternLike) -> list[re.Match]:
    """Return every match of ``pattern`` in document order."""
    if not text:
        return []
    return list(compile_pattern(pattern).finditer(text))


def find_blocks(text: str, pattern: PatternLike, limit: Optional[int] = None) -> list[str]:
    """Cut ``text`` into item blocks, one per match of ``pattern`` (group 0)."""
    blocks = [match.group(0) for match in extract_all(text, pattern)]
    return blocks[:limit] if limit is not None else blocks


def split_blocks(text: str, marker: str, limit: Optional[int] = None) -> list[str]:
    """Cut ``text`` at every occurrence of ``marker``.

    The chunk before the first marker is discarded; each block starts with
    the marker itself so attribute patterns anchored on it still apply.
    """
    if not text or marker not in text:
        return []
    chunks = text.split(marker)[1:]
    blocks = [marker + chunk for chunk in chunks]
    return blocks[:limit] if limit is not None else blocks


def section_after(text: str, heading_pattern: PatternLike, end_pattern: Optional[PatternLike] = None) -> str:
    """Return the text following ``heading_pattern``, cut at ``end_pattern`` if given."""
    match = compile_pattern(heading_pattern).search(text or "")
    if not match:
        return ""
    rest = text[match.end():]
    if end_pattern is not None:
        end = compile_pattern(end_pattern).search(rest)
        if end:
            rest = rest[: end.start()]
    return rest


# =============================================================================
# Text Cleanup
# =============================================================================

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", DEFAULT_FLAGS)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_tags(markup: Optional[str]) -> str:
    """Remove markup and return the visible text with collapsed whitespace."""
    if not markup:
        return ""
    text = _SCRIPT_STYLE_RE.sub(" ", markup)
    text = _COMMENT_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_text(value: Optional[str]) -> str:
    """Unescape entities and collapse whitespace without touching tags."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", html.unescape(value)).strip()


def dedupe(items: Iterable[Optional[str]]) -> list[str]:
    """Drop empty and repeated values, keeping first-seen order."""
    return list(dict.fromkeys(item for item in items if item))


# =============================================================================
# URL Helpers
# =============================================================================

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*:", re.IGNORECASE)
_SIZE_SUFFIX_RE = re.compile(r"-\d+x\d+(\.(?:jpg|jpeg|png|webp|gif))$", re.IGNORECASE)
_URL_TAIL_JUNK = "'\"()[];, \t\r\n"


def is_absolute(url: Optional[str]) -> bool:
    """True for http(s) URLs."""
    return bool(url) and url.lower().startswith(("http://", "https://"))


def normalize_url(url: Optional[str], base_url: str) -> str:
    """Absolute-ize a relative or protocol-relative URL against ``base_url``.

    Absolute URLs (any scheme) come back unchanged, so the function is
    idempotent. Empty input yields an empty string.
    """
    if not url:
        return ""
    url = html.unescape(url.strip())
    if not url:
        return ""
    if url.startswith("//"):
        return f"https:{url}"
    if _SCHEME_RE.match(url):
        return url
    return urljoin(base_url.rstrip("/") + "/", url)


def strip_size_suffix(url: str) -> str:
    """Turn ``photo-300x200.jpg`` into ``photo.jpg``; other URLs are unchanged."""
    if not url:
        return url
    path, sep, query = url.partition("?")
    stripped = _SIZE_SUFFIX_RE.sub(r"\1", path)
    return f"{stripped}{sep}{query}" if sep else stripped


def clean_url_tail(url: Optional[str]) -> str:
    """Trim quote, bracket and entity debris left behind by lazy-load markup."""
    if not url:
        return ""
    cleaned = url.replace("&quot;", "").replace("&#039;", "").strip()
    return cleaned.rstrip(_URL_TAIL_JUNK).lstrip(_URL_TAIL_JUNK)


def _relay_prefixes(relay_base_url: str) -> tuple[str, ...]:
    base = relay_base_url.rstrip("/")
    return (f"{base}/?url=", f"{base}?url=")


def is_proxied(url: str, relay_base_url: str) -> bool:
    """True when ``url`` already points at ``relay_base_url``."""
    if not url or not relay_base_url:
        return False
    return url.startswith(_relay_prefixes(relay_base_url))


def proxy_asset(url: Optional[str], relay_base_url: Optional[str]) -> str:
    """Wrap ``url`` as the ``url`` query parameter of a relay endpoint.

    Idempotent: a URL already routed through the same relay is returned as
    is. Without a relay, or for empty input, the URL is returned unchanged.
    """
    if not url:
        return ""
    if not relay_base_url or is_proxied(url, relay_base_url):
        return url
    return f"{relay_base_url.rstrip('/')}/?url={quote(url, safe='')}"


def slug_from_url(url: Optional[str]) -> str:
    """Last non-empty path segment of ``url``."""
    if not url:
        return ""
    path = urlparse(url).path if "://" in url else url.split("?", 1)[0]
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else ""


# =============================================================================
# Decoding
# =============================================================================


def decode_base64(value: Optional[str]) -> Optional[str]:
    """Decode standard or URL-safe base64 text, tolerating missing padding.

    Returns None when ``value`` is not valid base64 or not UTF-8 text.
    """
    if not value:
        return None
    data = value.strip()
    data += "=" * (-len(data) % 4)
    decoder = base64.urlsafe_b64decode if ("-" in data or "_" in data) else base64.b64decode
    try:
        raw = decoder(data)
    except (binascii.Error, ValueError):
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def parse_count(value: object) -> Optional[int]:
    """Read a display count such as ``"1,234 Videos"`` or ``"2.5K"`` as an int."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip().lower().replace(",", "")
    match = re.search(r"(\d+(?:\.\d+)?)\s*([km])?", text)
    if not match:
        return None
    number = float(match.group(1))
    multiplier = {"k": 1_000, "m": 1_000_000}.get(match.group(2) or "", 1)
    return int(number * multiplier)
