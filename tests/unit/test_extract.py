"""Unit tests for the regex extraction and URL helpers."""

import pytest

from premiumhub.providers.extract import (
    FieldRule,
    all_matches,
    clean_text,
    clean_url_tail,
    decode_base64,
    dedupe,
    extract_first,
    find_blocks,
    first_match,
    is_proxied,
    normalize_url,
    parse_count,
    proxy_asset,
    section_after,
    slug_from_url,
    split_blocks,
    strip_size_suffix,
    strip_tags,
)

BASE = "https://www.example-source.test"
RELAY = "https://relay.example.test"


class TestFieldRules:
    """Test ordered rule matching."""

    def test_first_rule_wins(self):
        rules = (
            FieldRule(r'data-src="([^"]+)"'),
            FieldRule(r'src="([^"]+)"'),
        )
        html = '<img src="/a.jpg" data-src="/b.jpg">'

        assert first_match(html, rules) == "/b.jpg"

    def test_rejected_prefix_falls_through(self):
        rules = (
            FieldRule(r'data-src="([^"]+)"', reject=("data:",)),
            FieldRule(r' src="([^"]+)"'),
        )
        html = '<img data-src="data:image/gif;base64,AAAA" src="/real.jpg">'

        assert first_match(html, rules) == "/real.jpg"

    def test_contains_filter(self):
        rule = FieldRule(r'href="([^"]+)"', contains=("/video/",))

        assert rule.apply('<a href="/about/">') is None
        assert rule.apply('<a href="/video/x/">') == "/video/x/"

    def test_transform_applied(self):
        rule = FieldRule(r"<h1>(.*?)</h1>", transform=clean_text)

        assert rule.apply("<h1>Tom &amp;   Jerry</h1>") == "Tom & Jerry"

    def test_empty_value_is_no_match(self):
        rule = FieldRule(r'title="([^"]*)"')

        assert rule.apply('<a title="   ">') is None
        assert first_match("", (rule,)) is None

    def test_all_matches_document_order(self):
        rules = (FieldRule(r'<a href="/tag/[^"]+">([^<]+)</a>'),)
        html = '<a href="/tag/x">one</a> <a href="/tag/y">two</a>'

        assert all_matches(html, rules) == ["one", "two"]

    def test_named_group(self):
        rule = FieldRule(r'id="post-(?P<id>\d+)"', group="id")

        assert rule.apply('<article id="post-42">') == "42"


class TestBlocks:
    """Test cutting pages into item blocks."""

    def test_find_blocks_with_limit(self):
        html = "<li>a</li><li>b</li><li>c</li>"

        assert find_blocks(html, r"<li>.*?</li>") == ["<li>a</li>", "<li>b</li>", "<li>c</li>"]
        assert find_blocks(html, r"<li>.*?</li>", limit=2) == ["<li>a</li>", "<li>b</li>"]

    def test_split_blocks_keeps_marker(self):
        html = 'head<div class="kmq">one<div class="kmq">two'

        blocks = split_blocks(html, '<div class="kmq"')

        assert blocks == ['<div class="kmq">one', '<div class="kmq">two']

    def test_split_blocks_without_marker(self):
        assert split_blocks("<p>nothing</p>", '<div class="kmq"') == []

    def test_section_after(self):
        html = "<p>a</p><h2>Related</h2><p>b</p></section><p>c</p>"

        assert section_after(html, r"<h2>Related</h2>", r"</section>") == "<p>b</p>"
        assert section_after(html, r"<h2>Missing</h2>") == ""

    def test_extract_first_strips(self):
        assert extract_first("<b>  bold  </b>", r"<b>(.*?)</b>") == "bold"
        assert extract_first("<b></b>", r"<b>(.*?)</b>") is None


class TestTextCleanup:
    """Test markup and entity cleanup."""

    def test_strip_tags(self):
        assert strip_tags("Bhabhi <em>Album</em>\n &amp; more") == "Bhabhi Album & more"

    def test_strip_tags_drops_scripts(self):
        assert strip_tags("<script>var x = 1;</script><p>Text</p>") == "Text"

    def test_clean_text_keeps_tags(self):
        assert clean_text("  a&#039;b \n c ") == "a'b c"

    def test_dedupe_keeps_order(self):
        assert dedupe(["b", "a", None, "b", "", "c"]) == ["b", "a", "c"]


class TestUrlHelpers:
    """Test URL normalization and relay wrapping."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("/video/x/", f"{BASE}/video/x/"),
            ("video/x/", f"{BASE}/video/x/"),
            ("//cdn.example.test/a.jpg", "https://cdn.example.test/a.jpg"),
            ("https://other.test/a.jpg", "https://other.test/a.jpg"),
            ("data:image/gif;base64,AAAA", "data:image/gif;base64,AAAA"),
            ("", ""),
        ],
    )
    def test_normalize_url(self, url, expected):
        assert normalize_url(url, BASE) == expected

    def test_normalize_url_idempotent(self):
        once = normalize_url("//cdn.example.test/a.jpg", BASE)

        assert normalize_url(once, BASE) == once

    def test_normalize_url_unescapes_entities(self):
        assert normalize_url("/embed/?i=1&amp;a=0", BASE) == f"{BASE}/embed/?i=1&a=0"

    def test_proxy_asset_wraps(self):
        proxied = proxy_asset("https://cdn.example.test/a b.jpg", RELAY)

        assert proxied == f"{RELAY}/?url=https%3A%2F%2Fcdn.example.test%2Fa%20b.jpg"

    def test_proxy_asset_idempotent(self):
        once = proxy_asset("https://cdn.example.test/a.jpg", RELAY)

        assert proxy_asset(once, RELAY) == once
        assert proxy_asset(once, RELAY + "/") == once
        assert is_proxied(once, RELAY)

    def test_proxy_asset_without_relay(self):
        assert proxy_asset("https://cdn.example.test/a.jpg", "") == "https://cdn.example.test/a.jpg"
        assert proxy_asset("", RELAY) == ""

    def test_strip_size_suffix(self):
        assert strip_size_suffix("https://x.test/img-300x200.jpg") == "https://x.test/img.jpg"
        assert strip_size_suffix("https://x.test/img-300x200.webp?v=2") == "https://x.test/img.webp?v=2"
        assert strip_size_suffix("https://x.test/img-final.jpg") == "https://x.test/img-final.jpg"

    def test_clean_url_tail(self):
        assert clean_url_tail("https://x.test/a.jpg&quot;);") == "https://x.test/a.jpg"
        assert clean_url_tail(None) == ""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://x.test/desi-mms/couple-night/", "couple-night"),
            ("/video/clip/", "clip"),
            ("https://x.test/", ""),
            ("/search?q=a", "search"),
        ],
    )
    def test_slug_from_url(self, url, expected):
        assert slug_from_url(url) == expected


class TestDecoding:
    """Test base64 payload decoding and count parsing."""

    def test_decode_base64_standard(self):
        assert decode_base64("aGVsbG8gd29ybGQ=") == "hello world"

    def test_decode_base64_missing_padding(self):
        assert decode_base64("aGVsbG8gd29ybGQ") == "hello world"

    def test_decode_base64_invalid(self):
        assert decode_base64("a") is None
        assert decode_base64("////") is None
        assert decode_base64(None) is None

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1,234 Videos", 1234),
            ("2.5K", 2500),
            ("1M views", 1_000_000),
            (87, 87),
            ("no digits", None),
            (None, None),
            (True, None),
        ],
    )
    def test_parse_count(self, value, expected):
        assert parse_count(value) == expected
