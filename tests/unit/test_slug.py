"""Unit tests for slug generation and index parsing."""

import pytest

from premiumhub.providers.slug import generate_slug, generate_video_slug, parse_slug_index


class TestGenerateSlug:
    """Test title to slug conversion."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Hot Desi Clip!", "hot-desi-clip"),
            ("  Train Journey & More  ", "train-journey-more"),
            ("Charmsukh – Jane Anjane 2", "charmsukh-jane-anjane-2"),
            ("under_score  and--dashes", "under-score-and-dashes"),
            ("Café Déjà Vu", "cafe-deja-vu"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_generate_slug(self, text, expected):
        assert generate_slug(text) == expected

    def test_truncates_without_trailing_dash(self):
        slug = generate_slug("word " * 40, max_length=12)

        assert len(slug) <= 12
        assert not slug.endswith("-")


class TestVideoSlug:
    """Test provider-qualified positional slugs."""

    def test_format(self):
        assert generate_video_slug("Hot Desi Clip!", "indianpornhq", 2) == "hot-desi-clip-indianpornhq-2"

    def test_blank_title_falls_back(self):
        assert generate_video_slug("!!!", "indianpornhq", 0) == "video-indianpornhq-0"

    @pytest.mark.parametrize("index", [0, 7, 39])
    def test_index_reads_back(self, index):
        slug = generate_video_slug("Village Bhabhi 2", "indianpornhq", index)

        assert parse_slug_index(slug) == index

    def test_title_digits_do_not_confuse_index(self):
        slug = generate_video_slug("Episode 12", "indianpornhq", 3)

        assert parse_slug_index(slug) == 3


class TestParseSlugIndex:
    """Test trailing index extraction."""

    @pytest.mark.parametrize(
        "slug,expected",
        [
            ("clip-indianpornhq-4", 4),
            ("clip-indianpornhq-4/", 4),
            ("plain-slug", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, slug, expected):
        assert parse_slug_index(slug) == expected
