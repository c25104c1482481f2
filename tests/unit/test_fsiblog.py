"""Unit tests for the FSIBlog scraper against saved pages."""

import pytest

from premiumhub.core.exceptions import FetchError
from premiumhub.providers.types import ContentType
from tests.conftest import load_fixture

HOME = "https://www.fsiblog5.com/"
VIDEO_PAGE = "https://www.fsiblog5.com/desi-mms/desi-couple-night/"
GALLERY_PAGE = "https://www.fsiblog5.com/photos/bhabhi-album/"


@pytest.fixture
def provider(make_provider, stub_fetcher):
    stub_fetcher.pages[HOME] = load_fixture("fsiblog_listing.html")
    return make_provider("fsiblog5")


class TestListing:
    """Test parsing of the Elementor post grid."""

    @pytest.mark.asyncio
    async def test_fetch_videos(self, provider):
        response = await provider.fetch_videos()

        assert response.success
        assert [item.id for item in response.data] == ["101", "102", "103"]
        assert [item.type for item in response.data] == [
            ContentType.PORN_VIDEO,
            ContentType.SEX_GALLERY,
            ContentType.SEX_STORY,
        ]

    @pytest.mark.asyncio
    async def test_video_item_fields(self, provider):
        response = await provider.fetch_videos()
        video = response.data[0]

        assert video.slug == "desi-couple-night"
        assert video.post_url == VIDEO_PAGE
        assert video.thumbnail == (
            "https://fsiblog.relay.test/?url=https%3A%2F%2Fwww.fsiblog5.com"
            "%2Fwp-content%2Fuploads%2F2024%2F01%2Fdesi-couple-night.jpg"
        )
        assert video.categories == ["desi-mms"]
        assert video.excerpt == "Late night video of a desi couple."

    @pytest.mark.asyncio
    async def test_gallery_and_story_items(self, provider):
        response = await provider.fetch_videos()
        gallery, story = response.data[1], response.data[2]

        assert gallery.title == "Bhabhi Album"
        assert gallery.categories == ["photos"]
        assert story.title == "Train Journey & More"
        assert story.thumbnail == ""

    @pytest.mark.asyncio
    async def test_short_page_has_no_next(self, provider):
        response = await provider.fetch_videos()

        assert response.pagination.current_page == 1
        assert response.pagination.has_next_page is False

    @pytest.mark.asyncio
    async def test_page_two_url(self, provider, stub_fetcher):
        stub_fetcher.pages["https://www.fsiblog5.com/page/2/"] = load_fixture("fsiblog_listing.html")

        response = await provider.fetch_videos(page=2)

        assert response.success
        assert response.pagination.current_page == 2

    @pytest.mark.asyncio
    async def test_category_listing_url(self, provider, stub_fetcher):
        url = "https://www.fsiblog5.com/category/desi-mms/page/2/"
        stub_fetcher.pages[url] = load_fixture("fsiblog_listing.html")

        response = await provider.fetch_category_videos("/category/desi-mms/", page=2)

        assert response.success
        assert stub_fetcher.count(url) == 1

    @pytest.mark.asyncio
    async def test_search_url(self, provider, stub_fetcher):
        stub_fetcher.pages["https://www.fsiblog5.com/?s=desi+couple"] = load_fixture("fsiblog_listing.html")

        response = await provider.search_videos("desi couple")

        assert response.success
        assert len(response.data) == 3

    @pytest.mark.asyncio
    async def test_missing_relay_is_configuration_error(self, make_provider, stub_fetcher):
        stub_fetcher.pages[HOME] = load_fixture("fsiblog_listing.html")
        provider = make_provider("fsiblog5", cached=False, fsiblog_worker_url="")

        response = await provider.fetch_videos()

        assert response.success is False
        assert response.error_kind == "ConfigurationError"
        assert stub_fetcher.calls == []


class TestDetails:
    """Test detail pages for each content type."""

    @pytest.mark.asyncio
    async def test_video_details_with_category(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("fsiblog_video.html")

        response = await provider.get_video_details("desi-couple-night", category_slug="desi-mms")
        video = response.data

        assert response.success
        assert video.id == "101"
        assert video.title == "Desi Couple Night"
        assert video.video_url == "https://cdn.fsiblog5.com/videos/desi-couple-night.mp4"
        assert video.categories == ["Desi MMS"]
        assert video.tags == ["couple", "night"]
        assert video.upload_date == "2024-01-12T18:30:00+00:00"
        assert video.description == "Late night video of a desi couple."
        assert stub_fetcher.count(HOME) == 0

    @pytest.mark.asyncio
    async def test_related_excludes_current_post(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("fsiblog_video.html")

        response = await provider.get_video_details("desi-couple-night", category_slug="desi-mms")
        related = response.data.related_videos

        assert [item.id for item in related] == ["201"]
        assert related[0].title == "Hostel Girls"
        assert related[0].related_videos is None

    @pytest.mark.asyncio
    async def test_post_url_resolved_from_listing(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("fsiblog_video.html")

        response = await provider.get_video_details("desi-couple-night")

        assert response.success
        assert response.data.post_url == VIDEO_PAGE
        assert stub_fetcher.count(HOME) == 1

    @pytest.mark.asyncio
    async def test_gallery_details(self, provider, stub_fetcher):
        stub_fetcher.pages[GALLERY_PAGE] = load_fixture("fsiblog_gallery.html")

        response = await provider.get_video_details("bhabhi-album", category_slug="photos")
        gallery = response.data

        assert gallery.type == ContentType.SEX_GALLERY
        assert gallery.title == "Bhabhi Album"
        assert len(gallery.gallery_images) == 5
        assert all(url.startswith("https://fsiblog.relay.test/?url=") for url in gallery.gallery_images)
        assert gallery.video_url is None
        assert gallery.categories == ["Bhabhi"]
        assert gallery.tags == ["saree"]

    @pytest.mark.asyncio
    async def test_unlisted_slug_uses_fallback_category(self, provider, stub_fetcher):
        url = "https://www.fsiblog5.com/blowjob/late-night-story/"
        stub_fetcher.pages[url] = load_fixture("fsiblog_video.html")

        response = await provider.get_video_details("late-night-story")

        assert response.success
        assert response.data.post_url == url
        assert stub_fetcher.count(url) == 1

    @pytest.mark.asyncio
    async def test_unknown_slug_is_not_found(self, provider):
        response = await provider.get_video_details("no-such-post")

        assert response.success is False
        assert response.error_kind == "NotFoundError"

    @pytest.mark.asyncio
    async def test_upstream_failure_is_fetch_error(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = FetchError(
            "fsiblog5", "HTTP 503: Service Unavailable", url=VIDEO_PAGE, status_code=503
        )

        response = await provider.get_video_details("desi-couple-night", category_slug="desi-mms")

        assert response.success is False
        assert response.error_kind == "FetchError"
        assert "503" in response.error


class TestCategories:
    """Test the static category list."""

    @pytest.mark.asyncio
    async def test_static_categories(self, provider, stub_fetcher):
        response = await provider.get_categories()

        assert response.success
        assert len(response.data) == 12
        assert response.data[0].url == "https://www.fsiblog5.com/category/blowjob/"
        assert stub_fetcher.calls == []


class TestRepeatedScrape:
    """Test that parsing the same pages twice yields the same records."""

    @pytest.mark.asyncio
    async def test_listing_and_details_stable(self, make_provider, stub_fetcher):
        stub_fetcher.pages[HOME] = load_fixture("fsiblog_listing.html")
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("fsiblog_video.html")
        stub_fetcher.pages[GALLERY_PAGE] = load_fixture("fsiblog_gallery.html")
        provider = make_provider("fsiblog5", cached=False)

        for call in (
            lambda: provider.fetch_videos(),
            lambda: provider.get_video_details("desi-couple-night", category_slug="desi-mms"),
            lambda: provider.get_video_details("bhabhi-album", category_slug="photos"),
        ):
            first = await call()
            second = await call()

            assert first.success
            assert first.to_json() == second.to_json()

        assert stub_fetcher.count(HOME) == 2
        assert stub_fetcher.count(VIDEO_PAGE) == 2
