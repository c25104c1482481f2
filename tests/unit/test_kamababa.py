"""Unit tests for the Kamababa scraper against saved pages."""

import pytest

from premiumhub.core.exceptions import FetchError
from tests.conftest import load_fixture

HOME = "https://www.kamababa.desi/"
VIDEO_PAGE = "https://www.kamababa.desi/desi-bhabhi-bath/"
CATEGORIES_PAGE = "https://www.kamababa.desi/categories/"


@pytest.fixture
def provider(make_provider, stub_fetcher):
    stub_fetcher.pages[HOME] = load_fixture("kamababa_listing.html")
    return make_provider("kamababa")


class TestListing:
    """Test thumb-block parsing."""

    @pytest.mark.asyncio
    async def test_fetch_videos(self, provider):
        response = await provider.fetch_videos()

        assert response.success
        assert [item.slug for item in response.data] == ["desi-bhabhi-bath", "college-couple-hostel"]

    @pytest.mark.asyncio
    async def test_item_fields(self, provider):
        response = await provider.fetch_videos()
        bath, hostel = response.data

        assert bath.id == "501"
        assert bath.duration == "08:15"
        assert bath.categories == ["Bhabhi"]
        assert bath.tags == ["bath"]
        assert bath.thumbnail.startswith("https://kamababa.relay.test/?url=")
        assert bath.thumbnail.endswith("desi-bhabhi-bath.jpg")
        assert hostel.id == "502"
        assert hostel.title == "College Couple & Hostel"
        assert hostel.duration == "12:40"
        assert hostel.thumbnail.startswith("https://kamababa.relay.test/?url=")

    @pytest.mark.asyncio
    async def test_short_page_is_last(self, provider):
        response = await provider.fetch_videos()

        assert response.pagination.has_next_page is False
        assert response.pagination.total_pages == 1

    @pytest.mark.asyncio
    async def test_category_page_url(self, provider, stub_fetcher):
        url = "https://www.kamababa.desi/category/bhabhi/page/3/"
        stub_fetcher.pages[url] = load_fixture("kamababa_listing.html")

        response = await provider.fetch_category_videos("bhabhi", page=3)

        assert response.success
        assert response.pagination.current_page == 3
        assert stub_fetcher.count(url) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page,url",
        [
            (1, "https://www.kamababa.desi/?s=bhabhi+bath"),
            (2, "https://www.kamababa.desi/page/2/?s=bhabhi+bath"),
        ],
    )
    async def test_search_urls(self, provider, stub_fetcher, page, url):
        stub_fetcher.pages[url] = load_fixture("kamababa_listing.html")

        response = await provider.search_videos("bhabhi bath", page=page)

        assert response.success
        assert len(response.data) == 2

    @pytest.mark.asyncio
    async def test_missing_relay_is_configuration_error(self, make_provider, stub_fetcher):
        provider = make_provider("kamababa", cached=False, kamababa_worker_url="")

        response = await provider.fetch_videos()

        assert response.success is False
        assert response.error_kind == "ConfigurationError"
        assert stub_fetcher.calls == []


class TestDetails:
    """Test the post page and its base64 player."""

    @pytest.mark.asyncio
    async def test_video_details(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("kamababa_video.html")

        response = await provider.get_video_details("desi-bhabhi-bath")
        video = response.data

        assert response.success
        assert video.id == "501"
        assert video.video_url == "https://cdn.kamababa.desi/videos/bath.mp4"
        assert "player-x.php?q=" in video.embed_url
        assert video.tags == ["bath", "wife"]
        assert video.description == "Bhabhi bathing video recorded by her husband."
        assert video.upload_date == "2024-02-03T09:15:00+00:00"
        assert video.playable_url() == video.video_url

    @pytest.mark.asyncio
    async def test_related_videos(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("kamababa_video.html")

        response = await provider.get_video_details("desi-bhabhi-bath")

        assert [item.id for item in response.data.related_videos] == ["502"]

    @pytest.mark.asyncio
    async def test_unknown_slug_is_not_found(self, provider):
        response = await provider.get_video_details("gone-post")

        assert response.success is False
        assert response.error_kind == "NotFoundError"

    @pytest.mark.asyncio
    async def test_server_error_stays_fetch_error(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = FetchError(
            "kamababa", "HTTP 500: Internal Server Error", url=VIDEO_PAGE, status_code=500
        )

        response = await provider.get_video_details("desi-bhabhi-bath")

        assert response.error_kind == "FetchError"

    @pytest.mark.asyncio
    async def test_details_are_cached(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("kamababa_video.html")

        await provider.get_video_details("desi-bhabhi-bath")
        await provider.get_video_details("desi-bhabhi-bath")

        assert stub_fetcher.count(VIDEO_PAGE) == 1


class TestCategories:
    """Test the scraped category index."""

    @pytest.mark.asyncio
    async def test_categories(self, provider, stub_fetcher):
        stub_fetcher.pages[CATEGORIES_PAGE] = load_fixture("kamababa_categories.html")

        response = await provider.get_categories()
        bhabhi, college = response.data

        assert bhabhi.slug == "bhabhi"
        assert bhabhi.count == 1234
        assert bhabhi.thumbnail.startswith("https://kamababa.relay.test/?url=")
        assert college.slug == "college-girl"
        assert college.count == 87
        assert college.thumbnail is None


class TestRepeatedScrape:
    """Test that parsing the same pages twice yields the same records."""

    @pytest.mark.asyncio
    async def test_listing_and_details_stable(self, make_provider, stub_fetcher):
        stub_fetcher.pages[HOME] = load_fixture("kamababa_listing.html")
        stub_fetcher.pages[VIDEO_PAGE] = load_fixture("kamababa_video.html")
        stub_fetcher.pages[CATEGORIES_PAGE] = load_fixture("kamababa_categories.html")
        provider = make_provider("kamababa", cached=False)

        for call in (
            lambda: provider.fetch_videos(),
            lambda: provider.get_categories(),
            lambda: provider.get_video_details("desi-bhabhi-bath"),
        ):
            first = await call()
            second = await call()

            assert first.success
            assert first.to_json() == second.to_json()

        assert stub_fetcher.count(VIDEO_PAGE) == 2
