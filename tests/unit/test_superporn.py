"""Unit tests for the Superporn JSON relay client."""

import pytest

from premiumhub.core.exceptions import FetchError
from tests.conftest import load_json_fixture

VIDEOS = "https://sp.relay.test/api/videos"
CATEGORIES = "https://sp.relay.test/api/categories"


@pytest.fixture
def provider(make_provider, stub_fetcher):
    stub_fetcher.pages[VIDEOS] = load_json_fixture("superporn_videos.json")
    return make_provider("superporn")


class TestListing:
    """Test relay record normalization."""

    @pytest.mark.asyncio
    async def test_invalid_records_dropped(self, provider):
        response = await provider.fetch_videos()

        assert response.success
        assert [item.id for item in response.data] == ["sp-1001", "sp-1002"]

    @pytest.mark.asyncio
    async def test_record_fields(self, provider):
        response = await provider.fetch_videos()
        pool = response.data[0]

        assert pool.slug == "sp-1001"
        assert pool.title == "Poolside & Sunset"
        assert pool.embed_url == "https://www.superporn.com/embed/sp-1001"
        assert pool.post_url == "https://www.superporn.com/video/poolside-sunset"
        assert pool.categories == ["outdoor"]
        assert pool.duration == "10:05"
        assert pool.thumbnail == (
            "https://img.relay.test/image-proxy/?url=https%3A%2F%2Fcdn.superporn.com%2Fthumbs%2Fsp-1001.jpg"
        )

    @pytest.mark.asyncio
    async def test_defaults_for_sparse_record(self, provider):
        response = await provider.fetch_videos()
        morning = response.data[1]

        assert morning.post_url == "https://www.superporn.com/video/sp-1002"
        assert morning.url == "/video/morning-routine"
        assert morning.duration == "0:00"
        assert morning.views == "0"
        assert morning.embed_url is None

    @pytest.mark.asyncio
    async def test_exact_pagination(self, provider):
        response = await provider.fetch_videos()

        assert response.pagination.current_page == 1
        assert response.pagination.total_pages == 3
        assert response.pagination.has_next_page is True

    @pytest.mark.asyncio
    async def test_page_and_category_urls(self, provider, stub_fetcher):
        payload = load_json_fixture("superporn_videos.json")
        stub_fetcher.pages["https://sp.relay.test/api/videos/2"] = payload
        stub_fetcher.pages["https://sp.relay.test/api/outdoor/2"] = payload

        videos = await provider.fetch_videos(page=2)
        category = await provider.fetch_category_videos("outdoor", page=2)

        assert videos.success and category.success
        assert videos.pagination.current_page == 2
        assert all(item.categories == ["outdoor"] for item in category.data)

    @pytest.mark.asyncio
    async def test_search_params(self, provider, stub_fetcher):
        stub_fetcher.pages["https://sp.relay.test/search?page=1&q=pool"] = load_json_fixture(
            "superporn_videos.json"
        )

        response = await provider.search_videos("pool")

        assert response.success
        assert len(response.data) == 2

    @pytest.mark.asyncio
    async def test_payload_without_videos_is_parse_error(self, provider, stub_fetcher):
        stub_fetcher.pages[VIDEOS] = {"error": "blocked"}

        response = await provider.fetch_videos()

        assert response.success is False
        assert response.error_kind == "ParseError"

    @pytest.mark.asyncio
    async def test_missing_relay_is_configuration_error(self, make_provider, stub_fetcher):
        provider = make_provider("superporn", cached=False, superporn_api_url="")

        response = await provider.fetch_videos()

        assert response.error_kind == "ConfigurationError"
        assert stub_fetcher.calls == []


class TestDetails:
    """Test lookup of an id in the current listings."""

    @pytest.mark.asyncio
    async def test_found_in_home_listing(self, provider):
        response = await provider.get_video_details("sp-1002")

        assert response.success
        assert response.data.title == "Morning Routine"

    @pytest.mark.asyncio
    async def test_category_searched_first(self, provider, stub_fetcher):
        stub_fetcher.pages["https://sp.relay.test/api/outdoor"] = load_json_fixture("superporn_videos.json")

        response = await provider.get_video_details("sp-1001", category_slug="outdoor")

        assert response.success
        assert stub_fetcher.count(VIDEOS) == 0

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, provider):
        response = await provider.get_video_details("sp-9999")

        assert response.success is False
        assert response.error_kind == "NotFoundError"


class TestCategories:
    """Test the merged multi-page category list."""

    @pytest.mark.asyncio
    async def test_pages_merged_without_duplicates(self, provider, stub_fetcher):
        stub_fetcher.pages[CATEGORIES] = load_json_fixture("superporn_categories.json")
        stub_fetcher.pages[f"{CATEGORIES}/2"] = load_json_fixture("superporn_categories_2.json")

        response = await provider.get_categories()

        assert response.success
        assert [category.slug for category in response.data] == ["outdoor", "amateur", "couple"]
        outdoor = response.data[0]
        assert outdoor.count == 1520
        assert outdoor.url == "https://www.superporn.com/category/outdoor"
        assert outdoor.thumbnail.startswith("https://img.relay.test/image-proxy/?url=")
        assert response.data[1].count == 2500
        assert response.data[2].count == 640
        assert stub_fetcher.count(f"{CATEGORIES}/5") == 1

    @pytest.mark.asyncio
    async def test_every_page_failing_is_fetch_error(self, provider, stub_fetcher):
        stub_fetcher.pages[CATEGORIES] = FetchError(
            "superporn", "HTTP 502: Bad Gateway", url=CATEGORIES, status_code=502
        )

        response = await provider.get_categories()

        assert response.success is False
        assert response.error_kind == "FetchError"
