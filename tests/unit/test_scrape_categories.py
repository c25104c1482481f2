"""Unit tests for the category dump script."""

import pytest
from tenacity import wait_none
from unittest.mock import AsyncMock, MagicMock

from premiumhub.providers.registry import ProviderRegistry
from premiumhub.providers.types import CategoryListResponse, UnifiedCategoryData
from scripts import scrape_categories
from tests.conftest import load_fixture


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(
        scrape_categories,
        "fetch_categories",
        scrape_categories.fetch_categories.retry_with(wait=wait_none()),
    )


def flaky_provider() -> MagicMock:
    """Provider that fails once, then answers."""
    provider = MagicMock()
    provider.id = "flaky"
    category = UnifiedCategoryData(
        slug="desi", name="Desi", url="https://flaky.test/category/desi/", provider="flaky"
    )
    provider.get_categories = AsyncMock(
        side_effect=[
            CategoryListResponse(success=False, error="HTTP 503: Service Unavailable", provider="flaky"),
            CategoryListResponse(success=True, data=[category], provider="flaky"),
        ]
    )
    return provider


@pytest.fixture
def registry(make_provider, stub_fetcher):
    stub_fetcher.pages["https://webxseries.to/ott/"] = load_fixture("webxseries_ott.html")
    registry = ProviderRegistry()
    registry.register("webxseries", make_provider("webxseries", cached=False))
    registry.register("kamababa", make_provider("kamababa", cached=False))
    registry.register("flaky", flaky_provider())
    return registry


class TestScrape:
    """Test aggregation plus per-provider retries."""

    @pytest.mark.asyncio
    async def test_failed_provider_retried(self, registry):
        result = await scrape_categories.scrape(registry, ["webxseries", "flaky"])

        assert result["success"] is True
        assert result["errors"] == {}
        assert result["data"]["flaky"] == [
            {"slug": "desi", "name": "Desi", "url": "https://flaky.test/category/desi/", "provider": "flaky"}
        ]
        assert len(result["data"]["webxseries"]) == 3
        assert result["total"] == 4

    @pytest.mark.asyncio
    async def test_persistent_failure_reported(self, registry, stub_fetcher):
        result = await scrape_categories.scrape(registry, ["kamababa", "nope"])

        assert result["success"] is False
        assert "404" in result["errors"]["kamababa"]
        assert result["errors"]["nope"] == "Provider 'nope' is not registered"
        assert stub_fetcher.count("https://www.kamababa.desi/categories/") == 4

    @pytest.mark.asyncio
    async def test_categories_serialized_with_aliases(self, registry):
        result = await scrape_categories.scrape(registry, ["webxseries"])

        first = result["data"]["webxseries"][0]
        assert first["name"] == "ALT Balaji"
        assert first["provider"] == "webxseries"
        assert "count" in first
