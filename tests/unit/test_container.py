"""Unit tests for the dependency container."""

import pytest
from unittest.mock import AsyncMock, patch

from premiumhub.core import container as container_module
from premiumhub.core.container import (
    DependencyContainer,
    get_container,
    initialize_container,
    set_container,
    shutdown_container,
)
from premiumhub.providers.cache import InMemoryStore
from premiumhub.providers.fetcher import HtmlFetcher


class TestDependencyContainer:
    """Test container lifecycle."""

    def test_registry_before_initialize(self, settings, stub_fetcher):
        container = DependencyContainer(settings, fetcher=stub_fetcher)

        with pytest.raises(RuntimeError):
            _ = container.registry

        assert container.is_initialized is False

    @pytest.mark.asyncio
    async def test_initialize_bootstraps_registry(self, settings, stub_fetcher, memory_cache):
        container = DependencyContainer(settings, fetcher=stub_fetcher, cache=memory_cache)

        await container.initialize()

        assert container.is_initialized
        assert len(container.registry) == 5
        assert container.registry.get("kamababa").fetcher is stub_fetcher
        assert container.cache is memory_cache

    @pytest.mark.asyncio
    async def test_initialize_builds_cache(self, settings, stub_fetcher):
        container = DependencyContainer(settings, fetcher=stub_fetcher)

        await container.initialize()

        assert isinstance(container.cache.store, InMemoryStore)
        assert container.registry.get("webxseries").cache is container.cache

    @pytest.mark.asyncio
    async def test_initialize_twice_is_noop(self, settings, stub_fetcher, memory_cache):
        container = DependencyContainer(settings, fetcher=stub_fetcher, cache=memory_cache)
        await container.initialize()
        provider = container.registry.get("fsiblog5")

        await container.initialize()

        assert container.registry.get("fsiblog5") is provider

    @pytest.mark.asyncio
    async def test_shutdown_leaves_injected_fetcher_open(self, settings, memory_cache):
        fetcher = AsyncMock(spec=HtmlFetcher)
        container = DependencyContainer(settings, fetcher=fetcher, cache=memory_cache)
        await container.initialize()

        await container.shutdown()

        fetcher.aclose.assert_not_awaited()
        assert container.is_initialized is False

    @pytest.mark.asyncio
    async def test_shutdown_closes_owned_fetcher(self, settings, memory_cache):
        container = DependencyContainer(settings, cache=memory_cache)
        fetcher = container.fetcher

        with patch.object(fetcher, "aclose", new=AsyncMock()) as aclose:
            await container.shutdown()

        aclose.assert_awaited_once()


class TestGlobalContainer:
    """Test the module-level container helpers."""

    @pytest.mark.asyncio
    async def test_initialize_and_shutdown_installed_container(self, settings, stub_fetcher, memory_cache):
        container = DependencyContainer(settings, fetcher=stub_fetcher, cache=memory_cache)
        set_container(container)

        initialized = await initialize_container()

        assert initialized is container
        assert get_container() is container
        assert initialized.is_initialized

        await shutdown_container()

        assert container_module._container is None
        assert container.is_initialized is False

    def test_get_container_creates_default(self, settings):
        with patch.object(container_module, "get_settings", return_value=settings):
            container = get_container()

        assert container.settings is settings

        assert isinstance(container, DependencyContainer)
        assert get_container() is container
