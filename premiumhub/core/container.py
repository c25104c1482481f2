"""
Dependency Container for PremiumHub.

Owns the long-lived objects of the scraping layer: settings, the shared
HTTP fetcher, the provider cache and the provider registry. The API
lifespan initializes one container and shuts it down on exit; tests build
their own with stub collaborators.

Usage:
    container = DependencyContainer()
    await container.initialize()

    provider = container.registry.get_or_throw("webxseries")

    await container.shutdown()
"""

from __future__ import annotations

import structlog

from premiumhub.config.settings import Settings, get_settings
from premiumhub.providers.cache import ProviderCache, get_cache_store, reset_cache_store
from premiumhub.providers.fetcher import HtmlFetcher
from premiumhub.providers.registry import ProviderRegistry, bootstrap

logger = structlog.get_logger(__name__)


class DependencyContainer:
    """
    Central container for the scraping layer's shared services.

    Example:
        container = DependencyContainer(settings)
        await container.initialize()
        registry = container.registry
        await container.shutdown()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        fetcher: HtmlFetcher | None = None,
        cache: ProviderCache | None = None,
    ):
        """
        Initialize the container.

        Args:
            settings: Application settings. Defaults to get_settings().
            fetcher: Pre-built fetcher; one is created from settings otherwise.
            cache: Pre-built provider cache; one is created on initialize()
                otherwise (unless caching is disabled).
        """
        self._settings = settings or get_settings()
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self._cache = cache
        self._registry = ProviderRegistry()
        self._initialized = False

        logger.info("dependency_container_created")

    @property
    def settings(self) -> Settings:
        """Get application settings."""
        return self._settings

    @property
    def fetcher(self) -> HtmlFetcher:
        """Get the shared fetcher (lazy initialization)."""
        if self._fetcher is None:
            self._fetcher = HtmlFetcher(self._settings)
            logger.info("html_fetcher_created")
        return self._fetcher

    @property
    def cache(self) -> ProviderCache | None:
        return self._cache

    @property
    def registry(self) -> ProviderRegistry:
        """
        Get the provider registry.

        Raises:
            RuntimeError: If accessed before initialization.
        """
        if not self._initialized:
            raise RuntimeError("Container not initialized. Call initialize() first.")
        return self._registry

    async def initialize(self) -> None:
        """
        Create the cache and bootstrap every provider.

        Call this at application startup.
        """
        if self._initialized:
            logger.warning("container_already_initialized")
            return

        logger.info("container_initializing")

        if self._cache is None and self._settings.cache_enabled:
            store = await get_cache_store(self._settings)
            self._cache = ProviderCache(store, prefix=self._settings.cache_prefix)

        await bootstrap(
            self._registry,
            settings=self._settings,
            fetcher=self.fetcher,
            cache=self._cache,
        )

        self._initialized = True
        logger.info("container_initialized", providers=self._registry.list())

    async def shutdown(self) -> None:
        """
        Release the HTTP client and cache connections.

        Call this at application shutdown.
        """
        logger.info("container_shutting_down")

        if self._fetcher is not None and self._owns_fetcher:
            await self._fetcher.aclose()
            logger.info("html_fetcher_closed")

        await reset_cache_store()

        self._registry.clear()
        self._initialized = False
        logger.info("container_shutdown_complete")

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized


# Global container instance for convenience
# Prefer passing container explicitly via dependency injection
_container: DependencyContainer | None = None


def get_container() -> DependencyContainer:
    """
    Get the global container instance.

    Creates one if it doesn't exist.
    """
    global _container
    if _container is None:
        _container = DependencyContainer()
    return _container


def set_container(container: DependencyContainer | None) -> None:
    """Replace the global container (tests install one with stub collaborators)."""
    global _container
    _container = container


async def initialize_container() -> DependencyContainer:
    """
    Initialize and return the global container.

    Convenience function for application startup.
    """
    container = get_container()
    await container.initialize()
    return container


async def shutdown_container() -> None:
    """
    Shutdown the global container.

    Convenience function for application shutdown.
    """
    global _container
    if _container is not None:
        await _container.shutdown()
        _container = None
