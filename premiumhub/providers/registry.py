"""Provider registry for runtime dispatch by provider id.

The registry holds live scraper instances. Nothing registers itself on
import: call ``bootstrap()`` once at startup (the API lifespan does) to
build every known provider from settings.

Example:
    registry = await bootstrap()
    provider = registry.get_or_throw("fsiblog5")
    response = await provider.fetch_videos(page=2)
"""

from typing import Optional

import structlog

from premiumhub.config.settings import Settings, get_settings
from premiumhub.core.exceptions import NotRegisteredError
from premiumhub.providers.base import BaseProvider
from premiumhub.providers.cache import ProviderCache, get_cache_store
from premiumhub.providers.config import build_provider_configs
from premiumhub.providers.fetcher import HtmlFetcher
from premiumhub.providers.implementations import PROVIDER_CLASSES
from premiumhub.providers.types import ProviderMetadata

logger = structlog.get_logger(__name__)


class ProviderRegistry:
    """Mapping of provider id to scraper instance."""

    def __init__(self):
        self._providers: dict[str, BaseProvider] = {}
        self.bootstrapped = False

    def register(self, provider_id: str, provider: BaseProvider) -> None:
        """Register ``provider`` under ``provider_id``, replacing any previous one."""
        if provider_id in self._providers:
            logger.warning("provider_replaced", provider=provider_id)
        self._providers[provider_id] = provider
        logger.debug("provider_registered", provider=provider_id)

    def unregister(self, provider_id: str) -> Optional[BaseProvider]:
        return self._providers.pop(provider_id, None)

    def get(self, provider_id: str) -> Optional[BaseProvider]:
        return self._providers.get(provider_id)

    def get_or_throw(self, provider_id: str) -> BaseProvider:
        """Return the provider or raise NotRegisteredError.

        Raises:
            NotRegisteredError: No provider is registered under ``provider_id``.
        """
        provider = self._providers.get(provider_id)
        if provider is None:
            raise NotRegisteredError(provider_id, available=self.list())
        return provider

    def has(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def providers(self) -> list[BaseProvider]:
        return list(self._providers.values())

    def metadata(self) -> list[ProviderMetadata]:
        return [provider.metadata() for provider in self._providers.values()]

    def clear(self) -> None:
        self._providers.clear()
        self.bootstrapped = False

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    # Defined last: the name shadows the builtin for annotations below it
    def list(self) -> list[str]:
        """Registered provider ids, in registration order."""
        return [provider_id for provider_id in self._providers]


async def bootstrap(
    registry: Optional[ProviderRegistry] = None,
    *,
    settings: Optional[Settings] = None,
    fetcher: Optional[HtmlFetcher] = None,
    cache: Optional[ProviderCache] = None,
) -> ProviderRegistry:
    """Construct and register every known provider.

    Idempotent: a registry that was already bootstrapped is returned as is.

    Args:
        registry: Registry to fill. A new one is created when omitted.
        settings: Settings used for provider configs, fetcher and cache.
        fetcher: Shared fetcher. Created from settings when omitted.
        cache: Shared provider cache. Built on ``get_cache_store`` when
            omitted and caching is enabled.
    """
    registry = registry if registry is not None else ProviderRegistry()
    if registry.bootstrapped:
        logger.debug("registry_already_bootstrapped", providers=registry.list())
        return registry

    settings = settings or get_settings()
    fetcher = fetcher or HtmlFetcher(settings)
    if cache is None and settings.cache_enabled:
        store = await get_cache_store(settings)
        cache = ProviderCache(store, prefix=settings.cache_prefix)

    for provider_id, config in build_provider_configs(settings).items():
        provider_cls = PROVIDER_CLASSES[provider_id]
        registry.register(provider_id, provider_cls(config, fetcher, cache))

    registry.bootstrapped = True
    logger.info("registry_bootstrapped", providers=registry.list(), cache=cache is not None)
    return registry
