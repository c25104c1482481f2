"""FastAPI dependency injection providers.

Route handlers reach the registry and fetcher through the global
``DependencyContainer`` that the application lifespan initializes.
"""

from premiumhub.core.container import DependencyContainer, get_container
from premiumhub.providers.cache import ProviderCache
from premiumhub.providers.fetcher import HtmlFetcher
from premiumhub.providers.registry import ProviderRegistry


def get_initialized_container() -> DependencyContainer:
    """
    Get the global container.

    Raises:
        RuntimeError: If the application startup has not run.
    """
    container = get_container()
    if not container.is_initialized:
        raise RuntimeError(
            "Container not initialized. Ensure the application startup event has run."
        )
    return container


def get_registry() -> ProviderRegistry:
    """Get the bootstrapped provider registry."""
    return get_initialized_container().registry


def get_fetcher() -> HtmlFetcher:
    """Get the shared HTTP fetcher."""
    return get_container().fetcher


def get_cache() -> ProviderCache | None:
    return get_container().cache
