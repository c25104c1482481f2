"""
Provider Scraping Layer.

One scraper per third-party site behind a common interface:

- fetcher: Async HTTP fetcher with relay support and per-host circuit breakers
- extract: Pure regex extraction and URL normalization helpers
- types: Unified data model and response envelope
- base: Abstract provider with caching, pagination and the failure boundary
- implementations/: The concrete scrapers
- registry: Provider lookup by id and explicit bootstrap
- cache: TTL cache over Redis or memory
- aggregate: Concurrent fan-out across providers

Example:
    from premiumhub.providers import bootstrap

    registry = await bootstrap()
    response = await registry.get_or_throw("kamababa").fetch_videos(page=1)
    payload = response.to_json()
"""

from premiumhub.providers.aggregate import AggregateResult, aggregate_categories, aggregate_search
from premiumhub.providers.base import BaseProvider, ListingPage
from premiumhub.providers.cache import CacheDurations, InMemoryStore, ProviderCache, RedisStore
from premiumhub.providers.config import ProviderConfig, ProviderFeatures, build_provider_configs
from premiumhub.providers.fetcher import HtmlFetcher
from premiumhub.providers.registry import ProviderRegistry, bootstrap
from premiumhub.providers.types import (
    CategoryListResponse,
    ContentType,
    Pagination,
    ProviderMetadata,
    ProviderResponse,
    UnifiedCategoryData,
    UnifiedVideoData,
    VideoListResponse,
    VideoResponse,
)

__all__ = [
    "AggregateResult",
    "aggregate_categories",
    "aggregate_search",
    "BaseProvider",
    "ListingPage",
    "CacheDurations",
    "InMemoryStore",
    "ProviderCache",
    "RedisStore",
    "ProviderConfig",
    "ProviderFeatures",
    "build_provider_configs",
    "HtmlFetcher",
    "ProviderRegistry",
    "bootstrap",
    "CategoryListResponse",
    "ContentType",
    "Pagination",
    "ProviderMetadata",
    "ProviderResponse",
    "UnifiedCategoryData",
    "UnifiedVideoData",
    "VideoListResponse",
    "VideoResponse",
]
