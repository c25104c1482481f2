"""Provider cache with Redis and in-memory key-value stores.

``ProviderCache`` namespaces entries by (provider, resource, params) and
delegates storage to any ``KeyValueStore``. Expired entries read back as
absent. Concurrent writers are last-write-wins; a lost write only costs one
extra upstream fetch.

Usage:
    store = await get_cache_store(settings)
    cache = ProviderCache(store)

    videos = await cache.get("fsiblog5", "videos", {"page": 2})
    if videos is None:
        videos = await scrape()
        await cache.set("fsiblog5", "videos", videos, CacheDurations.VIDEOS, {"page": 2})
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

import structlog
from pydantic_core import to_jsonable_python
from redis.exceptions import RedisError

from premiumhub.config.settings import Settings
from premiumhub.monitoring.metrics import record_cache_lookup

logger = structlog.get_logger(__name__)


class CacheDurations:
    """Default TTLs in milliseconds, by resource class."""

    VIDEOS = 30 * 60 * 1000
    CATEGORIES = 60 * 60 * 1000
    VIDEO_DETAILS = 60 * 60 * 1000
    THUMBNAILS = 6 * 60 * 60 * 1000
    SEARCH = 15 * 60 * 1000


# =============================================================================
# Key-Value Stores
# =============================================================================


class KeyValueStore(Protocol):
    """Protocol for string key-value stores with per-entry TTL."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl_ms: int) -> None: ...

    async def delete_prefix(self, prefix: str) -> int: ...

    async def close(self) -> None: ...


@dataclass
class InMemoryStore:
    """
    Process-local store for development, tests or Redis fallback.

    WARNING: Not shared between application instances and lost on restart.
    """

    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, tuple[float, str]] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: str, ttl_ms: int) -> None:
        async with self._lock:
            self._entries[key] = (self.clock() + ttl_ms / 1000.0, value)

    async def delete_prefix(self, prefix: str) -> int:
        async with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    async def close(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisStore:
    """
    Redis-backed store shared across application instances.

    Entries are written with ``SET key value PX ttl`` so Redis owns expiry.

    Args:
        redis_url: Redis connection URL
    """

    def __init__(self, redis_url: str):
        self._redis_url = redis_url
        self._client = None
        self._connected = False

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._connected:
            return

        import redis.asyncio as redis

        try:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self._client.ping()
            self._connected = True
            logger.info("redis_cache_connected")
        except (RedisError, OSError) as e:
            logger.error("redis_cache_connection_failed", error=str(e))
            raise

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl_ms: int) -> None:
        await self._client.set(key, value, px=max(1, int(ttl_ms)))

    async def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        async for key in self._client.scan_iter(match=f"{prefix}*", count=200):
            deleted += await self._client.delete(key)
        return deleted

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._connected = False
            logger.info("redis_cache_disconnected")


_cache_store: Optional[KeyValueStore] = None


async def get_cache_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """
    Get or create the process-wide cache store.

    Uses Redis when ``REDIS_URL`` is configured and reachable, otherwise
    falls back to an in-memory store.
    """
    global _cache_store

    if _cache_store is not None:
        return _cache_store

    if settings is None:
        from premiumhub.config.settings import get_settings
        settings = get_settings()

    if settings.redis_url:
        try:
            redis_store = RedisStore(settings.redis_url)
            await redis_store.connect()
            _cache_store = redis_store
            logger.info("cache_store_initialized", backend="redis")
            return _cache_store
        except (RedisError, OSError) as e:
            logger.warning(
                "redis_cache_failed_fallback_to_memory",
                error=str(e),
            )

    _cache_store = InMemoryStore()
    logger.info("cache_store_initialized", backend="in_memory")
    return _cache_store


async def reset_cache_store() -> None:
    """Close and forget the process-wide store (shutdown and tests)."""
    global _cache_store
    if _cache_store is not None:
        await _cache_store.close()
    _cache_store = None


# =============================================================================
# Provider Cache
# =============================================================================


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "writes": self.writes,
            "errors": self.errors,
        }


class ProviderCache:
    """Namespaced TTL cache for scraper results.

    Values are stored as JSON; pydantic models are dumped with their
    camelCase aliases and must be re-validated by the reader. Store
    failures are logged and treated as misses so a broken cache never fails
    a scrape.
    """

    def __init__(
        self,
        store: KeyValueStore,
        prefix: str = "premiumhub:provider_v2",
        enabled: bool = True,
    ):
        self._store = store
        self._prefix = prefix
        self._enabled = enabled
        self._stats = CacheStats()

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def enabled(self) -> bool:
        return self._enabled

    def build_key(
        self,
        provider: str,
        resource: str,
        params: Optional[dict[str, Any]] = None,
    ) -> str:
        """Deterministic key: params are sorted by name and None values dropped."""
        key = f"{self._prefix}:{provider}:{resource}"
        if params:
            parts = [
                f"{name}={params[name]}"
                for name in sorted(params)
                if params[name] is not None
            ]
            if parts:
                key = f"{key}:{':'.join(parts)}"
        return key

    async def get(
        self,
        provider: str,
        resource: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Optional[Any]:
        """Return the decoded cached value, or None when absent or expired."""
        if not self._enabled:
            return None
        key = self.build_key(provider, resource, params)
        try:
            raw = await self._store.get(key)
        except (RedisError, OSError) as e:
            self._stats.errors += 1
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

        hit = raw is not None
        record_cache_lookup(provider, resource, hit)
        if not hit:
            self._stats.misses += 1
            return None

        try:
            value = json.loads(raw)
        except ValueError:
            self._stats.errors += 1
            logger.warning("cache_entry_corrupt", key=key)
            return None

        self._stats.hits += 1
        logger.debug("cache_hit", key=key)
        return value

    async def set(
        self,
        provider: str,
        resource: str,
        data: Any,
        ttl_ms: int,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        """Store ``data`` under the composed key for ``ttl_ms`` milliseconds."""
        if not self._enabled:
            return
        key = self.build_key(provider, resource, params)
        payload = json.dumps(to_jsonable_python(data, by_alias=True, exclude_none=True))
        try:
            await self._store.set(key, payload, ttl_ms)
        except (RedisError, OSError) as e:
            self._stats.errors += 1
            logger.warning("cache_write_failed", key=key, error=str(e))
            return
        self._stats.writes += 1

    async def clear_provider(self, provider: str) -> int:
        """Drop every entry of one provider, returning how many were removed."""
        removed = await self._store.delete_prefix(f"{self._prefix}:{provider}:")
        logger.info("cache_provider_cleared", provider=provider, removed=removed)
        return removed

    def stats(self) -> dict[str, int]:
        return self._stats.as_dict()
