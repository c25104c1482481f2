"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- settings: Settings with every relay pointed at a *.relay.test host
- stub_fetcher: Fetcher double serving canned pages instead of the network
- memory_cache: ProviderCache over an InMemoryStore driven by a fake clock
- make_provider: Builds a real scraper wired to the stub fetcher
"""

import json
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlencode

import pytest

from premiumhub.config.settings import Settings
from premiumhub.core import container as container_module
from premiumhub.core.circuit_breaker import reset_all_circuit_breakers
from premiumhub.core.exceptions import ConfigurationError, FetchError
from premiumhub.providers import cache as cache_module
from premiumhub.providers.cache import InMemoryStore, ProviderCache
from premiumhub.providers.config import build_provider_configs
from premiumhub.providers.implementations import PROVIDER_CLASSES

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FSIBLOG_RELAY = "https://fsiblog.relay.test"
KAMABABA_RELAY = "https://kamababa.relay.test"
INDIANPORNHQ_RELAY = "https://iphq.relay.test"
XHAMSTER_RELAY = "https://xh.relay.test"
SUPERPORN_API = "https://sp.relay.test/api"
SUPERPORN_SEARCH = "https://sp.relay.test/search"
IMAGE_PROXY = "https://img.relay.test/image-proxy"


def load_fixture(name: str) -> str:
    """Return the text of a saved page under tests/fixtures/."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def load_json_fixture(name: str) -> Any:
    return json.loads(load_fixture(name))


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubFetcher:
    """Drop-in for HtmlFetcher serving canned responses keyed by target URL.

    ``pages`` values are page text, decoded JSON or an exception to raise.
    Unknown URLs fail like an upstream 404. JSON requests with params are
    keyed as ``url?<sorted urlencoded params>``.
    """

    def __init__(
        self,
        pages: Optional[dict[str, Any]] = None,
        assets: Optional[dict[str, Any]] = None,
    ):
        self.pages: dict[str, Any] = dict(pages or {})
        self.assets: dict[str, Any] = dict(assets or {})
        self.calls: list[str] = []

    def _lookup(self, table: dict[str, Any], key: str, provider: str) -> Any:
        self.calls.append(key)
        if key not in table:
            raise FetchError(provider, "HTTP 404: page not found", url=key, status_code=404)
        value = table[key]
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_html(
        self,
        url: str,
        *,
        provider: str = "unknown",
        relay_url: Optional[str] = None,
        requires_relay: bool = False,
    ) -> str:
        if requires_relay and not relay_url:
            raise ConfigurationError(
                f"[{provider}] a relay URL is required but none is configured",
                config_key=f"{provider}_worker_url",
            )
        return self._lookup(self.pages, url, provider)

    async def fetch_json(
        self,
        url: str,
        *,
        provider: str = "unknown",
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        key = f"{url}?{urlencode(sorted(params.items()))}" if params else url
        return self._lookup(self.pages, key, provider)

    async def fetch_asset(self, url: str, *, referer: Optional[str] = None) -> tuple[bytes, str]:
        return self._lookup(self.assets, url, "image-proxy")

    async def aclose(self) -> None:
        pass

    def count(self, url: str) -> int:
        return self.calls.count(url)


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """Fresh circuit breakers, cache store and container for every test."""
    reset_all_circuit_breakers()
    monkeypatch.setattr(cache_module, "_cache_store", None)
    monkeypatch.setattr(container_module, "_container", None)
    yield
    reset_all_circuit_breakers()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        app_env="development",
        log_level="WARNING",
        fsiblog_worker_url=FSIBLOG_RELAY,
        kamababa_worker_url=KAMABABA_RELAY,
        indianpornhq_worker_url=INDIANPORNHQ_RELAY,
        xhamster_worker_url=XHAMSTER_RELAY,
        superporn_api_url=SUPERPORN_API,
        superporn_search_url=SUPERPORN_SEARCH,
        image_proxy_url=IMAGE_PROXY,
        redis_url=None,
        cache_enabled=True,
        cache_prefix="test",
        circuit_failure_threshold=3,
        circuit_recovery_timeout=30.0,
        aggregate_timeout_seconds=5.0,
        cors_allowed_origins=["*"],
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(fake_clock) -> ProviderCache:
    return ProviderCache(InMemoryStore(clock=fake_clock), prefix="test")


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def make_provider(settings, stub_fetcher, memory_cache):
    """Factory for real scrapers wired to the stub fetcher.

    Usage:
        provider = make_provider("kamababa")
        provider = make_provider("kamababa", cached=False, kamababa_worker_url="")
    """

    def _make(provider_id: str, *, cached: bool = True, **overrides: Any):
        provider_settings = settings.model_copy(update=overrides) if overrides else settings
        config = build_provider_configs(provider_settings)[provider_id]
        return PROVIDER_CLASSES[provider_id](
            config,
            stub_fetcher,
            memory_cache if cached else None,
        )

    return _make
