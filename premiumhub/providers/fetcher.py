"""Async HTTP fetcher for provider pages, JSON relays and image assets.

The fetcher is the only I/O boundary of the scraping layer. It can route a
request through a relay/worker (``{relay}/?url=<encoded target>``) and
fails fast with ConfigurationError when a provider that needs a relay has
none configured. It does not retry: callers own retry policy.

Each upstream host gets a circuit breaker, so a source site that is down
stops costing a full timeout on every request.
"""

from typing import Any, Optional
from urllib.parse import quote, urlparse

import httpx
import structlog

from premiumhub.config.settings import Settings, get_settings
from premiumhub.core.circuit_breaker import CircuitBreaker, get_circuit_breaker
from premiumhub.core.exceptions import ConfigurationError, FetchError, ParseError
from premiumhub.monitoring.metrics import record_upstream_fetch

logger = structlog.get_logger(__name__)


BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def relay_request_url(url: str, relay_url: str) -> str:
    """URL that asks ``relay_url`` to fetch ``url``."""
    return f"{relay_url.rstrip('/')}/?url={quote(url, safe='')}"


class HtmlFetcher:
    """Shared async HTTP client for all provider scrapers.

    Example:
        async with HtmlFetcher() as fetcher:
            html = await fetcher.fetch_html(
                "https://www.fsiblog5.com/page/2/",
                provider="fsiblog5",
                relay_url="https://fsiblog5.premiumhub.workers.dev",
                requires_relay=True,
            )
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the fetcher.

        Args:
            settings: Application settings. Defaults to get_settings().
            client: Pre-built client (tests pass one with a MockTransport).
                When omitted the fetcher creates and owns its own client.
        """
        self._settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HtmlFetcher":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._settings.http_timeout_seconds),
                headers={"User-Agent": self._settings.http_user_agent, **BROWSER_HEADERS},
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _breaker_for(self, request_url: str) -> CircuitBreaker:
        host = urlparse(request_url).netloc or "unknown"
        return get_circuit_breaker(
            f"upstream:{host}",
            failure_threshold=self._settings.circuit_failure_threshold,
            recovery_timeout=self._settings.circuit_recovery_timeout,
        )

    async def _get(
        self,
        url: str,
        *,
        provider: str,
        relay_url: Optional[str] = None,
        requires_relay: bool = False,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Issue one GET, directly or through a relay.

        Raises:
            ConfigurationError: A relay is required but not configured.
            FetchError: Network failure, non-2xx status or open circuit.
        """
        if requires_relay and not relay_url:
            raise ConfigurationError(
                f"[{provider}] a relay URL is required but none is configured",
                config_key=f"{provider}_worker_url",
            )

        request_url = relay_request_url(url, relay_url) if relay_url else url
        breaker = self._breaker_for(request_url)
        host = breaker.name.split(":", 1)[1]

        if not breaker.can_execute():
            recovery_time = breaker.time_until_recovery()
            logger.warning(
                "upstream_circuit_open",
                provider=provider,
                host=host,
                recovery_time=recovery_time,
            )
            raise FetchError(
                provider,
                f"Upstream {host} unavailable, retry in {recovery_time:.0f}s",
                url=url,
            )

        client = await self._ensure_client()
        try:
            response = await client.get(request_url, params=params, headers=headers)
        except httpx.HTTPError as e:
            await breaker.record_failure()
            record_upstream_fetch(host, "network_error")
            logger.warning(
                "upstream_request_failed",
                provider=provider,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise FetchError(provider, f"Request failed: {str(e) or type(e).__name__}", url=url) from e

        if response.status_code == 404:
            # Missing pages say nothing about host health
            record_upstream_fetch(host, "http_error")
            raise FetchError(provider, "HTTP 404: page not found", url=url, status_code=404)

        if not response.is_success:
            await breaker.record_failure()
            record_upstream_fetch(host, "http_error")
            logger.warning(
                "upstream_http_error",
                provider=provider,
                url=url,
                status_code=response.status_code,
            )
            raise FetchError(
                provider,
                f"HTTP {response.status_code}: {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )

        await breaker.record_success()
        record_upstream_fetch(host, "ok")
        return response

    async def fetch_html(
        self,
        url: str,
        *,
        provider: str = "unknown",
        relay_url: Optional[str] = None,
        requires_relay: bool = False,
    ) -> str:
        """Fetch ``url`` and return the response body as text."""
        response = await self._get(
            url,
            provider=provider,
            relay_url=relay_url,
            requires_relay=requires_relay,
        )
        logger.debug("html_fetched", provider=provider, url=url, size=len(response.content))
        return response.text

    async def fetch_json(
        self,
        url: str,
        *,
        provider: str = "unknown",
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Fetch ``url`` and decode the body as JSON.

        Raises:
            ParseError: The body is not valid JSON.
        """
        response = await self._get(
            url,
            provider=provider,
            params=params,
            headers={"Accept": "application/json"},
        )
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(provider, "Relay response is not valid JSON", {"url": url}) from e

    async def fetch_asset(
        self,
        url: str,
        *,
        referer: Optional[str] = None,
    ) -> tuple[bytes, str]:
        """Fetch a binary asset, returning its bytes and content type."""
        headers = {"Accept": "image/avif,image/webp,image/*,*/*;q=0.8"}
        if referer:
            headers["Referer"] = referer
        response = await self._get(url, provider="image-proxy", headers=headers)
        content_type = response.headers.get("content-type", "application/octet-stream")
        return response.content, content_type
