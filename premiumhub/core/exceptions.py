"""
Core exception hierarchy for PremiumHub.

Provides standardized exception types with categorization for retry logic.
Provider scrapers raise these internally; the scraper boundary converts them
into the response envelope so they never reach the API layer as exceptions.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class PremiumHubError(Exception):
    """Base exception for all PremiumHub errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    @property
    def kind(self) -> str:
        """Short error kind used by the response envelope."""
        return type(self).__name__


class RetryableError(PremiumHubError):
    """
    Transient errors that may succeed on a later attempt.

    Examples: upstream 5xx, timeouts, relay hiccups.
    """

    pass


class PermanentError(PremiumHubError):
    """
    Errors that won't be fixed by retrying.

    Examples: unknown provider, missing relay configuration, slug not found.
    """

    pass


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(PremiumHubError):
    """Base exception for errors raised inside a provider scraper."""

    def __init__(
        self,
        provider: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.provider = provider
        self.reason = message
        super().__init__(f"[{provider}] {message}", details)


class FetchError(ProviderError, RetryableError):
    """Raised when the source site or relay cannot be reached or returns non-2xx."""

    def __init__(
        self,
        provider: str,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.url = url
        self.status_code = status_code
        details: dict[str, Any] = {}
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(provider, message, details or None)


class ParseError(ProviderError, PermanentError):
    """Raised when a required field cannot be extracted from fetched content."""

    pass


class NotFoundError(ProviderError, PermanentError):
    """Raised when a slug, category or listing index does not resolve."""

    pass


# =============================================================================
# Registry Errors
# =============================================================================


class NotRegisteredError(PermanentError):
    """Raised when an unknown provider id is requested from the registry."""

    def __init__(self, provider_id: str, available: Optional[list[str]] = None):
        self.provider_id = provider_id
        self.available = available or []
        super().__init__(
            f"Provider '{provider_id}' is not registered",
            {"provider_id": provider_id, "available": self.available},
        )


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Circuit Breaker
# =============================================================================


class CircuitBreakerOpenError(RetryableError):
    """Raised when circuit breaker is open and blocking requests."""

    def __init__(self, service: str, recovery_time: float):
        self.service = service
        self.recovery_time = recovery_time
        super().__init__(
            f"Circuit breaker open for {service}. Recovery in {recovery_time:.1f}s",
            {"service": service, "recovery_time": recovery_time},
        )
