"""
Core infrastructure modules for PremiumHub.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy
- circuit_breaker: Resilience pattern for upstream hosts
- logging: structlog configuration
- container: Dependency container (import from premiumhub.core.container)
"""

from premiumhub.core.exceptions import (
    PremiumHubError,
    RetryableError,
    PermanentError,
    ProviderError,
    FetchError,
    ParseError,
    NotFoundError,
    NotRegisteredError,
    ConfigurationError,
    CircuitBreakerOpenError,
)

from premiumhub.core.circuit_breaker import (
    CircuitBreaker,
    CircuitState,
    get_circuit_breaker,
    get_all_circuit_breakers,
    reset_all_circuit_breakers,
)

__all__ = [
    # Exceptions
    "PremiumHubError",
    "RetryableError",
    "PermanentError",
    "ProviderError",
    "FetchError",
    "ParseError",
    "NotFoundError",
    "NotRegisteredError",
    "ConfigurationError",
    "CircuitBreakerOpenError",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitState",
    "get_circuit_breaker",
    "get_all_circuit_breakers",
    "reset_all_circuit_breakers",
]
