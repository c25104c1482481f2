"""
PremiumHub - multi-provider video metadata scraping layer.

This package contains:
- providers: HTML/JSON scrapers, the unified data model, registry and cache
- api: FastAPI application exposing the provider contract
- config: Pydantic settings
- core: Exceptions, circuit breaker, logging setup and dependency container
- monitoring: Prometheus metrics
"""

__version__ = "0.1.0"
