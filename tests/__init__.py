"""
PremiumHub Test Suite.

- unit/: Extraction helpers, data model, cache, fetcher and every provider
  scraper against saved pages in fixtures/
- integration/: The FastAPI application end to end with a stub fetcher
- conftest.py: Shared fixtures and test doubles

Run tests with: pytest
Skip the API tests with: pytest -m "not integration"
"""
