#!/usr/bin/env python3
"""Dump the category index of every provider as JSON.

Bootstraps the provider registry, runs the aggregated category scrape and
retries providers that failed before writing the result.

Usage:
    # Print all categories to the console
    python scripts/scrape_categories.py

    # Only two providers, saved to a file
    python scripts/scrape_categories.py --providers kamababa,webxseries --output categories.json
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from premiumhub.config import get_settings
from premiumhub.core.logging import configure_logging
from premiumhub.providers import ProviderRegistry, aggregate_categories, bootstrap
from premiumhub.providers.base import BaseProvider
from premiumhub.providers.fetcher import HtmlFetcher
from premiumhub.providers.types import CategoryListResponse

logger = structlog.get_logger(__name__)


class CategoryScrapeFailed(Exception):
    """A provider answered with a failed envelope."""

    def __init__(self, provider: str, error: Optional[str]):
        self.provider = provider
        self.error = error or "Unknown error"
        super().__init__(f"{provider}: {self.error}")


@retry(
    retry=retry_if_exception_type(CategoryScrapeFailed),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
async def fetch_categories(provider: BaseProvider) -> CategoryListResponse:
    """One provider's categories, retried while the envelope reports a failure."""
    response = await provider.get_categories()
    if not response.success:
        logger.warning("category_scrape_retrying", provider=provider.id, error=response.error)
        raise CategoryScrapeFailed(provider.id, response.error)
    return response


async def scrape(registry: ProviderRegistry, provider_ids: Optional[list[str]]) -> dict[str, Any]:
    """Aggregate categories, then retry each registered provider that failed."""
    result = await aggregate_categories(registry, provider_ids)
    data = {
        provider_id: [category.model_dump(mode="json", by_alias=True, exclude_none=True) for category in items]
        for provider_id, items in result.data.items()
    }
    errors = dict(result.errors)

    for provider_id in list(errors):
        provider = registry.get(provider_id)
        if provider is None:
            continue
        try:
            response = await fetch_categories(provider)
        except CategoryScrapeFailed as e:
            errors[provider_id] = e.error
            continue
        data[provider_id] = response.to_json().get("data", [])
        del errors[provider_id]

    return {
        "success": bool(data),
        "providers": result.providers,
        "total": sum(len(items) for items in data.values()),
        "data": data,
        "errors": errors,
    }


async def run(provider_ids: Optional[list[str]]) -> dict[str, Any]:
    settings = get_settings()
    async with HtmlFetcher(settings) as fetcher:
        registry = await bootstrap(settings=settings, fetcher=fetcher)
        return await scrape(registry, provider_ids)


def main() -> int:
    """Main entry point for the scrape script."""
    parser = argparse.ArgumentParser(
        description="Scrape the category index of PremiumHub providers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Every provider, printed to the console
    python scripts/scrape_categories.py

    # Selected providers, saved to a file
    python scripts/scrape_categories.py -p kamababa,webxseries -o categories.json
        """,
    )
    parser.add_argument(
        "--providers", "-p",
        type=str,
        help="Comma-separated provider ids (default: all registered providers)",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        help="Save JSON to file instead of printing",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log at DEBUG level",
    )
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else "WARNING")
    provider_ids = [p.strip() for p in args.providers.split(",") if p.strip()] if args.providers else None

    result = asyncio.run(run(provider_ids))
    output = json.dumps(result, indent=2, ensure_ascii=False)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Categories saved to: {args.output} ({result['total']} total)")
    else:
        print(output)

    for provider_id, error in result["errors"].items():
        print(f"  {provider_id}: {error}", file=sys.stderr)
    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
