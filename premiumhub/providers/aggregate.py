"""Cross-provider fan-out for categories and search.

Every selected provider runs concurrently. A provider that fails, or an id
that is not registered, is reported in ``errors`` and never fails the
aggregate: the result is successful as soon as one provider answered.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional

import structlog

from premiumhub.providers.base import BaseProvider
from premiumhub.providers.registry import ProviderRegistry
from premiumhub.providers.types import ProviderResponse

logger = structlog.get_logger(__name__)


@dataclass
class AggregateResult:
    """Merged outcome of one fan-out.

    Attributes:
        success: At least one provider succeeded.
        data: Provider id -> that provider's items, successful providers only.
        errors: Provider id -> error message.
        providers: Provider ids that were asked, in request order.
    """

    success: bool
    data: dict[str, list[Any]] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    providers: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(items) for items in self.data.values())

    def flatten(self) -> list[Any]:
        """All items, grouped by provider in request order."""
        return [item for provider_id in self.providers for item in self.data.get(provider_id, [])]


def _select(
    registry: ProviderRegistry,
    provider_ids: Optional[Iterable[str]],
    errors: dict[str, str],
) -> list[BaseProvider]:
    if provider_ids is None:
        return registry.providers()
    selected = []
    for provider_id in provider_ids:
        provider = registry.get(provider_id)
        if provider is None:
            errors[provider_id] = f"Provider '{provider_id}' is not registered"
        else:
            selected.append(provider)
    return selected


async def _fan_out(
    operation: str,
    providers: list[BaseProvider],
    call: Callable[[BaseProvider], Awaitable[ProviderResponse]],
    errors: dict[str, str],
    requested: list[str],
) -> AggregateResult:
    outcomes = await asyncio.gather(*(call(provider) for provider in providers), return_exceptions=True)

    data: dict[str, list[Any]] = {}
    for provider, outcome in zip(providers, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            # Scrapers never raise; this only guards against a broken provider
            logger.error(
                "aggregate_provider_crashed",
                operation=operation,
                provider=provider.id,
                error=str(outcome),
                exc_info=outcome,
            )
            errors[provider.id] = f"Unexpected error: {type(outcome).__name__}"
        elif outcome.success:
            data[provider.id] = list(outcome.data or [])
        else:
            errors[provider.id] = outcome.error or "Unknown error"

    result = AggregateResult(
        success=bool(data),
        data=data,
        errors=errors,
        providers=requested,
    )
    logger.info(
        "aggregate_completed",
        operation=operation,
        succeeded=sorted(data),
        failed=sorted(errors),
        total=result.total,
    )
    return result


async def aggregate_categories(
    registry: ProviderRegistry,
    provider_ids: Optional[Iterable[str]] = None,
) -> AggregateResult:
    """Fetch the categories of every selected provider concurrently."""
    provider_ids = list(dict.fromkeys(provider_ids)) if provider_ids is not None else None
    errors: dict[str, str] = {}
    providers = _select(registry, provider_ids, errors)
    requested = provider_ids if provider_ids is not None else registry.list()

    return await _fan_out(
        "categories",
        providers,
        lambda provider: provider.get_categories(),
        errors,
        requested,
    )


async def aggregate_search(
    registry: ProviderRegistry,
    query: str,
    page: int = 1,
    provider_ids: Optional[Iterable[str]] = None,
    include_fallback_search: bool = False,
) -> AggregateResult:
    """Search every selected provider concurrently.

    Providers without native search are skipped unless
    ``include_fallback_search`` is set, in which case their title-filter
    fallback runs too.
    """
    provider_ids = list(dict.fromkeys(provider_ids)) if provider_ids is not None else None
    errors: dict[str, str] = {}
    providers = _select(registry, provider_ids, errors)
    if not include_fallback_search:
        skipped = [provider.id for provider in providers if not provider.features.has_search]
        if skipped:
            logger.debug("aggregate_search_skipped", providers=skipped)
        providers = [provider for provider in providers if provider.features.has_search]
    requested = [provider.id for provider in providers] + list(errors)

    return await _fan_out(
        "search",
        providers,
        lambda provider: provider.search_videos(query, page),
        errors,
        requested,
    )

