"""Per-provider configuration records.

Capability differences between providers (search support, galleries,
category pagination, relay requirements) live here as data. Scrapers and
callers read these flags instead of branching on provider ids.
"""

from dataclasses import dataclass, field
from typing import Optional

from premiumhub.config.settings import Settings, get_settings
from premiumhub.providers.types import ProviderMetadata


@dataclass(frozen=True)
class ProviderFeatures:
    """Capability flags for one provider."""

    has_search: bool = True
    has_galleries: bool = False
    has_stories: bool = False
    has_dynamic_categories: bool = True
    paginates_categories: bool = True
    paginates_listing: bool = True
    requires_relay: bool = False

    def labels(self) -> list[str]:
        """Human-readable feature list for provider metadata."""
        labels = ["videos"]
        if self.has_galleries:
            labels.append("galleries")
        if self.has_stories:
            labels.append("stories")
        labels.append("search" if self.has_search else "title-filter search")
        labels.append("dynamic categories" if self.has_dynamic_categories else "static categories")
        if self.paginates_listing:
            labels.append("pagination")
        return labels


@dataclass(frozen=True)
class StaticCategory:
    slug: str
    name: str


@dataclass(frozen=True)
class ProviderConfig:
    """Everything a scraper needs to know about its source site.

    Attributes:
        relay_url: Worker used to fetch pages. Required when
            ``features.requires_relay`` is set.
        asset_relay_url: Relay used to proxy thumbnails and embeds; empty
            means assets are emitted unproxied.
        embed_relay_url: Worker that re-serves third-party embeds.
        items_per_page: Listing page size used for the has-next heuristic.
        max_pages: Upper bound on pages the provider is known to serve.
    """

    id: str
    name: str
    display_name: str
    base_url: str
    description: str = ""
    features: ProviderFeatures = field(default_factory=ProviderFeatures)
    relay_url: str = ""
    asset_relay_url: str = ""
    embed_relay_url: str = ""
    search_url: str = ""
    items_per_page: int = 12
    max_pages: Optional[int] = None
    max_items: Optional[int] = None
    related_limit: int = 12
    static_categories: tuple[StaticCategory, ...] = ()

    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            id=self.id,
            name=self.name,
            display_name=self.display_name,
            description=self.description,
            base_url=self.base_url,
            features=self.features.labels(),
            has_search=self.features.has_search,
            has_galleries=self.features.has_galleries,
            has_stories=self.features.has_stories,
            has_dynamic_categories=self.features.has_dynamic_categories,
            paginates_categories=self.features.paginates_categories,
        )


# =============================================================================
# Known Providers
# =============================================================================

FSIBLOG_CATEGORIES = (
    StaticCategory("blowjob", "Blowjob"),
    StaticCategory("couple", "Couple"),
    StaticCategory("cuckold", "Cuckold"),
    StaticCategory("nude-indian-girl", "Nude Indian Girl"),
    StaticCategory("indian-wife", "Indian Wife"),
    StaticCategory("college-girl", "College Girl"),
    StaticCategory("aunty", "Aunty"),
    StaticCategory("bhabhi", "Bhabhi"),
    StaticCategory("desi-mms", "Desi MMS"),
    StaticCategory("fingering", "Fingering"),
    StaticCategory("lesbian", "Lesbian"),
    StaticCategory("threesome", "Threesome"),
)


def fsiblog_config(settings: Settings) -> ProviderConfig:
    return ProviderConfig(
        id="fsiblog5",
        name="fsiblog5",
        display_name="FSIBlog",
        base_url="https://www.fsiblog5.com",
        description="Indian amateur videos, photo galleries and stories",
        features=ProviderFeatures(
            has_search=True,
            has_galleries=True,
            has_stories=True,
            has_dynamic_categories=False,
            paginates_categories=True,
            requires_relay=True,
        ),
        relay_url=settings.fsiblog_worker_url,
        asset_relay_url=settings.fsiblog_worker_url,
        items_per_page=12,
        max_pages=10,
        related_limit=9,
        static_categories=FSIBLOG_CATEGORIES,
    )


def indianpornhq_config(settings: Settings) -> ProviderConfig:
    return ProviderConfig(
        id="indianpornhq",
        name="indianpornhq",
        display_name="IndianPornHQ",
        base_url="https://www.indianpornhq.com",
        description="Desi videos with scraped categories",
        features=ProviderFeatures(
            has_search=False,
            has_dynamic_categories=True,
            paginates_categories=False,
            paginates_listing=False,
            requires_relay=False,
        ),
        asset_relay_url=settings.indianpornhq_worker_url,
        embed_relay_url=settings.xhamster_worker_url,
        items_per_page=40,
        max_items=40,
        related_limit=12,
    )


def kamababa_config(settings: Settings) -> ProviderConfig:
    return ProviderConfig(
        id="kamababa",
        name="kamababa",
        display_name="Kamababa",
        base_url="https://www.kamababa.desi",
        description="Desi videos served through a base64 player",
        features=ProviderFeatures(
            has_search=True,
            has_dynamic_categories=True,
            paginates_categories=True,
            requires_relay=True,
        ),
        relay_url=settings.kamababa_worker_url,
        asset_relay_url=settings.kamababa_worker_url,
        items_per_page=33,
        related_limit=12,
    )


def superporn_config(settings: Settings) -> ProviderConfig:
    return ProviderConfig(
        id="superporn",
        name="superporn",
        display_name="Superporn",
        base_url="https://www.superporn.com",
        description="International videos from a JSON relay",
        features=ProviderFeatures(
            has_search=True,
            has_dynamic_categories=True,
            paginates_categories=True,
            requires_relay=True,
        ),
        relay_url=settings.superporn_api_url,
        search_url=settings.superporn_search_url,
        asset_relay_url=settings.image_proxy_url,
        items_per_page=12,
        max_pages=20,
    )


def webxseries_config(settings: Settings) -> ProviderConfig:
    return ProviderConfig(
        id="webxseries",
        name="webxseries",
        display_name="WebXSeries",
        base_url="https://webxseries.to",
        description="OTT web series episodes grouped by platform",
        features=ProviderFeatures(
            has_search=True,
            has_dynamic_categories=True,
            paginates_categories=True,
            requires_relay=False,
        ),
        asset_relay_url=settings.image_proxy_url,
        items_per_page=20,
        related_limit=12,
    )


CONFIG_BUILDERS = {
    "fsiblog5": fsiblog_config,
    "indianpornhq": indianpornhq_config,
    "kamababa": kamababa_config,
    "superporn": superporn_config,
    "webxseries": webxseries_config,
}


def build_provider_configs(settings: Optional[Settings] = None) -> dict[str, ProviderConfig]:
    """Build the config record of every known provider from settings."""
    settings = settings or get_settings()
    return {provider_id: builder(settings) for provider_id, builder in CONFIG_BUILDERS.items()}
