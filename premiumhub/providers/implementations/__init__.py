"""
Provider Scrapers.

One module per source site, all implementing BaseProvider:

- fsiblog: FSIBlog5 videos, galleries and stories (Elementor, via worker)
- indianpornhq: IndianPornHQ videos (no ids, index-based detail lookup)
- kamababa: Kamababa videos (base64 player payloads, via worker)
- superporn: Superporn videos from a JSON relay
- webxseries: WebXSeries OTT episodes

Example:
    from premiumhub.providers.implementations import PROVIDER_CLASSES

    provider_cls = PROVIDER_CLASSES["kamababa"]
    provider = provider_cls(config, fetcher, cache)
"""

from premiumhub.providers.base import BaseProvider
from premiumhub.providers.implementations.fsiblog import FsiBlogProvider
from premiumhub.providers.implementations.indianpornhq import IndianPornHQProvider
from premiumhub.providers.implementations.kamababa import KamababaProvider
from premiumhub.providers.implementations.superporn import SuperpornProvider
from premiumhub.providers.implementations.webxseries import WebXSeriesProvider

PROVIDER_CLASSES: dict[str, type[BaseProvider]] = {
    "fsiblog5": FsiBlogProvider,
    "indianpornhq": IndianPornHQProvider,
    "kamababa": KamababaProvider,
    "superporn": SuperpornProvider,
    "webxseries": WebXSeriesProvider,
}

__all__ = [
    "PROVIDER_CLASSES",
    "FsiBlogProvider",
    "IndianPornHQProvider",
    "KamababaProvider",
    "SuperpornProvider",
    "WebXSeriesProvider",
]
