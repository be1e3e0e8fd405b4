"""Explicit wiring of the provider clients and services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from app.core.config import settings
from app.core.events import EventBus
from app.core.logging import get_logger
from app.core.slugs import SlugResolver
from app.ingestion.coingecko_source import CoinGeckoSource
from app.ingestion.opensea_source import OpenSeaSource
from app.services.asset_service import AssetEnrichmentService
from app.services.collection_service import CollectionDetailService
from app.services.listing_service import CollectionListService, FavoritesStore

log = get_logger("registry")


@dataclass
class ServiceContainer:
    """One instance of every service, passed down instead of module globals."""

    events: EventBus
    resolver: SlugResolver
    coingecko: CoinGeckoSource
    opensea: OpenSeaSource
    listing: CollectionListService
    details: CollectionDetailService
    assets: AssetEnrichmentService

    def close(self) -> None:
        self.listing.close()


def build_services(
    coingecko_transport: Optional[httpx.AsyncBaseTransport] = None,
    opensea_transport: Optional[httpx.AsyncBaseTransport] = None,
    favorites: Optional[FavoritesStore] = None,
) -> ServiceContainer:
    """Build the service graph from ``settings``.

    Transports are only overridden in tests.
    """
    events = EventBus()
    resolver = SlugResolver()
    coingecko = CoinGeckoSource.from_settings(transport=coingecko_transport)
    opensea = OpenSeaSource.from_settings(resolver=resolver, transport=opensea_transport)

    listing = CollectionListService(
        coingecko,
        events=events,
        favorites=favorites,
        page_size=settings.LIST_PAGE_SIZE,
        aggregate_cap=settings.LIST_AGGREGATE_CAP,
        page_delay=settings.PAGE_FETCH_DELAY_SECONDS,
        detail_prefetch=settings.DETAIL_PREFETCH_COUNT,
    )
    details = CollectionDetailService(
        coingecko,
        opensea,
        index=listing,
        events=events,
        asset_preview_limit=settings.ASSET_PREVIEW_LIMIT,
    )
    assets = AssetEnrichmentService(
        opensea,
        target_count=settings.ASSET_TARGET_COUNT,
        page_delay=settings.PAGE_FETCH_DELAY_SECONDS,
        concurrency=settings.PRICE_FETCH_CONCURRENCY,
    )

    if not settings.COINGECKO_API_KEY:
        log.warning("COINGECKO_API_KEY is not set; requests will use the keyless rate limit")
    if not settings.OPENSEA_API_KEY:
        log.warning("OPENSEA_API_KEY is not set; OpenSea enrichment will likely be rejected")

    return ServiceContainer(
        events=events,
        resolver=resolver,
        coingecko=coingecko,
        opensea=opensea,
        listing=listing,
        details=details,
        assets=assets,
    )
