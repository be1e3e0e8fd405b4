"""Collection detail aggregation across CoinGecko and OpenSea."""

from __future__ import annotations

import asyncio
from typing import Dict, Optional, Protocol

from app.core.events import DetailStateChanged, EventBus
from app.core.logging import get_logger
from app.ingestion.coingecko_source import CoinGeckoSource
from app.ingestion.opensea_source import OpenSeaSource
from app.schemas.coingecko import NFTCollection
from app.schemas.combined import CombinedCollection, DetailState

log = get_logger("collection_service")


class CollectionIndex(Protocol):
    """Anything that may already hold a CoinGecko record for an ID."""

    def get(self, collection_id: str) -> Optional[NFTCollection]:
        ...


class CollectionDetailService:
    """Builds the merged view of one collection.

    Flow per call::

        IDLE -> FETCHING_PRIMARY -> FAILED                      (error raised)
                                 -> FETCHING_SECONDARY -> MERGED          (OpenSea ok)
                                                       -> MERGED_PARTIAL  (OpenSea failed)

    CoinGecko failures are fatal and propagate. OpenSea failures are logged
    and yield a CoinGecko-only record.
    """

    def __init__(
        self,
        coingecko: CoinGeckoSource,
        opensea: OpenSeaSource,
        index: Optional[CollectionIndex] = None,
        events: Optional[EventBus] = None,
        asset_preview_limit: int = 10,
    ):
        self.coingecko = coingecko
        self.opensea = opensea
        self.index = index
        self.events = events or EventBus()
        self.asset_preview_limit = asset_preview_limit
        self._states: Dict[str, DetailState] = {}

    def state_of(self, collection_id: str) -> DetailState:
        """Latest state reached by a fetch for ``collection_id``."""
        return self._states.get(collection_id, DetailState.IDLE)

    def _transition(self, collection_id: str, state: DetailState) -> None:
        previous = self.state_of(collection_id)
        self._states[collection_id] = state
        log.debug(f"Detail {collection_id}: {previous.value} -> {state.value}")
        self.events.publish(DetailStateChanged(collection_id=collection_id, state=state))

    async def get_detail(self, collection_id: str) -> CombinedCollection:
        self._transition(collection_id, DetailState.FETCHING_PRIMARY)
        try:
            # Shielded: if the caller walks away the request still completes and is cached
            primary = await asyncio.shield(self._get_or_fetch_primary(collection_id))
        except asyncio.CancelledError:
            log.info(f"Detail fetch for {collection_id} abandoned by caller")
            self._transition(collection_id, DetailState.IDLE)
            raise
        except Exception as exc:
            log.error(f"Primary data unavailable for {collection_id}: {exc}")
            self._transition(collection_id, DetailState.FAILED)
            raise

        self._transition(collection_id, DetailState.FETCHING_SECONDARY)
        combined = CombinedCollection(coingecko=primary)
        slug = self.opensea.slug_for(collection_id)

        try:
            combined.opensea = await self.opensea.fetch_detail_by_slug(slug)
            page = await self.opensea.fetch_assets_by_slug(slug, limit=self.asset_preview_limit)
            combined.assets = page.assets
            log.info(f"OpenSea data loaded for [{collection_id}] (slug [{slug}])")
        except asyncio.CancelledError:
            self._transition(collection_id, DetailState.IDLE)
            raise
        except Exception as exc:  # noqa: BLE001
            # A detail fetched before the asset call failed is kept
            log.warning(f"OpenSea data unavailable for [{collection_id}] (slug [{slug}]): {exc}")

        self._transition(collection_id, combined.state)
        return combined

    async def _get_or_fetch_primary(self, collection_id: str) -> NFTCollection:
        if self.index is not None:
            existing = self.index.get(collection_id)
            if existing is not None and existing.is_detailed:
                log.debug(f"Using listed record for {collection_id}")
                return existing
        return await self.coingecko.fetch_detail(collection_id)
