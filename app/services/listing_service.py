"""Paged collection list with an aggregate cap, chain filter and favorites."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Set

from app.core.events import CollectionsUpdated, EventBus, FavoriteStatusChanged
from app.core.logging import get_logger
from app.ingestion.coingecko_source import CoinGeckoSource
from app.schemas.coingecko import NFTCollection

log = get_logger("listing_service")

ALL_CHAINS = "All Chains"
CHAIN_SYMBOLS: Dict[str, str] = {
    "Ethereum": "ETH",
    "Solana": "SOL",
    "Bitcoin": "BTC",
    "BNB Smart Chain": "BNB",
}


class FavoritesStore(Protocol):
    """Narrow view of wherever the user's favorites are persisted."""

    async def is_favorite(self, collection_id: str) -> bool:
        ...

    async def add_favorite(self, collection_id: str, collection: NFTCollection) -> None:
        ...

    async def remove_favorite(self, collection_id: str) -> None:
        ...

    async def get_favorite_ids(self) -> List[str]:
        ...


class InMemoryFavoritesStore:
    """Process-local favorites; insertion order is preserved."""

    def __init__(self) -> None:
        self._favorites: Dict[str, NFTCollection] = {}

    async def is_favorite(self, collection_id: str) -> bool:
        return collection_id in self._favorites

    async def add_favorite(self, collection_id: str, collection: NFTCollection) -> None:
        self._favorites[collection_id] = collection

    async def remove_favorite(self, collection_id: str) -> None:
        self._favorites.pop(collection_id, None)

    async def get_favorite_ids(self) -> List[str]:
        return list(self._favorites)


@dataclass
class ListState:
    collections: List[NFTCollection] = field(default_factory=list)
    filtered_collections: List[NFTCollection] = field(default_factory=list)
    current_page: int = 1
    has_more: bool = True
    is_loading: bool = False
    is_loading_more: bool = False
    chain_filter: str = ALL_CHAINS
    favorite_ids: Set[str] = field(default_factory=set)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.collections)


class CollectionListService:
    """Accumulates CoinGecko list pages up to a hard cap across all pages.

    ``has_more`` turns false once the cap is reached or a page comes back
    short after exclusion filtering. A forced refresh drops the CoinGecko
    cache and starts over from page 1 with an empty list.
    """

    def __init__(
        self,
        coingecko: CoinGeckoSource,
        events: Optional[EventBus] = None,
        favorites: Optional[FavoritesStore] = None,
        page_size: int = 35,
        aggregate_cap: int = 35,
        page_delay: float = 0.5,
        detail_prefetch: int = 5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if page_size < 1 or aggregate_cap < 1:
            raise ValueError("page_size and aggregate_cap must be >= 1")
        self.coingecko = coingecko
        self.events = events or EventBus()
        self.favorites = favorites or InMemoryFavoritesStore()
        self.page_size = page_size
        self.aggregate_cap = aggregate_cap
        self.page_delay = page_delay
        self.detail_prefetch = detail_prefetch
        self.state = ListState()
        self._clock = clock
        self._sleep = sleep
        self._last_page_request: Optional[float] = None
        self._unsubscribe = self.events.subscribe(FavoriteStatusChanged, self._on_favorite_changed)

    def close(self) -> None:
        self._unsubscribe()

    # -------------------------------------------------------------------------
    # Index lookup (used by the detail aggregator)
    # -------------------------------------------------------------------------
    def get(self, collection_id: str) -> Optional[NFTCollection]:
        for collection in self.state.collections:
            if collection.id == collection_id:
                return collection
        return None

    # -------------------------------------------------------------------------
    # Paging
    # -------------------------------------------------------------------------
    async def fetch_collections(self, force_refresh: bool = False) -> List[NFTCollection]:
        """(Re)load the first page, replacing the current list."""
        if self.state.is_loading:
            return self.state.collections

        self.state.is_loading = True
        self.state.error = None

        if force_refresh:
            self.coingecko.clear_cache()
            self.state.collections = []
            self.state.filtered_collections = []
            self.state.has_more = True

        try:
            page = await self._fetch_page(1)
            # Cursor and list only move once page 1 is in hand
            self.state.current_page = 1
            self.state.collections = page[: self.aggregate_cap]
            self.state.has_more = len(page) == self.page_size and self.state.total < self.aggregate_cap

            self.filter_by_chain(self.state.chain_filter)
            await self.load_favorite_states()
            await self._prefetch_details()
            self._publish_update()
            log.info(f"Loaded {self.state.total} collections (has_more={self.state.has_more})")
        except Exception as exc:
            self.state.error = str(exc)
            if not self.state.collections:
                self.state.has_more = False
            log.error(f"Error fetching collections: {exc}")
            raise
        finally:
            self.state.is_loading = False

        return self.state.collections

    async def refresh(self) -> List[NFTCollection]:
        return await self.fetch_collections(force_refresh=True)

    async def load_more(self) -> List[NFTCollection]:
        """Append the next page; returns only the newly added collections."""
        if self.state.is_loading or self.state.is_loading_more or not self.state.has_more:
            return []

        if not self.state.collections:
            log.info("No first page loaded yet. Not loading more data.")
            return []

        if self.state.total >= self.aggregate_cap:
            self.state.has_more = False
            log.info(f"Maximum collection limit ({self.aggregate_cap}) reached. Not loading more data.")
            return []

        self.state.is_loading_more = True
        self.state.current_page += 1

        try:
            log.info(f"Loading more collections - page {self.state.current_page}")
            page = await self._fetch_page(self.state.current_page)

            if not page:
                self.state.has_more = False
                return []

            remaining = self.aggregate_cap - self.state.total
            added = page[:remaining]
            self.state.collections.extend(added)
            self.state.has_more = self.state.total < self.aggregate_cap and len(page) == self.page_size

            self.filter_by_chain(self.state.chain_filter)
            await self._load_favorite_states_for(added)
            self._publish_update()

            log.info(f"Loaded additional collections. Total: {self.state.total}/{self.aggregate_cap}")
            return added
        except Exception as exc:
            log.error(f"Error loading more collections: {exc}")
            self.state.error = str(exc)
            self.state.current_page -= 1
            raise
        finally:
            self.state.is_loading_more = False

    async def _fetch_page(self, page: int) -> List[NFTCollection]:
        # Page 1 may come from cache; later pages always hit the network and are paced
        if page > 1 and self._last_page_request is not None and self.page_delay > 0:
            elapsed = self._clock() - self._last_page_request
            if elapsed < self.page_delay:
                await self._sleep(self.page_delay - elapsed)
        if not self.coingecko.is_list_cached(page, self.page_size):
            self._last_page_request = self._clock()
        return await self.coingecko.fetch_list(page=page, page_size=self.page_size)

    def _publish_update(self) -> None:
        self.events.publish(
            CollectionsUpdated(
                total=self.state.total,
                page=self.state.current_page,
                has_more=self.state.has_more,
            )
        )

    # -------------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------------
    async def _prefetch_details(self) -> None:
        for collection in list(self.state.collections[: self.detail_prefetch]):
            await self.load_collection_details(collection.id)

    async def load_collection_details(self, collection_id: str) -> Optional[NFTCollection]:
        """Swap a listed record for its full CoinGecko detail; failures keep the old one."""
        if self.get(collection_id) is None:
            log.error(f"Collection not found for details: {collection_id}")
            return None

        try:
            detailed = await self.coingecko.fetch_detail(collection_id)
        except Exception as exc:  # noqa: BLE001
            log.error(f"Error loading collection details for {collection_id}: {exc}")
            return None

        for items in (self.state.collections, self.state.filtered_collections):
            for i, existing in enumerate(items):
                if existing.id == collection_id:
                    items[i] = detailed
        return detailed

    # -------------------------------------------------------------------------
    # Chain filter
    # -------------------------------------------------------------------------
    def filter_by_chain(self, chain: str) -> List[NFTCollection]:
        self.state.chain_filter = chain
        if chain == ALL_CHAINS:
            self.state.filtered_collections = list(self.state.collections)
        else:
            symbol = CHAIN_SYMBOLS.get(chain, "")
            self.state.filtered_collections = [
                c for c in self.state.collections if c.native_currency_symbol == symbol
            ]
        log.debug(f"Filtered collections by {chain}: {len(self.state.filtered_collections)}")
        return self.state.filtered_collections

    # -------------------------------------------------------------------------
    # Favorites
    # -------------------------------------------------------------------------
    async def load_favorite_states(self) -> None:
        self.state.favorite_ids.clear()
        await self._load_favorite_states_for(self.state.collections)
        log.debug(f"Favorite collection count updated: {len(self.state.favorite_ids)}")

    async def _load_favorite_states_for(self, collections: List[NFTCollection]) -> None:
        for collection in collections:
            try:
                if await self.favorites.is_favorite(collection.id):
                    self.state.favorite_ids.add(collection.id)
            except Exception as exc:  # noqa: BLE001
                log.error(f"Error checking favorite status for {collection.id}: {exc}")

    def is_favorite(self, collection_id: str) -> bool:
        return collection_id in self.state.favorite_ids

    async def toggle_favorite(self, collection_id: str) -> Optional[bool]:
        """Flip the favorite flag of a listed collection; ``None`` if it is not listed."""
        collection = self.get(collection_id)
        if collection is None:
            log.error(f"Collection not found: {collection_id}")
            return None

        if self.is_favorite(collection_id):
            await self.favorites.remove_favorite(collection_id)
            is_favorite = False
        else:
            await self.favorites.add_favorite(collection_id, collection)
            is_favorite = True

        log.info(f"Favorite status for {collection_id} set to {is_favorite}")
        self.events.publish(FavoriteStatusChanged(collection_id=collection_id, is_favorite=is_favorite))
        return is_favorite

    async def load_favorite_collections(self) -> List[NFTCollection]:
        """Full CoinGecko records for every favorite, in favorite order."""
        favorite_ids = await self.favorites.get_favorite_ids()
        if not favorite_ids:
            return []
        details = await self.coingecko.fetch_details(favorite_ids)
        return [details[cid] for cid in favorite_ids if cid in details]

    def _on_favorite_changed(self, event: FavoriteStatusChanged) -> None:
        if event.is_favorite:
            self.state.favorite_ids.add(event.collection_id)
        else:
            self.state.favorite_ids.discard(event.collection_id)
