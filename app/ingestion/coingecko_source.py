"""CoinGecko NFT source implementation (primary provider)."""

from __future__ import annotations

import asyncio
from typing import Dict, FrozenSet, Iterable, List, Optional

import httpx

from app.core.cache import TTLCache
from app.core.config import settings
from app.core.errors import ProviderError
from app.core.logging import get_logger
from app.schemas.coingecko import NFTCollection
from .base import BaseSource

log = get_logger("ingestion.coingecko")


class CoinGeckoSource(BaseSource):
    """Fetches NFT collection market data from CoinGecko.

    Market data (floor price, market cap, volume) from here is authoritative,
    so every error is raised to the caller.
    """

    name = "coingecko"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.coingecko.com/api/v3",
        timeout: float = 30.0,
        cache: Optional[TTLCache] = None,
        excluded_ids: Iterable[str] = (),
        page_padding: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, api_key=api_key, timeout=timeout, transport=transport)
        self.cache = cache if cache is not None else TTLCache()
        self.excluded_ids: FrozenSet[str] = frozenset(excluded_ids)
        self.page_padding = page_padding

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "CoinGeckoSource":
        return cls(
            api_key=settings.COINGECKO_API_KEY,
            base_url=settings.COINGECKO_BASE_URL,
            timeout=settings.COINGECKO_TIMEOUT_SECONDS,
            cache=TTLCache(settings.CACHE_TTL_SECONDS, settings.CACHE_MAX_ENTRIES),
            excluded_ids=settings.EXCLUDED_COLLECTION_IDS,
            page_padding=settings.LIST_PAGE_PADDING,
            transport=transport,
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {"x-cg-demo-api-key": self.api_key} if self.api_key else {}

    def clear_cache(self) -> None:
        self.cache.clear()
        log.info(f"CoinGecko cache cleared (excluded ids: {', '.join(sorted(self.excluded_ids))})")

    def _without_excluded(self, collections: List[NFTCollection]) -> List[NFTCollection]:
        return [c for c in collections if c.id not in self.excluded_ids]

    @staticmethod
    def _list_cache_key(page: int, page_size: int) -> str:
        return f"nft_collections_list_page{page}_size{page_size}"

    def is_list_cached(self, page: int, page_size: int) -> bool:
        """True when ``fetch_list`` would answer from the cache without a request."""
        return page == 1 and self._list_cache_key(page, page_size) in self.cache

    async def fetch_list(self, page: int = 1, page_size: int = 50) -> List[NFTCollection]:
        """Return up to ``page_size`` collections ordered by market cap, excluded IDs removed.

        Only page 1 is served from / written to the cache; later pages are
        requested once while scrolling and always go to the network.
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be >= 1")

        cache_key = self._list_cache_key(page, page_size)
        if page == 1:
            cached = self.cache.get(cache_key)
            if cached is not None:
                log.info(f"Using cached NFT collections list for page {page}")
                return list(cached)

        params = {
            "order": "market_cap_usd_desc",
            "per_page": page_size + self.page_padding,
            "page": page,
        }
        log.info(f"Fetching NFT collections from CoinGecko - page {page}")
        try:
            payload = await self._get_json("/nfts/list", params=params)
            collections = self._decode(List[NFTCollection], payload)
        except ProviderError as exc:
            log.error(f"Error fetching NFT collections for page {page}: {exc}")
            raise

        limited = self._without_excluded(collections)[:page_size]
        if page == 1:
            self.cache.set(cache_key, limited)

        log.info(f"Fetched {len(limited)} NFT collections for page {page} (upstream returned {len(collections)})")
        return list(limited)

    async def fetch_detail(self, collection_id: str) -> NFTCollection:
        """Return the full record for one collection, cached per ID."""
        cache_key = f"nft_collection_{collection_id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            log.info(f"Using cached NFT collection details for {collection_id}")
            return cached

        log.info(f"Fetching NFT collection details for {collection_id}")
        try:
            path = self._path("/nfts/{}", collection_id)
            payload = await self._get_json(path)
            collection = self._decode(NFTCollection, payload)
        except ProviderError as exc:
            log.error(f"Error fetching NFT collection details for {collection_id}: {exc}")
            raise

        self.cache.set(cache_key, collection)
        log.info(f"Fetched details for NFT collection: {collection.name}")
        return collection

    async def fetch_details(self, collection_ids: Iterable[str]) -> Dict[str, NFTCollection]:
        """Fetch several details concurrently, skipping the ones that fail."""
        ids = list(collection_ids)
        results = await asyncio.gather(*(self.fetch_detail(cid) for cid in ids), return_exceptions=True)

        details: Dict[str, NFTCollection] = {}
        for cid, result in zip(ids, results):
            if isinstance(result, Exception):
                log.warning(f"Skipping details for {cid}: {result}")
                continue
            details[cid] = result
        return details
