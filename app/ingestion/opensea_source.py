"""OpenSea source implementation (secondary provider)."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.core.slugs import SlugResolver, default_resolver
from app.schemas.opensea import (
    AssetPage,
    NFTPrice,
    NFTPriceResponse,
    OpenSeaCollectionDetail,
    OpenSeaNFTsResponse,
)
from .base import BaseSource

log = get_logger("ingestion.opensea")


class OpenSeaSource(BaseSource):
    """Fetches marketplace metadata, assets and best offers from OpenSea.

    OpenSea is keyed by slug; the ``*_by_id`` wrappers translate a CoinGecko
    ID through the slug resolver first. Nothing is cached here and errors
    are raised as-is; callers decide whether they are fatal.
    """

    name = "opensea"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.opensea.io/api/v2",
        timeout: float = 30.0,
        asset_timeout: float = 10.0,
        resolver: Optional[SlugResolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, api_key=api_key, timeout=timeout, transport=transport)
        self.asset_timeout = asset_timeout
        self.resolver = resolver or default_resolver

    @classmethod
    def from_settings(
        cls,
        resolver: Optional[SlugResolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OpenSeaSource":
        return cls(
            api_key=settings.OPENSEA_API_KEY,
            base_url=settings.OPENSEA_BASE_URL,
            timeout=settings.OPENSEA_TIMEOUT_SECONDS,
            asset_timeout=settings.OPENSEA_ASSET_TIMEOUT_SECONDS,
            resolver=resolver,
            transport=transport,
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {"x-api-key": self.api_key} if self.api_key else {}

    def slug_for(self, collection_id: str) -> str:
        slug = self.resolver.resolve(collection_id)
        log.debug(f"ID conversion: CoinGecko [{collection_id}] -> OpenSea [{slug}]")
        return slug

    # -------------------------------------------------------------------------
    # By slug
    # -------------------------------------------------------------------------
    async def fetch_detail_by_slug(self, slug: str) -> OpenSeaCollectionDetail:
        path = self._path("/collections/{}", slug)
        payload = await self._get_json(path)
        return self._decode(OpenSeaCollectionDetail, payload)

    async def fetch_assets_by_slug(
        self,
        slug: str,
        limit: int = 30,
        cursor: Optional[str] = None,
    ) -> AssetPage:
        path = self._path("/collection/{}/nfts", slug)
        params: Dict[str, Any] = {"limit": limit}
        if cursor:
            params["next"] = cursor

        payload = await self._get_json(path, params=params, timeout=self.asset_timeout)
        response = self._decode(OpenSeaNFTsResponse, payload)
        log.debug(f"Fetched {len(response.nfts)} assets for {slug} (next={'yes' if response.next else 'no'})")
        return AssetPage(assets=response.nfts, next_cursor=response.next)

    async def fetch_best_price(self, slug: str, identifier: str) -> NFTPrice:
        path = self._path("/offers/collection/{}/nfts/{}/best", slug, identifier)
        payload = await self._get_json(path, timeout=self.asset_timeout)
        return self._decode(NFTPriceResponse, payload).price

    # -------------------------------------------------------------------------
    # By CoinGecko ID
    # -------------------------------------------------------------------------
    async def fetch_detail_by_id(self, collection_id: str) -> OpenSeaCollectionDetail:
        return await self.fetch_detail_by_slug(self.slug_for(collection_id))

    async def fetch_assets_by_id(
        self,
        collection_id: str,
        limit: int = 30,
        cursor: Optional[str] = None,
    ) -> AssetPage:
        return await self.fetch_assets_by_slug(self.slug_for(collection_id), limit=limit, cursor=cursor)

    async def fetch_best_price_by_id(self, collection_id: str, identifier: str) -> NFTPrice:
        return await self.fetch_best_price(self.slug_for(collection_id), identifier)
