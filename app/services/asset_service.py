"""Collection asset loading with per-asset best-offer prices."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from app.core.errors import ProviderError
from app.core.logging import get_logger
from app.ingestion.opensea_source import OpenSeaSource
from app.schemas.opensea import NFTPrice, OpenSeaNFT

log = get_logger("asset_service")


class AssetEnrichmentService:
    """Loads OpenSea assets for a collection and attaches best-offer prices.

    Price lookups for one batch all start together and the batch finishes
    only when every lookup has resolved. A failed lookup leaves that asset
    without a price; it never fails or retries the batch.
    """

    def __init__(
        self,
        opensea: OpenSeaSource,
        target_count: int = 20,
        page_delay: float = 0.5,
        concurrency: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.opensea = opensea
        self.target_count = target_count
        self.page_delay = page_delay
        self.concurrency = concurrency
        self._sleep = sleep

    async def enrich_prices(self, slug: str, assets: List[OpenSeaNFT]) -> List[OpenSeaNFT]:
        """Return ``assets`` in order, each with its best-offer price when one was found."""
        if not assets:
            return []

        semaphore = asyncio.Semaphore(self.concurrency) if self.concurrency else None

        async def lookup(asset: OpenSeaNFT) -> NFTPrice:
            if semaphore is None:
                return await self.opensea.fetch_best_price(slug, asset.identifier)
            async with semaphore:
                return await self.opensea.fetch_best_price(slug, asset.identifier)

        results = await asyncio.gather(*(lookup(asset) for asset in assets), return_exceptions=True)

        prices: Dict[str, NFTPrice] = {}
        for asset, result in zip(assets, results):
            if isinstance(result, BaseException):
                log.debug(f"No price for NFT {asset.identifier} in {slug}: {result}")
                continue
            prices[asset.identifier] = result

        log.info(f"Priced {len(prices)}/{len(assets)} assets for {slug}")
        return [
            asset.model_copy(update={"price": prices[asset.identifier]}) if asset.identifier in prices else asset
            for asset in assets
        ]

    async def load_assets(self, collection_id: str, target_count: Optional[int] = None) -> List[OpenSeaNFT]:
        """Up to ``target_count`` priced assets that have an image.

        Pages are pulled until enough assets with images are collected or the
        cursor runs out. OpenSea errors stop paging; whatever was collected
        so far is returned.
        """
        target = target_count or self.target_count
        slug = self.opensea.slug_for(collection_id)
        collected: List[OpenSeaNFT] = []

        try:
            page = await self.opensea.fetch_assets_by_slug(slug, limit=target * 2)
            collected.extend(await self.enrich_prices(slug, page.assets))
            cursor = page.next_cursor

            while self._count_with_images(collected) < target and cursor:
                await self._sleep(self.page_delay)
                page = await self.opensea.fetch_assets_by_slug(slug, limit=target * 2, cursor=cursor)
                collected.extend(await self.enrich_prices(slug, page.assets))
                cursor = page.next_cursor
        except ProviderError as exc:
            log.warning(f"Error loading NFTs for {collection_id} (slug {slug}): {exc}")

        return [asset for asset in collected if asset.has_image][:target]

    @staticmethod
    def _count_with_images(assets: List[OpenSeaNFT]) -> int:
        return sum(1 for asset in assets if asset.has_image)
