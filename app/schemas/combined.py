"""Merged CoinGecko + OpenSea view of a single collection."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.coingecko import NFTCollection, PercentageChange, PriceInfo
from app.schemas.opensea import OpenSeaCollectionDetail, OpenSeaNFT


class DetailState(str, Enum):
    """Lifecycle of one aggregate detail fetch."""

    IDLE = "idle"
    FETCHING_PRIMARY = "fetching_primary"
    FAILED = "failed"
    FETCHING_SECONDARY = "fetching_secondary"
    MERGED = "merged"
    MERGED_PARTIAL = "merged_partial"

    @property
    def is_terminal(self) -> bool:
        return self in (DetailState.FAILED, DetailState.MERGED, DetailState.MERGED_PARTIAL)


class SocialLink(BaseModel):
    kind: str
    url: str


class CombinedCollection(BaseModel):
    """A collection as seen through both providers.

    Market data is always CoinGecko's. Descriptive fields prefer OpenSea and
    fall back to CoinGecko's own copy when OpenSea is missing or silent.
    """

    coingecko: NFTCollection
    opensea: Optional[OpenSeaCollectionDetail] = None
    assets: Optional[List[OpenSeaNFT]] = None

    @property
    def state(self) -> DetailState:
        return DetailState.MERGED if self.opensea is not None else DetailState.MERGED_PARTIAL

    @property
    def has_opensea_data(self) -> bool:
        return self.opensea is not None

    @property
    def has_assets(self) -> bool:
        return bool(self.assets)

    @property
    def id(self) -> str:
        return self.coingecko.id

    @property
    def name(self) -> str:
        return self.coingecko.name

    @property
    def slug(self) -> Optional[str]:
        return self.opensea.collection if self.opensea else None

    # -------------------------------------------------------------------------
    # Enrichment: OpenSea first, CoinGecko fallback
    # -------------------------------------------------------------------------
    @property
    def description(self) -> Optional[str]:
        if self.opensea and self.opensea.description:
            return self.opensea.description
        return self.coingecko.description

    @property
    def banner_image(self) -> Optional[str]:
        if self.opensea and self.opensea.banner_image_url:
            return self.opensea.banner_image_url
        return self.coingecko.banner_image

    @property
    def small_image(self) -> Optional[str]:
        if self.opensea and self.opensea.image_url:
            return self.opensea.image_url
        return self.coingecko.image.small if self.coingecko.image else None

    @property
    def large_image(self) -> Optional[str]:
        if self.opensea and self.opensea.image_url:
            return self.opensea.image_url
        return self.coingecko.image.small_2x if self.coingecko.image else None

    @property
    def twitter_username(self) -> Optional[str]:
        if self.opensea and self.opensea.twitter_username:
            return self.opensea.twitter_username
        return self.coingecko.links.twitter if self.coingecko.links else None

    @property
    def discord_url(self) -> Optional[str]:
        if self.opensea and self.opensea.discord_url:
            return self.opensea.discord_url
        return self.coingecko.links.discord if self.coingecko.links else None

    @property
    def website_url(self) -> Optional[str]:
        if self.opensea and self.opensea.project_url:
            return self.opensea.project_url
        return self.coingecko.links.homepage if self.coingecko.links else None

    @property
    def total_supply(self) -> Optional[int]:
        if self.opensea and self.opensea.total_supply is not None:
            return self.opensea.total_supply
        return self.coingecko.total_supply

    @property
    def created_date(self) -> Optional[str]:
        return self.opensea.created_date if self.opensea else None

    @property
    def formatted_creation_date(self) -> Optional[str]:
        """``2021-04-22`` -> ``Apr 2021``; unparseable dates are returned as is."""
        raw = self.created_date
        if not raw:
            return None
        try:
            return datetime.strptime(raw[:10], "%Y-%m-%d").strftime("%b %Y")
        except ValueError:
            return raw

    @property
    def social_links(self) -> List[SocialLink]:
        links: List[SocialLink] = []
        if self.website_url:
            links.append(SocialLink(kind="website", url=self.website_url))
        if self.twitter_username:
            links.append(SocialLink(kind="twitter", url=f"https://twitter.com/{self.twitter_username}"))
        if self.discord_url:
            links.append(SocialLink(kind="discord", url=self.discord_url))
        if self.opensea and self.opensea.opensea_url:
            links.append(SocialLink(kind="opensea", url=self.opensea.opensea_url))
        return links

    # -------------------------------------------------------------------------
    # Authoritative: CoinGecko only
    # -------------------------------------------------------------------------
    @property
    def floor_price(self) -> Optional[PriceInfo]:
        return self.coingecko.floor_price

    @property
    def market_cap(self) -> Optional[PriceInfo]:
        return self.coingecko.market_cap

    @property
    def volume_24h(self) -> Optional[PriceInfo]:
        return self.coingecko.volume_24h

    @property
    def floor_price_24h_percentage_change(self) -> Optional[PercentageChange]:
        return self.coingecko.floor_price_24h_percentage_change

    @property
    def market_cap_24h_percentage_change(self) -> Optional[PercentageChange]:
        return self.coingecko.market_cap_24h_percentage_change

    @property
    def volume_24h_percentage_change(self) -> Optional[PercentageChange]:
        return self.coingecko.volume_24h_percentage_change

    @property
    def native_currency_symbol(self) -> Optional[str]:
        return self.coingecko.native_currency_symbol

    @property
    def user_favorites_count(self) -> Optional[int]:
        return self.coingecko.user_favorites_count
