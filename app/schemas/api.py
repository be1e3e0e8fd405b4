from typing import List, Optional

from pydantic import BaseModel

from app.schemas.coingecko import NFTCollection, PercentageChange, PriceInfo
from app.schemas.combined import CombinedCollection, SocialLink
from app.schemas.opensea import NFTPrice, OpenSeaNFT


class CollectionSummaryOut(BaseModel):
    """A listed collection with display helpers."""

    id: str
    name: str
    symbol: Optional[str] = None
    image: Optional[str] = None
    native_currency_symbol: Optional[str] = None
    market_cap_rank: Optional[int] = None
    floor_price: Optional[PriceInfo] = None
    market_cap: Optional[PriceInfo] = None
    volume_24h: Optional[PriceInfo] = None
    displayable_floor_price: str
    displayable_market_cap: str
    displayable_percentage_change: str
    is_detailed: bool
    is_favorite: bool = False

    @classmethod
    def from_collection(cls, collection: NFTCollection, is_favorite: bool = False) -> "CollectionSummaryOut":
        return cls(
            id=collection.id,
            name=collection.name,
            symbol=collection.symbol,
            image=collection.image.small if collection.image else None,
            native_currency_symbol=collection.native_currency_symbol,
            market_cap_rank=collection.market_cap_rank,
            floor_price=collection.floor_price,
            market_cap=collection.market_cap,
            volume_24h=collection.volume_24h,
            displayable_floor_price=collection.displayable_floor_price,
            displayable_market_cap=collection.displayable_market_cap,
            displayable_percentage_change=collection.displayable_percentage_change,
            is_detailed=collection.is_detailed,
            is_favorite=is_favorite,
        )


class CollectionListResponse(BaseModel):
    request_id: str
    api_latency_ms: int
    page: int
    total: int
    has_more: bool
    chain: str
    data: list[CollectionSummaryOut]


class AssetOut(BaseModel):
    identifier: str
    collection: str
    contract: str
    name: Optional[str] = None
    image_url: Optional[str] = None
    opensea_url: Optional[str] = None
    price: Optional[NFTPrice] = None
    price_display: Optional[str] = None

    @classmethod
    def from_asset(cls, asset: OpenSeaNFT) -> "AssetOut":
        return cls(
            identifier=asset.identifier,
            collection=asset.collection,
            contract=asset.contract,
            name=asset.name,
            image_url=asset.display_image_url or asset.image_url,
            opensea_url=asset.opensea_url,
            price=asset.price,
            price_display=asset.price.formatted_price() if asset.price else None,
        )


class AssetsResponse(BaseModel):
    request_id: str
    api_latency_ms: int
    collection_id: str
    slug: str
    priced_count: int
    data: list[AssetOut]


class CollectionDetailOut(BaseModel):
    """Merged collection record; ``state`` is ``merged`` or ``merged_partial``."""

    id: str
    name: str
    slug: Optional[str] = None
    state: str
    description: Optional[str] = None
    banner_image: Optional[str] = None
    small_image: Optional[str] = None
    large_image: Optional[str] = None
    social_links: List[SocialLink] = []
    total_supply: Optional[int] = None
    created_date: Optional[str] = None
    formatted_creation_date: Optional[str] = None
    native_currency_symbol: Optional[str] = None
    floor_price: Optional[PriceInfo] = None
    market_cap: Optional[PriceInfo] = None
    volume_24h: Optional[PriceInfo] = None
    floor_price_24h_percentage_change: Optional[PercentageChange] = None
    market_cap_24h_percentage_change: Optional[PercentageChange] = None
    volume_24h_percentage_change: Optional[PercentageChange] = None
    user_favorites_count: Optional[int] = None
    assets: list[AssetOut] = []

    @classmethod
    def from_combined(cls, combined: CombinedCollection) -> "CollectionDetailOut":
        return cls(
            id=combined.id,
            name=combined.name,
            slug=combined.slug,
            state=combined.state.value,
            description=combined.description,
            banner_image=combined.banner_image,
            small_image=combined.small_image,
            large_image=combined.large_image,
            social_links=combined.social_links,
            total_supply=combined.total_supply,
            created_date=combined.created_date,
            formatted_creation_date=combined.formatted_creation_date,
            native_currency_symbol=combined.native_currency_symbol,
            floor_price=combined.floor_price,
            market_cap=combined.market_cap,
            volume_24h=combined.volume_24h,
            floor_price_24h_percentage_change=combined.floor_price_24h_percentage_change,
            market_cap_24h_percentage_change=combined.market_cap_24h_percentage_change,
            volume_24h_percentage_change=combined.volume_24h_percentage_change,
            user_favorites_count=combined.user_favorites_count,
            assets=[AssetOut.from_asset(a) for a in combined.assets or []],
        )


class FavoriteToggleResponse(BaseModel):
    collection_id: str
    is_favorite: bool


class SlugResponse(BaseModel):
    collection_id: str
    slug: str
    curated: bool


class HealthResponse(BaseModel):
    status: str
    env: str
    collections_loaded: int


class CacheStatsResponse(BaseModel):
    entries: int
    max_entries: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int


class ErrorResponse(BaseModel):
    error: str
    detail: str
    provider: Optional[str] = None
