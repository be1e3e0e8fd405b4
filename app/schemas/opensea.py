"""OpenSea v2 payload schemas"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class OpenSeaContract(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: str
    chain: str


class OpenSeaCollectionDetail(BaseModel):
    """Marketplace metadata for one collection (``GET /collections/{slug}``)."""

    model_config = ConfigDict(extra="ignore")

    collection: str  # the OpenSea slug
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    banner_image_url: Optional[str] = None
    owner: Optional[str] = None
    safelist_status: Optional[str] = None
    category: Optional[str] = None
    is_disabled: Optional[bool] = None
    is_nsfw: Optional[bool] = None
    opensea_url: Optional[str] = None
    project_url: Optional[str] = None
    wiki_url: Optional[str] = None
    discord_url: Optional[str] = None
    telegram_url: Optional[str] = None
    twitter_username: Optional[str] = None
    instagram_username: Optional[str] = None
    contracts: Optional[List[OpenSeaContract]] = None
    total_supply: Optional[int] = None
    created_date: Optional[str] = None


class NFTPrice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    currency: str
    decimals: int
    value: str  # integer amount in the currency's base units

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def calculated_price(self) -> float:
        try:
            raw = float(self.value)
        except ValueError:
            return 0.0
        return raw / (10 ** self.decimals)

    def formatted_price(self) -> str:
        return f"{self.calculated_price():.2f} {self.currency}"


class NFTPriceResponse(BaseModel):
    """Best-offer payload (``GET /offers/collection/{slug}/nfts/{id}/best``)."""

    model_config = ConfigDict(extra="ignore")

    order_hash: Optional[str] = None
    chain: Optional[str] = None
    price: NFTPrice


class OpenSeaNFT(BaseModel):
    model_config = ConfigDict(extra="ignore")

    identifier: str
    collection: str
    contract: str
    token_standard: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    display_image_url: Optional[str] = None
    display_animation_url: Optional[str] = None
    metadata_url: Optional[str] = None
    opensea_url: Optional[str] = None
    updated_at: Optional[str] = None
    is_disabled: Optional[bool] = None
    is_nsfw: Optional[bool] = None
    price: Optional[NFTPrice] = None

    @property
    def has_image(self) -> bool:
        return bool(self.display_image_url or self.image_url)


class OpenSeaNFTsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nfts: List[OpenSeaNFT]
    next: Optional[str] = None


@dataclass
class AssetPage:
    """One page of collection assets plus the cursor for the next page."""

    assets: List[OpenSeaNFT] = field(default_factory=list)
    next_cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None
