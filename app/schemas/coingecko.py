"""CoinGecko NFT payload schemas"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class NFTImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    small: Optional[str] = None
    small_2x: Optional[str] = None


class PriceInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    native_currency: Optional[float] = None
    usd: Optional[float] = None


class PercentageChange(BaseModel):
    model_config = ConfigDict(extra="ignore")

    usd: Optional[float] = None
    native_currency: Optional[float] = None


class NFTLinks(BaseModel):
    model_config = ConfigDict(extra="ignore")

    homepage: Optional[str] = None
    twitter: Optional[str] = None
    discord: Optional[str] = None


def format_number(number: float) -> str:
    """Format large numbers with a K/M/B suffix."""
    if number >= 1_000_000_000:
        return f"{number / 1_000_000_000:.2f}B"
    if number >= 1_000_000:
        return f"{number / 1_000_000:.2f}M"
    if number >= 1_000:
        return f"{number / 1_000:.2f}K"
    return f"{number:.2f}"


class NFTCollection(BaseModel):
    """A CoinGecko NFT collection.

    ``/nfts/list`` returns only the identity fields; everything else is
    filled in by ``/nfts/{id}``.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    contract_address: Optional[str] = None
    asset_platform_id: Optional[str] = None
    name: str
    symbol: Optional[str] = None

    # Detailed info - populated by the detail fetch
    image: Optional[NFTImage] = None
    banner_image: Optional[str] = None
    description: Optional[str] = None
    native_currency: Optional[str] = None
    native_currency_symbol: Optional[str] = None
    market_cap_rank: Optional[int] = None
    floor_price: Optional[PriceInfo] = None
    market_cap: Optional[PriceInfo] = None
    volume_24h: Optional[PriceInfo] = None
    floor_price_in_usd_24h_percentage_change: Optional[float] = None
    floor_price_24h_percentage_change: Optional[PercentageChange] = None
    market_cap_24h_percentage_change: Optional[PercentageChange] = None
    volume_24h_percentage_change: Optional[PercentageChange] = None
    number_of_unique_addresses: Optional[int] = None
    total_supply: Optional[int] = None
    links: Optional[NFTLinks] = None
    ath_change_percentage: Optional[PercentageChange] = None
    user_favorites_count: Optional[int] = None

    @property
    def is_detailed(self) -> bool:
        """True once the market fields from the detail endpoint are present."""
        return self.market_cap is not None and self.floor_price is not None

    @property
    def owner_count(self) -> int:
        return self.number_of_unique_addresses or 0

    @property
    def total_nfts(self) -> int:
        return self.total_supply or 0

    @property
    def rank(self) -> int:
        return self.market_cap_rank or 0

    @property
    def displayable_market_cap(self) -> str:
        if self.market_cap is None or self.market_cap.native_currency is None:
            return "N/A"
        return format_number(self.market_cap.native_currency)

    @property
    def displayable_floor_price(self) -> str:
        if self.floor_price is None or self.floor_price.native_currency is None:
            return "N/A"
        return f"{self.floor_price.native_currency:.2f}"

    @property
    def displayable_percentage_change(self) -> str:
        if self.ath_change_percentage is None or self.ath_change_percentage.native_currency is None:
            return "0%"
        value = self.ath_change_percentage.native_currency
        sign = "+" if value >= 0 else "-"
        return f"{sign}{abs(value):.2f}%"
