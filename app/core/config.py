from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    SLACK_WEBHOOK_URL: str | None = None

    # Primary provider (CoinGecko NFT API)
    COINGECKO_API_KEY: str | None = None
    COINGECKO_BASE_URL: str = "https://api.coingecko.com/api/v3"
    COINGECKO_TIMEOUT_SECONDS: float = 30.0

    # Secondary provider (OpenSea v2 API)
    OPENSEA_API_KEY: str | None = None
    OPENSEA_BASE_URL: str = "https://api.opensea.io/api/v2"
    OPENSEA_TIMEOUT_SECONDS: float = 30.0
    OPENSEA_ASSET_TIMEOUT_SECONDS: float = 10.0

    # Response cache for the primary provider
    CACHE_TTL_SECONDS: float = 180.0  # 3 minutes
    CACHE_MAX_ENTRIES: int = 100

    # Collection list paging
    LIST_PAGE_PADDING: int = 5  # over-fetch to absorb excluded IDs
    LIST_PAGE_SIZE: int = 35
    LIST_AGGREGATE_CAP: int = 35
    EXCLUDED_COLLECTION_IDS: List[str] = [
        "synclub-s-snbnb-early-adopters",
        "ordinal-maxi-biz-omb",
        "runestone",
        "chromie-squiggle-by-snowfro",
        "bitcoin-puppets",
    ]
    DETAIL_PREFETCH_COUNT: int = 5

    # Asset listing and price enrichment
    ASSET_TARGET_COUNT: int = 20
    ASSET_PREVIEW_LIMIT: int = 10
    PAGE_FETCH_DELAY_SECONDS: float = 0.5
    PRICE_FETCH_CONCURRENCY: Optional[int] = None  # None = whole batch at once

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.is_development

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        # Otherwise, docs available in dev, disabled in prod
        return self.is_development


settings = Settings()
