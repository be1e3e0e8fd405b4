"""Stats routes - Cache observability."""

from fastapi import APIRouter, Depends

from app.api.deps import get_services
from app.schemas.api import CacheStatsResponse
from app.services.registry import ServiceContainer

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/cache", response_model=CacheStatsResponse)
def get_cache_stats(services: ServiceContainer = Depends(get_services)):
    """
    Get CoinGecko response cache statistics.

    Entry count includes expired entries that have not been read since expiring.
    """
    return CacheStatsResponse(**services.coingecko.cache.stats())
