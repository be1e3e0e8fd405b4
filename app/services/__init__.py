# Services package
from app.services.asset_service import AssetEnrichmentService
from app.services.collection_service import CollectionDetailService, CollectionIndex
from app.services.listing_service import (
    CollectionListService,
    FavoritesStore,
    InMemoryFavoritesStore,
)
from app.services.registry import ServiceContainer, build_services

__all__ = [
    "AssetEnrichmentService",
    "CollectionDetailService",
    "CollectionIndex",
    "CollectionListService",
    "FavoritesStore",
    "InMemoryFavoritesStore",
    "ServiceContainer",
    "build_services",
]
