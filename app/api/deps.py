"""API dependencies"""

from fastapi import Request

from app.services.asset_service import AssetEnrichmentService
from app.services.collection_service import CollectionDetailService
from app.services.listing_service import CollectionListService
from app.services.registry import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """Service container wired onto the app during lifespan startup"""
    return request.app.state.services


def get_listing(request: Request) -> CollectionListService:
    return get_services(request).listing


def get_details(request: Request) -> CollectionDetailService:
    return get_services(request).details


def get_assets(request: Request) -> AssetEnrichmentService:
    return get_services(request).assets
