"""Slug routes - CoinGecko ID to OpenSea slug resolution."""

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_services
from app.schemas.api import SlugResponse
from app.services.registry import ServiceContainer

router = APIRouter(prefix="/slugs", tags=["slugs"])


@router.get("/reverse/{slug}", response_model=SlugResponse)
def reverse_slug(slug: str, services: ServiceContainer = Depends(get_services)):
    """Look up the CoinGecko ID behind a curated OpenSea slug."""
    collection_id = services.resolver.reverse(slug)
    if collection_id is None:
        raise HTTPException(status_code=404, detail=f"No collection known for slug: {slug}")
    return SlugResponse(collection_id=collection_id, slug=slug, curated=True)


@router.get("/{collection_id}", response_model=SlugResponse)
def resolve_slug(collection_id: str, services: ServiceContainer = Depends(get_services)):
    """
    Resolve a CoinGecko collection ID to its OpenSea slug.

    Curated mappings win; anything else goes through the naming heuristics.
    """
    resolver = services.resolver
    return SlugResponse(
        collection_id=collection_id,
        slug=resolver.resolve(collection_id),
        curated=collection_id in resolver.known_mappings,
    )
