"""Collection routes - Paged list, merged detail, priced assets and favorites."""

import time
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_assets, get_details, get_listing
from app.schemas.api import (
    AssetOut,
    AssetsResponse,
    CollectionDetailOut,
    CollectionListResponse,
    CollectionSummaryOut,
    FavoriteToggleResponse,
)
from app.services.asset_service import AssetEnrichmentService
from app.services.collection_service import CollectionDetailService
from app.services.listing_service import ALL_CHAINS, CHAIN_SYMBOLS, CollectionListService

router = APIRouter(prefix="/collections", tags=["collections"])


def _list_response(listing: CollectionListService, request_id: str, start: float) -> CollectionListResponse:
    state = listing.state
    latency_ms = int((time.perf_counter() - start) * 1000)
    return CollectionListResponse(
        request_id=request_id,
        api_latency_ms=latency_ms,
        page=state.current_page,
        total=state.total,
        has_more=state.has_more,
        chain=state.chain_filter,
        data=[
            CollectionSummaryOut.from_collection(c, is_favorite=listing.is_favorite(c.id))
            for c in state.filtered_collections
        ],
    )


# -----------------------------------------------------------------------------
# List Endpoints
# -----------------------------------------------------------------------------


@router.get("", response_model=CollectionListResponse)
async def list_collections(
    chain: str = Query(ALL_CHAINS, description="Chain filter (All Chains, Ethereum, Solana, Bitcoin, BNB Smart Chain)"),
    listing: CollectionListService = Depends(get_listing),
):
    """
    Get the aggregated collection list.

    The first page is loaded on demand when nothing has been listed yet.
    The list never grows beyond the configured aggregate cap.
    """
    start = time.perf_counter()
    request_id = str(uuid.uuid4())

    if chain != ALL_CHAINS and chain not in CHAIN_SYMBOLS:
        raise HTTPException(status_code=400, detail=f"Unknown chain: {chain}")

    if not listing.state.collections:
        await listing.fetch_collections()
    listing.filter_by_chain(chain)

    return _list_response(listing, request_id, start)


@router.post("/more", response_model=CollectionListResponse)
async def load_more_collections(listing: CollectionListService = Depends(get_listing)):
    """Append the next page, if any, and return the whole list."""
    start = time.perf_counter()
    request_id = str(uuid.uuid4())

    await listing.load_more()
    return _list_response(listing, request_id, start)


@router.post("/refresh", response_model=CollectionListResponse)
async def refresh_collections(listing: CollectionListService = Depends(get_listing)):
    """Drop cached list pages and reload from page 1."""
    start = time.perf_counter()
    request_id = str(uuid.uuid4())

    await listing.refresh()
    return _list_response(listing, request_id, start)


@router.get("/favorites", response_model=list[CollectionSummaryOut])
async def list_favorite_collections(listing: CollectionListService = Depends(get_listing)):
    """Full records for every favorite collection, in the order they were added."""
    favorites = await listing.load_favorite_collections()
    return [CollectionSummaryOut.from_collection(c, is_favorite=True) for c in favorites]


# -----------------------------------------------------------------------------
# Single Collection Endpoints
# -----------------------------------------------------------------------------


@router.get("/{collection_id}", response_model=CollectionDetailOut)
async def get_collection(
    collection_id: str,
    details: CollectionDetailService = Depends(get_details),
):
    """
    Get one collection merged from CoinGecko and OpenSea.

    ``state`` is ``merged_partial`` when OpenSea had nothing to add.
    CoinGecko failures are returned as provider errors.
    """
    combined = await details.get_detail(collection_id)
    return CollectionDetailOut.from_combined(combined)


@router.get("/{collection_id}/assets", response_model=AssetsResponse)
async def get_collection_assets(
    collection_id: str,
    limit: int = Query(20, ge=1, le=100, description="Number of assets with images to return"),
    assets: AssetEnrichmentService = Depends(get_assets),
):
    """Get collection assets that have images, each with its best offer when one exists."""
    start = time.perf_counter()
    request_id = str(uuid.uuid4())

    loaded = await assets.load_assets(collection_id, target_count=limit)
    latency_ms = int((time.perf_counter() - start) * 1000)

    return AssetsResponse(
        request_id=request_id,
        api_latency_ms=latency_ms,
        collection_id=collection_id,
        slug=assets.opensea.slug_for(collection_id),
        priced_count=sum(1 for a in loaded if a.price is not None),
        data=[AssetOut.from_asset(a) for a in loaded],
    )


@router.post("/{collection_id}/favorite", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    collection_id: str,
    listing: CollectionListService = Depends(get_listing),
):
    """Flip the favorite flag of a listed collection."""
    is_favorite = await listing.toggle_favorite(collection_id)
    if is_favorite is None:
        raise HTTPException(status_code=404, detail=f"Collection not listed: {collection_id}")
    return FavoriteToggleResponse(collection_id=collection_id, is_favorite=is_favorite)
