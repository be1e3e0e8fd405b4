"""Collection detail aggregation tests"""

import asyncio

import httpx
import pytest

from app.core.errors import NetworkError, ServerError, UnauthorizedError
from app.core.events import DetailStateChanged
from app.schemas.coingecko import NFTCollection
from app.schemas.combined import DetailState
from app.services.collection_service import CollectionDetailService
from app.tests.fakes import FakeProvider, asset_payload, collection_payload, opensea_detail_payload


def coingecko_detail_handler(request: httpx.Request) -> httpx.Response:
    collection_id = request.url.path.rsplit("/", 1)[-1]
    return httpx.Response(200, json=collection_payload(collection_id, detailed=True))


def opensea_ok_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/nfts"):
        return httpx.Response(200, json={"nfts": [asset_payload("1"), asset_payload("2")], "next": None})
    return httpx.Response(200, json=opensea_detail_payload(path.rsplit("/", 1)[-1]))


def opensea_down_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503)


class StaticIndex:
    """Collection index backed by a dict"""

    def __init__(self, *collections: NFTCollection):
        self.items = {c.id: c for c in collections}

    def get(self, collection_id):
        return self.items.get(collection_id)


class TestCollectionDetailService:
    """Test merging CoinGecko and OpenSea into one record"""

    @pytest.fixture
    def build(self, make_coingecko, make_opensea, events):
        def factory(coingecko_handler=coingecko_detail_handler, opensea_handler=opensea_ok_handler, index=None):
            coingecko_provider = FakeProvider(coingecko_handler)
            opensea_provider = FakeProvider(opensea_handler)
            service = CollectionDetailService(
                make_coingecko(coingecko_provider),
                make_opensea(opensea_provider),
                index=index,
                events=events,
            )
            return service, coingecko_provider, opensea_provider

        return factory

    @pytest.mark.asyncio
    async def test_full_merge(self, build):
        """Test OpenSea enrichment wins and market data stays CoinGecko's"""
        service, _, opensea_provider = build()

        combined = await service.get_detail("azuki")

        assert combined.state == DetailState.MERGED
        assert combined.slug == "azuki"
        assert combined.description == "azuki on OpenSea"
        assert combined.banner_image.endswith("azuki-banner.png")
        assert combined.total_supply == 9999
        assert combined.formatted_creation_date == "Jan 2022"
        assert combined.floor_price.native_currency == 12.5
        assert combined.market_cap.usd == 400000000.0
        assert combined.user_favorites_count == 42
        assert [a.identifier for a in combined.assets] == ["1", "2"]
        assert {link.kind for link in combined.social_links} == {"website", "twitter", "discord", "opensea"}

        asset_request = opensea_provider.requests[1]
        assert asset_request.url.params["limit"] == "10"

    @pytest.mark.asyncio
    async def test_secondary_failure_degrades(self, build, events):
        """Test OpenSea failing still returns the CoinGecko record"""
        service, _, _ = build(opensea_handler=opensea_down_handler)

        combined = await service.get_detail("some-random-nft-collection-name")

        assert combined.state == DetailState.MERGED_PARTIAL
        assert not combined.has_opensea_data
        assert combined.slug is None
        assert combined.assets is None
        assert combined.created_date is None
        # primary fields all present
        assert combined.name == "Some Random Nft Collection Name"
        assert combined.floor_price.native_currency == 12.5
        assert combined.market_cap.native_currency == 125000.0
        assert combined.volume_24h.native_currency == 300.0
        # enrichment falls back to CoinGecko's own copy
        assert combined.description == "some-random-nft-collection-name on CoinGecko"
        assert service.state_of("some-random-nft-collection-name") == DetailState.MERGED_PARTIAL

    @pytest.mark.asyncio
    async def test_asset_failure_keeps_detail(self, build):
        """Test a detail fetched before the asset call failed is kept"""

        def handler(request):
            if request.url.path.endswith("/nfts"):
                return httpx.Response(500)
            return opensea_ok_handler(request)

        service, _, _ = build(opensea_handler=handler)
        combined = await service.get_detail("azuki")

        assert combined.state == DetailState.MERGED
        assert combined.description == "azuki on OpenSea"
        assert combined.assets is None

    @pytest.mark.asyncio
    async def test_primary_failure_raises(self, build):
        """Test CoinGecko failure is fatal and OpenSea is never called"""
        service, _, opensea_provider = build(coingecko_handler=lambda r: httpx.Response(500))

        with pytest.raises(ServerError):
            await service.get_detail("azuki")

        assert service.state_of("azuki") == DetailState.FAILED
        assert opensea_provider.requests == []

    @pytest.mark.asyncio
    async def test_primary_timeout_raises_network_error(self, build):
        """Test CoinGecko timeouts propagate as network errors"""

        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        service, _, _ = build(coingecko_handler=handler)
        with pytest.raises(NetworkError):
            await service.get_detail("azuki")

    @pytest.mark.asyncio
    async def test_index_shortcut(self, build):
        """Test a detailed listed record skips the CoinGecko call"""
        listed = NFTCollection.model_validate(collection_payload("azuki", detailed=True))
        service, coingecko_provider, _ = build(index=StaticIndex(listed))

        combined = await service.get_detail("azuki")

        assert combined.coingecko is listed
        assert coingecko_provider.requests == []

    @pytest.mark.asyncio
    async def test_index_incomplete_record_refetched(self, build):
        """Test a bare listed record still triggers the detail fetch"""
        listed = NFTCollection.model_validate(collection_payload("azuki"))
        service, coingecko_provider, _ = build(index=StaticIndex(listed))

        combined = await service.get_detail("azuki")

        assert combined.coingecko.is_detailed
        assert coingecko_provider.paths() == ["/api/v3/nfts/azuki"]

    @pytest.mark.asyncio
    async def test_state_events(self, build, events):
        """Test each transition is published"""
        seen = []
        events.subscribe(DetailStateChanged, lambda e: seen.append((e.collection_id, e.state)))
        service, _, _ = build()

        await service.get_detail("azuki")

        assert seen == [
            ("azuki", DetailState.FETCHING_PRIMARY),
            ("azuki", DetailState.FETCHING_SECONDARY),
            ("azuki", DetailState.MERGED),
        ]
        assert seen[-1][1].is_terminal

    @pytest.mark.asyncio
    async def test_failed_state_event(self, build, events):
        """Test a primary failure ends in FAILED"""
        seen = []
        events.subscribe(DetailStateChanged, lambda e: seen.append(e.state))
        service, _, _ = build(coingecko_handler=lambda r: httpx.Response(401))

        with pytest.raises(UnauthorizedError):
            await service.get_detail("azuki")

        assert seen == [DetailState.FETCHING_PRIMARY, DetailState.FAILED]

    def test_initial_state(self, build):
        """Test unknown IDs report IDLE"""
        service, _, _ = build()
        assert service.state_of("never-fetched") == DetailState.IDLE

    @pytest.mark.asyncio
    async def test_cancelled_caller_still_caches_primary(self, build):
        """Test an abandoned call still lets the CoinGecko request land in the cache"""
        release = asyncio.Event()

        async def slow_handler(request):
            await release.wait()
            return coingecko_detail_handler(request)

        service, coingecko_provider, _ = build(coingecko_handler=slow_handler)
        task = asyncio.create_task(service.get_detail("azuki"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert service.state_of("azuki") == DetailState.IDLE

        release.set()
        for _ in range(50):
            if "nft_collection_azuki" in service.coingecko.cache:
                break
            await asyncio.sleep(0.01)

        assert "nft_collection_azuki" in service.coingecko.cache
        assert len(coingecko_provider.requests) == 1
