"""Asset loading and price enrichment tests"""

import asyncio

import httpx
import pytest

from app.schemas.opensea import OpenSeaNFT
from app.services.asset_service import AssetEnrichmentService
from app.tests.fakes import FakeProvider, asset_payload, price_payload


def price_handler(failing_ids):
    def handler(request: httpx.Request) -> httpx.Response:
        identifier = request.url.path.split("/")[-2]
        if identifier in failing_ids:
            return httpx.Response(404)
        return httpx.Response(200, json=price_payload(value=str(int(identifier) * 10**18)))

    return handler


def paged_assets_handler(pages, failing_cursor=None):
    """Serves ``pages`` (lists of asset payloads) in order, chained by cursor."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/best"):
            return httpx.Response(200, json=price_payload())
        cursor = request.url.params.get("next")
        if failing_cursor is not None and cursor == failing_cursor:
            return httpx.Response(500)
        index = int(cursor.split("-")[1]) if cursor else 0
        next_cursor = f"page-{index + 1}" if index + 1 < len(pages) else None
        return httpx.Response(200, json={"nfts": pages[index], "next": next_cursor})

    return handler


class TestEnrichPrices:
    """Test concurrent best-offer lookups"""

    @pytest.fixture
    def assets(self):
        return [OpenSeaNFT.model_validate(asset_payload(str(i))) for i in range(1, 6)]

    @pytest.mark.asyncio
    async def test_partial_failures(self, make_opensea, sleep, assets):
        """Test 2 failing lookups out of 5 leave 3 priced, 2 unpriced"""
        provider = FakeProvider(price_handler({"2", "4"}))
        service = AssetEnrichmentService(make_opensea(provider), sleep=sleep)

        enriched = await service.enrich_prices("azuki", assets)

        assert [a.identifier for a in enriched] == ["1", "2", "3", "4", "5"]
        priced = [a.identifier for a in enriched if a.price is not None]
        unpriced = [a.identifier for a in enriched if a.price is None]
        assert priced == ["1", "3", "5"]
        assert unpriced == ["2", "4"]
        assert enriched[2].price.calculated_price() == pytest.approx(3.0)
        assert len(provider.requests) == 5

    @pytest.mark.asyncio
    async def test_inputs_not_mutated(self, make_opensea, sleep, assets):
        """Test enrichment returns copies"""
        service = AssetEnrichmentService(make_opensea(FakeProvider(price_handler(set()))), sleep=sleep)

        enriched = await service.enrich_prices("azuki", assets)

        assert all(a.price is not None for a in enriched)
        assert all(a.price is None for a in assets)

    @pytest.mark.asyncio
    async def test_all_fail(self, make_opensea, sleep, assets):
        """Test a fully failing batch still returns every asset"""
        provider = FakeProvider(lambda r: httpx.Response(500))
        service = AssetEnrichmentService(make_opensea(provider), sleep=sleep)

        enriched = await service.enrich_prices("azuki", assets)

        assert len(enriched) == 5
        assert all(a.price is None for a in enriched)

    @pytest.mark.asyncio
    async def test_empty_batch(self, make_opensea, sleep):
        """Test nothing is requested for an empty batch"""
        provider = FakeProvider(price_handler(set()))
        service = AssetEnrichmentService(make_opensea(provider), sleep=sleep)

        assert await service.enrich_prices("azuki", []) == []
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_bounded_concurrency(self, make_opensea, sleep, assets):
        """Test the semaphore caps in-flight lookups"""
        in_flight = 0
        peak = 0

        async def handler(request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200, json=price_payload())

        service = AssetEnrichmentService(make_opensea(FakeProvider(handler)), concurrency=2, sleep=sleep)
        enriched = await service.enrich_prices("azuki", assets)

        assert peak <= 2
        assert all(a.price is not None for a in enriched)

    @pytest.mark.asyncio
    async def test_unbounded_by_default(self, make_opensea, sleep, assets):
        """Test every lookup starts before any finishes"""
        started = 0
        all_started = asyncio.Event()

        async def handler(request):
            nonlocal started
            started += 1
            if started == len(assets):
                all_started.set()
            await asyncio.wait_for(all_started.wait(), timeout=1)
            return httpx.Response(200, json=price_payload())

        service = AssetEnrichmentService(make_opensea(FakeProvider(handler)), sleep=sleep)
        enriched = await service.enrich_prices("azuki", assets)

        assert started == 5
        assert all(a.price is not None for a in enriched)


class TestLoadAssets:
    """Test cursor paging until enough assets with images are collected"""

    @pytest.mark.asyncio
    async def test_single_page_enough(self, make_opensea, sleep):
        """Test one page is enough when it has target images"""
        page = [asset_payload(str(i)) for i in range(8)]
        provider = FakeProvider(paged_assets_handler([page, page]))
        service = AssetEnrichmentService(make_opensea(provider), target_count=4, sleep=sleep)

        loaded = await service.load_assets("azuki")

        assert [a.identifier for a in loaded] == ["0", "1", "2", "3"]
        assert all(a.price is not None for a in loaded)
        listing = [r for r in provider.requests if r.url.path.endswith("/nfts")]
        assert len(listing) == 1
        assert listing[0].url.path == "/api/v2/collection/azuki/nfts"
        assert listing[0].url.params["limit"] == "8"
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_pages_until_target(self, make_opensea, sleep):
        """Test further pages are fetched while images are short"""
        first = [asset_payload("1"), asset_payload("2", with_image=False), asset_payload("3", with_image=False)]
        second = [asset_payload("4"), asset_payload("5", with_image=False)]
        third = [asset_payload("6"), asset_payload("7")]
        provider = FakeProvider(paged_assets_handler([first, second, third]))
        service = AssetEnrichmentService(make_opensea(provider), target_count=3, page_delay=0.5, sleep=sleep)

        loaded = await service.load_assets("azuki")

        assert [a.identifier for a in loaded] == ["1", "4", "6"]
        assert all(a.has_image for a in loaded)
        assert sleep.calls == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_cursor_exhausted(self, make_opensea, sleep):
        """Test fewer than target are returned when the collection runs out"""
        provider = FakeProvider(paged_assets_handler([[asset_payload("1"), asset_payload("2", with_image=False)]]))
        service = AssetEnrichmentService(make_opensea(provider), target_count=5, sleep=sleep)

        loaded = await service.load_assets("azuki")

        assert [a.identifier for a in loaded] == ["1"]

    @pytest.mark.asyncio
    async def test_first_page_failure(self, make_opensea, sleep):
        """Test an OpenSea failure on the first page yields nothing"""
        service = AssetEnrichmentService(make_opensea(FakeProvider(lambda r: httpx.Response(503))), sleep=sleep)

        assert await service.load_assets("azuki") == []

    @pytest.mark.asyncio
    async def test_later_page_failure_keeps_collected(self, make_opensea, sleep):
        """Test assets gathered before a failing page are returned"""
        first = [asset_payload("1"), asset_payload("2", with_image=False)]
        provider = FakeProvider(paged_assets_handler([first, first], failing_cursor="page-1"))
        service = AssetEnrichmentService(make_opensea(provider), target_count=5, sleep=sleep)

        loaded = await service.load_assets("azuki")

        assert [a.identifier for a in loaded] == ["1"]
        assert loaded[0].price is not None

    @pytest.mark.asyncio
    async def test_explicit_target_overrides_default(self, make_opensea, sleep):
        """Test per-call target count"""
        page = [asset_payload(str(i)) for i in range(10)]
        provider = FakeProvider(paged_assets_handler([page]))
        service = AssetEnrichmentService(make_opensea(provider), target_count=20, sleep=sleep)

        loaded = await service.load_assets("pudgy-penguins", target_count=2)

        assert len(loaded) == 2
        listing = [r for r in provider.requests if r.url.path.endswith("/nfts")]
        assert listing[0].url.path == "/api/v2/collection/pudgypenguins/nfts"
        assert listing[0].url.params["limit"] == "4"
