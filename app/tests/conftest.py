"""Shared fixtures"""

from typing import Optional

import pytest

from app.core.cache import TTLCache
from app.core.events import EventBus
from app.ingestion.coingecko_source import CoinGeckoSource
from app.ingestion.opensea_source import OpenSeaSource
from app.tests.fakes import COINGECKO_BASE, OPENSEA_BASE, FakeClock, FakeProvider, RecordingSleep


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def make_coingecko(clock):
    """Factory for a CoinGecko client talking to a fake provider"""

    def factory(provider: FakeProvider, excluded_ids=(), api_key: Optional[str] = "cg-test-key") -> CoinGeckoSource:
        return CoinGeckoSource(
            api_key=api_key,
            base_url=COINGECKO_BASE,
            cache=TTLCache(ttl_seconds=180, max_entries=100, clock=clock),
            excluded_ids=excluded_ids,
            page_padding=5,
            transport=provider.transport,
        )

    return factory


@pytest.fixture
def make_opensea():
    """Factory for an OpenSea client talking to a fake provider"""

    def factory(provider: FakeProvider, api_key: Optional[str] = "os-test-key") -> OpenSeaSource:
        return OpenSeaSource(api_key=api_key, base_url=OPENSEA_BASE, transport=provider.transport)

    return factory
