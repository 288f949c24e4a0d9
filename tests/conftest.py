"""Shared test fixtures for pytest.

Provides the exchange sources and market-data service used across the
portfolio test modules.
"""

from __future__ import annotations

import pytest

from core.types import ExchangeSource
from fakes import FakeExchange, FakeMarketData, ticker


@pytest.fixture
def two_exchange_sources() -> list[ExchangeSource]:
    """Exchange A holds 1 BTC; exchange B holds 0.5 BTC and 10 ETH."""
    return [
        ExchangeSource(id="exchange_a", client=FakeExchange({"BTC": "1.0"})),
        ExchangeSource(id="exchange_b", client=FakeExchange({"BTC": "0.5", "ETH": "10"})),
    ]


@pytest.fixture
def btc_eth_market_data() -> FakeMarketData:
    return FakeMarketData([ticker("BTC", "20000", "1"), ticker("ETH", "2000", "0.1")])
