"""Tests for CoinGecko ticker client."""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest

from core.market_cap.coingecko import CoinGeckoClient
from core.portfolio.pricing import PriceEnricher
from core.portfolio.symbols import SymbolMapper

MARKETS = {
    "usd": [
        {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "market_cap_rank": 1, "current_price": 50000},
        {"id": "ethereum", "symbol": "eth", "name": "Ethereum", "market_cap_rank": 2, "current_price": 3000},
        {"id": "iota", "symbol": "miota", "name": "IOTA", "market_cap_rank": 90, "current_price": None},
    ],
    "btc": [
        {"id": "bitcoin", "symbol": "btc", "current_price": 1.0},
        {"id": "ethereum", "symbol": "eth", "current_price": 0.06},
    ],
    "eur": [
        {"id": "bitcoin", "symbol": "btc", "current_price": 46000},
        {"id": "ethereum", "symbol": "eth", "current_price": 2760},
    ],
}


def _transport(requests: list[httpx.Request], status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": "rate limited"})
        vs_currency = request.url.params["vs_currency"]
        return httpx.Response(200, json=MARKETS.get(vs_currency, []))

    return httpx.MockTransport(handler)


def test_coingecko_client_init():
    """Test CoinGecko client initialization."""
    client = CoinGeckoClient(timeout=5)
    assert client.timeout == 5
    assert client.base_url.startswith("https://api.coingecko.com")


@pytest.mark.asyncio
async def test_get_tickers_joins_quotes():
    """USD, BTC and converted prices are joined by coin id."""
    requests: list[httpx.Request] = []
    client = CoinGeckoClient(transport=_transport(requests))

    tickers = await client.get_tickers(symbols=["BTC", "ETH"], convert_to=["EUR"])

    by_symbol = {t["symbol"]: t for t in tickers}
    assert by_symbol["BTC"]["price_usd"] == 50000
    assert by_symbol["BTC"]["price_btc"] == 1.0
    assert by_symbol["BTC"]["converted"] == {"EUR": {"price": 46000}}
    assert by_symbol["ETH"]["price_btc"] == 0.06
    assert by_symbol["ETH"]["converted"] == {"EUR": {"price": 2760}}

    vs_currencies = sorted(r.url.params["vs_currency"] for r in requests)
    assert vs_currencies == ["btc", "eur", "usd"]
    assert all(r.url.params["symbols"] == "btc,eth" for r in requests)


@pytest.mark.asyncio
async def test_get_tickers_keeps_missing_usd_price_as_none():
    client = CoinGeckoClient(transport=_transport([]))

    tickers = await client.get_tickers(symbols=["MIOTA"])

    miota = next(t for t in tickers if t["symbol"] == "MIOTA")
    assert miota["price_usd"] is None
    assert miota["price_btc"] is None
    assert miota["converted"] == {}


@pytest.mark.asyncio
async def test_get_tickers_top_n_uses_limit():
    requests: list[httpx.Request] = []
    client = CoinGeckoClient(transport=_transport(requests))

    tickers = await client.get_tickers(limit=20)

    assert [t["symbol"] for t in tickers] == ["BTC", "ETH", "MIOTA"]
    assert all(r.url.params["per_page"] == "20" for r in requests)
    assert all("symbols" not in r.url.params for r in requests)


@pytest.mark.asyncio
async def test_usd_and_btc_not_requested_twice():
    requests: list[httpx.Request] = []
    client = CoinGeckoClient(transport=_transport(requests))

    await client.get_tickers(symbols=["BTC"], convert_to=["usd", "BTC", "EUR", "eur"])

    assert sorted(r.url.params["vs_currency"] for r in requests) == ["btc", "eur", "usd"]


@pytest.mark.asyncio
async def test_empty_symbol_list_skips_request():
    requests: list[httpx.Request] = []
    client = CoinGeckoClient(transport=_transport(requests))

    assert await client.get_tickers(symbols=[]) == []
    assert requests == []


@pytest.mark.asyncio
async def test_fetch_handles_api_error():
    """Test that API errors are raised properly."""
    client = CoinGeckoClient(transport=_transport([], status_code=429))

    with pytest.raises(RuntimeError, match="CoinGecko API request failed"):
        await client.get_tickers(symbols=["BTC"])


@pytest.mark.asyncio
async def test_unexpected_payload_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"status": "error"}))
    client = CoinGeckoClient(transport=transport)

    with pytest.raises(RuntimeError, match="Unexpected CoinGecko response format"):
        await client.get_tickers(limit=5)


@pytest.mark.asyncio
async def test_renamed_currencies_priced_with_coingecko_symbols():
    """IOTA and XRB holdings resolve against CoinGecko's iota and xno listings."""
    listings = {
        "usd": [
            {"id": "iota", "symbol": "iota", "name": "IOTA", "current_price": 0.25},
            {"id": "nano", "symbol": "xno", "name": "Nano", "current_price": 1.1},
        ],
        "btc": [
            {"id": "iota", "symbol": "iota", "current_price": 0.000004},
            {"id": "nano", "symbol": "xno", "current_price": 0.00002},
        ],
    }
    requested_symbols: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        wanted = request.url.params["symbols"].split(",")
        requested_symbols.extend(wanted)
        coins = listings.get(request.url.params["vs_currency"], [])
        return httpx.Response(200, json=[coin for coin in coins if coin["symbol"] in wanted])

    client = CoinGeckoClient(transport=httpx.MockTransport(handler))
    enricher = PriceEnricher(client, mapper=SymbolMapper(CoinGeckoClient.SYMBOL_OVERRIDES))

    prices = await enricher.enrich({"IOTA", "XRB"})

    assert set(requested_symbols) == {"iota", "xno"}
    assert prices["IOTA"] == {"USD": Decimal("0.25"), "BTC": Decimal("0.000004")}
    assert prices["XRB"] == {"USD": Decimal("1.1"), "BTC": Decimal("0.00002")}
