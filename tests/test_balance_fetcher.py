"""Tests for concurrent balance fetching."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.portfolio.fetcher import BalanceFetcher, parse_balances
from core.portfolio.singleflight import TopCurrenciesCache
from core.types import ExchangeSource
from fakes import FakeDemoExchange, FakeExchange, FakeMarketData


def test_parse_balances_reads_totals() -> None:
    raw = {"BTC": {"total": "1.5", "available": "1"}, "ETH": {"total": 2.25}, "XRP": Decimal("7")}
    assert parse_balances(raw) == {"BTC": Decimal("1.5"), "ETH": Decimal("2.25"), "XRP": Decimal("7")}


def test_parse_balances_converts_floats_via_str() -> None:
    assert parse_balances({"ETH": {"total": 0.1}})["ETH"] == Decimal("0.1")


def test_parse_balances_missing_total_raises() -> None:
    with pytest.raises(ValueError, match="Missing total"):
        parse_balances({"BTC": {"available": "1"}})


@pytest.mark.asyncio
async def test_fetch_all_returns_one_outcome_per_source() -> None:
    sources = [
        ExchangeSource(id="a", client=FakeExchange({"BTC": "1"})),
        ExchangeSource(id="b", client=FakeExchange({"ETH": "2"})),
    ]

    outcomes = await BalanceFetcher().fetch_all(sources)

    assert [o.source_id for o in outcomes] == ["a", "b"]
    assert all(o.success for o in outcomes)
    assert outcomes[0].balances == {"BTC": Decimal("1")}
    assert outcomes[1].balances == {"ETH": Decimal("2")}


@pytest.mark.asyncio
async def test_failing_source_does_not_abort_others() -> None:
    error = RuntimeError("exchange unreachable")
    sources = [
        ExchangeSource(id="down", client=FakeExchange(error=error)),
        ExchangeSource(id="up", client=FakeExchange({"BTC": "3"})),
    ]

    outcomes = await BalanceFetcher().fetch_all(sources)

    down, up = outcomes
    assert not down.success
    assert down.error is error
    assert down.balances is None
    assert up.success
    assert up.balances == {"BTC": Decimal("3")}


@pytest.mark.asyncio
async def test_slow_source_times_out_as_failure() -> None:
    sources = [
        ExchangeSource(id="slow", client=FakeExchange({"BTC": "1"}, delay=5)),
        ExchangeSource(id="fast", client=FakeExchange({"ETH": "1"})),
    ]

    outcomes = await BalanceFetcher(timeout=0.05).fetch_all(sources)

    slow, fast = outcomes
    assert not slow.success
    assert isinstance(slow.error, asyncio.TimeoutError)
    assert fast.success


@pytest.mark.asyncio
async def test_sources_run_concurrently() -> None:
    sources = [ExchangeSource(id=str(i), client=FakeExchange({"BTC": "1"}, delay=0.2)) for i in range(5)]
    loop = asyncio.get_running_loop()

    start = loop.time()
    outcomes = await BalanceFetcher().fetch_all(sources)
    elapsed = loop.time() - start

    assert len(outcomes) == 5
    assert elapsed < 0.8


@pytest.mark.asyncio
async def test_demo_source_restricted_to_top_currencies() -> None:
    market_data = FakeMarketData(top=[{"symbol": "BTC"}, {"symbol": "ETH"}])
    demo = FakeDemoExchange(volume="4")
    fetcher = BalanceFetcher(TopCurrenciesCache(market_data, limit=20))

    outcomes = await fetcher.fetch_all([ExchangeSource(id="demo", client=demo, is_demo=True)])

    assert demo.requested == [["BTC", "ETH"]]
    assert outcomes[0].success
    assert outcomes[0].balances == {"BTC": Decimal("4"), "ETH": Decimal("4")}


@pytest.mark.asyncio
async def test_demo_source_empty_when_top_lookup_fails() -> None:
    market_data = FakeMarketData(top_error=RuntimeError("rate limited"))
    demo = FakeDemoExchange()
    live = FakeExchange({"BTC": "1"})
    fetcher = BalanceFetcher(TopCurrenciesCache(market_data))

    outcomes = await fetcher.fetch_all(
        [
            ExchangeSource(id="demo", client=demo, is_demo=True),
            ExchangeSource(id="live", client=live),
        ]
    )

    demo_outcome, live_outcome = outcomes
    assert demo_outcome.success
    assert demo_outcome.balances == {}
    assert demo.requested == []
    assert live_outcome.balances == {"BTC": Decimal("1")}


@pytest.mark.asyncio
async def test_fetch_all_with_no_sources() -> None:
    assert await BalanceFetcher().fetch_all([]) == []


@pytest.mark.asyncio
async def test_fetch_awaits_client_once() -> None:
    client = MagicMock()
    client.get_balances = AsyncMock(return_value={"BTC": {"total": "0.25", "available": "0.25"}})
    fetcher = BalanceFetcher()

    outcome = await fetcher.fetch(ExchangeSource(id="mocked", client=client))

    assert outcome.success
    assert outcome.balances == {"BTC": Decimal("0.25")}
    client.get_balances.assert_awaited_once_with()
