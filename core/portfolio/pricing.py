"""Market price lookup for held currencies."""

from __future__ import annotations

import asyncio
from decimal import InvalidOperation
from typing import Any, Collection, Mapping, Optional, Sequence

from core.portfolio.errors import MarketDataUnavailable
from core.portfolio.interfaces import MarketDataService
from core.portfolio.symbols import SymbolMapper, default_mapper
from core.types import BTC, USD, Amount, TickerEntry

PriceRecord = dict[str, Amount]


class PriceEnricher:
    """Attach USD, BTC and converted prices to a set of held currencies."""

    def __init__(
        self,
        market_data: MarketDataService,
        *,
        mapper: SymbolMapper = default_mapper,
        timeout: Optional[float] = None,
    ) -> None:
        self.market_data = market_data
        self.mapper = mapper
        self.timeout = timeout

    def resolve_currency(self, symbol: str, held: Collection[str]) -> Optional[str]:
        """Match a ticker symbol to a held currency, directly or via the reverse map."""
        if symbol in held:
            return symbol
        currency = self.mapper.to_currency(symbol)
        return currency if currency in held else None

    async def enrich(self, currencies: Collection[str], convert_to: Sequence[str] = ()) -> dict[str, PriceRecord]:
        """Fetch prices for ``currencies``, keyed by exchange currency.

        Tickers that match no held currency, even after reverse symbol
        mapping, are ignored without being parsed. Matched tickers without a
        USD price are dropped. When two tickers resolve to the same currency
        the later one wins.

        Raises:
            MarketDataUnavailable: If the ticker lookup fails or times out, or
                a ticker for a held currency carries unparseable prices
        """
        if not currencies:
            return {}

        held = set(currencies)
        request: dict[str, object] = {"symbols": self.mapper.to_market_symbols(sorted(held))}
        if convert_to:
            request["convert_to"] = list(convert_to)

        try:
            payload = await asyncio.wait_for(self.market_data.get_tickers(**request), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise MarketDataUnavailable(f"Ticker lookup timed out after {self.timeout}s", cause=exc) from exc
        except Exception as exc:
            raise MarketDataUnavailable(f"Ticker lookup failed: {exc}", cause=exc) from exc

        if not isinstance(payload, (list, tuple)):
            raise MarketDataUnavailable(f"Malformed ticker payload: expected a list, got {type(payload).__name__}")

        prices: dict[str, PriceRecord] = {}
        for entry in payload:
            if not isinstance(entry, Mapping):
                continue
            currency = self.resolve_currency(str(entry.get("symbol", "")), held)
            if currency is None:
                continue

            ticker = self._parse(currency, entry)
            if ticker.price_usd is None:
                continue

            record: PriceRecord = {USD: ticker.price_usd}
            if ticker.price_btc is not None:
                record[BTC] = ticker.price_btc
            record.update(ticker.converted)
            prices[currency] = record

        return prices

    @staticmethod
    def _parse(currency: str, entry: Mapping[str, Any]) -> TickerEntry:
        try:
            return TickerEntry.from_mapping(entry)
        except (InvalidOperation, AttributeError, TypeError, ValueError) as exc:
            raise MarketDataUnavailable(f"Malformed ticker payload for {currency}: {exc}", cause=exc) from exc
