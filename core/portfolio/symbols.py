"""Exchange currency <-> market-data symbol translation.

Most exchanges and the market-data service agree on currency symbols. The
few that differ are listed once in ``SYMBOL_OVERRIDES`` and both lookup
directions are derived from it.
"""

from __future__ import annotations

from typing import Iterable

# (exchange currency, market-data symbol), CoinMarketCap naming. Market-data
# clients that name these differently supply their own pairs.
SYMBOL_OVERRIDES: tuple[tuple[str, str], ...] = (
    ("IOTA", "MIOTA"),
    ("XRB", "NANO"),
)


class SymbolMapper:
    """Bidirectional symbol table; identity for anything not overridden."""

    def __init__(self, overrides: Iterable[tuple[str, str]] = SYMBOL_OVERRIDES) -> None:
        self._to_market: dict[str, str] = {}
        self._to_currency: dict[str, str] = {}
        for currency, symbol in overrides:
            if currency in self._to_market or symbol in self._to_currency:
                raise ValueError(f"Duplicate symbol override: {currency} <-> {symbol}")
            self._to_market[currency] = symbol
            self._to_currency[symbol] = currency

    def to_market_symbol(self, currency: str) -> str:
        return self._to_market.get(currency, currency)

    def to_currency(self, symbol: str) -> str:
        return self._to_currency.get(symbol, symbol)

    def to_market_symbols(self, currencies: Iterable[str]) -> list[str]:
        return [self.to_market_symbol(c) for c in currencies]


default_mapper = SymbolMapper()
