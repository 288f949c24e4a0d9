from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence


class BalanceClient(Protocol):
    async def get_balances(self) -> Mapping[str, Mapping[str, Any]]:
        """Fetch balances as currency -> {"total": amount, ...}."""


class DemoBalanceClient(Protocol):
    async def get_balances(self, currencies: Sequence[str]) -> Mapping[str, Mapping[str, Any]]:
        """Fetch synthetic balances restricted to ``currencies``."""


class MarketDataService(Protocol):
    async def get_tickers(
        self,
        *,
        symbols: Optional[Sequence[str]] = None,
        convert_to: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Mapping[str, Any]]:
        """Fetch tickers by symbol, or the top ``limit`` by market cap."""
