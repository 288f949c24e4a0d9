"""Concurrent balance retrieval across exchange sources."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Sequence

from core.portfolio.singleflight import TopCurrenciesCache
from core.types import Amount, BalanceOutcome, ExchangeSource, to_amount


def parse_balances(raw: Mapping[str, Any]) -> dict[str, Amount]:
    """Reduce a client balance payload to currency -> total.

    Entries are either ``{"total": amount, ...}`` mappings or bare amounts.
    """
    totals: dict[str, Amount] = {}
    for currency, entry in raw.items():
        value = entry.get("total") if isinstance(entry, Mapping) else entry
        if value is None:
            raise ValueError(f"Missing total for {currency}")
        totals[str(currency)] = to_amount(value)
    return totals


class BalanceFetcher:
    """Fetch balances from every selected source at once.

    Each source gets its own outcome. A source that raises or times out
    produces a failed outcome and never affects the others.
    """

    def __init__(
        self,
        top_currencies: Optional[TopCurrenciesCache] = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.top_currencies = top_currencies
        self.timeout = timeout

    async def fetch_all(self, sources: Sequence[ExchangeSource]) -> list[BalanceOutcome]:
        if not sources:
            return []
        return list(await asyncio.gather(*(self.fetch(source) for source in sources)))

    async def fetch(self, source: ExchangeSource) -> BalanceOutcome:
        try:
            if source.is_demo:
                raw = await self._fetch_demo(source)
            else:
                raw = await asyncio.wait_for(source.client.get_balances(), timeout=self.timeout)
            balances = parse_balances(raw)
        except Exception as exc:
            return BalanceOutcome.failed(source.id, exc)
        return BalanceOutcome.ok(source.id, balances)

    async def _fetch_demo(self, source: ExchangeSource) -> Mapping[str, Any]:
        if self.top_currencies is None:
            return {}
        currencies = await self.top_currencies.get()
        if not currencies:
            return {}
        return await asyncio.wait_for(source.client.get_balances(currencies), timeout=self.timeout)
