"""Request de-duplication for concurrent callers.

``SingleFlight`` keeps one in-flight future per key. Callers arriving while
a call is outstanding await that same future; once it completes the key is
forgotten so the next caller starts a fresh call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable, Optional, Sequence

from core.portfolio.interfaces import MarketDataService

logger = logging.getLogger(__name__)


class SingleFlight:
    """Share one outstanding coroutine per key between concurrent callers."""

    def __init__(self) -> None:
        self._calls: dict[Hashable, asyncio.Future[Any]] = {}

    def in_flight(self, key: Hashable) -> bool:
        return key in self._calls

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``fn`` unless a call for ``key`` is already running, then await it.

        The shared call is shielded: cancelling one waiter does not cancel the
        call for the others.
        """
        future = self._calls.get(key)
        if future is None:
            future = asyncio.ensure_future(fn())
            self._calls[key] = future
            future.add_done_callback(lambda done, k=key: self._forget(k, done))
        return await asyncio.shield(future)

    def _forget(self, key: Hashable, future: asyncio.Future[Any]) -> None:
        if self._calls.get(key) is future:
            del self._calls[key]


class TopCurrenciesCache:
    """Top-N currencies by market cap, looked up at most once at a time.

    Used by demo sources to decide which currencies get synthetic balances.
    A failed lookup yields an empty list instead of raising.
    """

    def __init__(
        self,
        market_data: MarketDataService,
        *,
        limit: int = 20,
        timeout: Optional[float] = None,
        flight: Optional[SingleFlight] = None,
    ) -> None:
        self.market_data = market_data
        self.limit = limit
        self.timeout = timeout
        self._flight = flight or SingleFlight()

    async def get(self) -> list[str]:
        return await self._flight.do(("top", self.limit), self._lookup)

    async def _lookup(self) -> list[str]:
        try:
            tickers: Sequence[Any] = await asyncio.wait_for(
                self.market_data.get_tickers(limit=self.limit),
                timeout=self.timeout,
            )
        except Exception as exc:
            logger.warning(f"Top {self.limit} currency lookup failed: {exc.__class__.__name__}: {exc}")
            return []

        return [str(t["symbol"]) for t in tickers if t.get("symbol")]
