"""Synthetic balances for exchanges running in demo mode."""

from __future__ import annotations

import random
from decimal import Decimal
from typing import Sequence

from core.portfolio.valuation import VOLUME_PLACES, quantize


class DemoExchange:
    """Stand-in for a real exchange client.

    Produces a stable pseudo-random balance for each requested currency,
    seeded by exchange id and currency, so repeated calls return the same
    portfolio.
    """

    def __init__(
        self,
        exchange_id: str,
        *,
        min_volume: float = 0.1,
        max_volume: float = 100.0,
    ) -> None:
        if min_volume <= 0 or max_volume < min_volume:
            raise ValueError("Demo volume range must be positive and ordered")
        self.exchange_id = exchange_id
        self.min_volume = min_volume
        self.max_volume = max_volume

    def volume_for(self, currency: str) -> Decimal:
        rng = random.Random(f"{self.exchange_id}:{currency}")
        return quantize(Decimal(str(rng.uniform(self.min_volume, self.max_volume))), VOLUME_PLACES)

    async def get_balances(self, currencies: Sequence[str]) -> dict[str, dict[str, Decimal]]:
        balances = {}
        for currency in currencies:
            volume = self.volume_for(currency)
            balances[currency] = {"total": volume, "available": volume}
        return balances
