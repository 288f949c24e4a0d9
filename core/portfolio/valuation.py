"""Portfolio valuation.

USD values are kept to 4 decimal places, volumes and converted values to 8,
and portfolio shares to 2. All rounding is half away from zero on Decimal so
the displayed per-currency values add up to the displayed totals.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from core.types import USD, Amount, ConsolidatedEntry, PortfolioValuation

USD_PLACES = Decimal("0.0001")
VOLUME_PLACES = Decimal("0.00000001")
CONVERTED_PLACES = VOLUME_PLACES
PERCENT_PLACES = Decimal("0.01")

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


def quantize(value: Decimal, places: Decimal) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


class ValuationEngine:
    """Value consolidated volumes against a price map.

    Percentages need the final USD total, so valuation runs in two passes:
    the first prices every currency and accumulates totals, the second
    derives each currency's share of the total.
    """

    def value(
        self,
        consolidated: Mapping[str, Amount],
        prices: Mapping[str, Mapping[str, Amount]],
    ) -> PortfolioValuation:
        entries = {currency: ConsolidatedEntry(volume=volume) for currency, volume in consolidated.items()}
        total_usd = _ZERO
        total_converted: dict[str, Amount] = {}

        for currency, entry in entries.items():
            record = prices.get(currency)
            if record is None:
                continue

            entry.unknown_price = False
            for quote, price in record.items():
                if quote == USD:
                    entry.price = quantize(entry.volume * price, USD_PLACES)
                    total_usd += entry.price
                else:
                    converted = quantize(entry.volume * price, CONVERTED_PLACES)
                    entry.converted_price[quote] = converted
                    total_converted[quote] = total_converted.get(quote, _ZERO) + converted
            entry.volume = quantize(entry.volume, VOLUME_PLACES)

        for entry in entries.values():
            entry.price_percent = self.percent_of(entry.price, total_usd)

        return PortfolioValuation(
            balances=entries,
            total_usd=quantize(total_usd, USD_PLACES),
            total_converted={quote: quantize(total, CONVERTED_PLACES) for quote, total in total_converted.items()},
        )

    @staticmethod
    def percent_of(price: Amount, total_usd: Amount) -> Amount:
        # No currency had a known USD price: no share applies
        if total_usd == _ZERO:
            return _ZERO
        return quantize(_HUNDRED * price / total_usd, PERCENT_PLACES)
