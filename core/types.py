from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional

Amount = Decimal

# Quote currency keys always present on an enriched price record
USD = "USD"
BTC = "BTC"


def to_amount(value: Any) -> Amount:
    """Convert an upstream numeric value to an exact Decimal.

    Floats go through ``str()`` so their shortest repr is used, not the
    binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class ExchangeSource:
    """A balance provider registered at startup."""

    id: str
    client: Any
    is_demo: bool = False


@dataclass(frozen=True)
class BalanceOutcome:
    """Result of fetching balances from one source."""

    source_id: str
    balances: Optional[Mapping[str, Amount]] = None
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, source_id: str, balances: Mapping[str, Amount]) -> "BalanceOutcome":
        return cls(source_id=source_id, balances=dict(balances))

    @classmethod
    def failed(cls, source_id: str, error: BaseException) -> "BalanceOutcome":
        return cls(source_id=source_id, error=error)


@dataclass(frozen=True)
class TickerEntry:
    symbol: str
    price_usd: Optional[Amount]
    price_btc: Optional[Amount] = None
    converted: Mapping[str, Amount] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TickerEntry":
        """Build from the market-data wire shape.

        ``converted`` maps quote currency -> {"price": value}.
        """
        converted: dict[str, Amount] = {}
        for quote, payload in (data.get("converted") or {}).items():
            price = payload.get("price") if isinstance(payload, Mapping) else payload
            if price is not None:
                converted[str(quote)] = to_amount(price)

        price_usd = data.get("price_usd")
        price_btc = data.get("price_btc")
        return cls(
            symbol=str(data.get("symbol", "")),
            price_usd=to_amount(price_usd) if price_usd is not None else None,
            price_btc=to_amount(price_btc) if price_btc is not None else None,
            converted=converted,
        )


@dataclass
class ConsolidatedEntry:
    """Per-currency portfolio line, mutated in place during valuation."""

    volume: Amount
    price: Amount = Decimal("0")
    price_percent: Amount = Decimal("0")
    converted_price: dict[str, Amount] = field(default_factory=dict)
    unknown_price: bool = True


@dataclass(frozen=True)
class PortfolioValuation:
    balances: dict[str, ConsolidatedEntry]
    total_usd: Amount
    total_converted: dict[str, Amount]

    @classmethod
    def empty(cls) -> "PortfolioValuation":
        return cls(balances={}, total_usd=Decimal("0"), total_converted={})
