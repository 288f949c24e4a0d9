from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from core.types import Amount, BalanceOutcome


def consolidate(outcomes: Iterable[BalanceOutcome]) -> dict[str, Amount]:
    """Sum per-currency volumes across all successful outcomes.

    Failed outcomes are skipped; the result is the same whatever order the
    outcomes arrive in.
    """
    volumes: dict[str, Amount] = {}
    for outcome in outcomes:
        if not outcome.success or outcome.balances is None:
            continue
        for currency, amount in outcome.balances.items():
            volumes[currency] = volumes.get(currency, Decimal("0")) + amount
    return volumes
