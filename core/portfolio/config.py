from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _parse_ids(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _positive_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class PortfolioSettings:
    """Aggregation settings.

    Timeouts are in seconds. ``exchanges`` lists the exchange ids to
    register; ``demo_exchanges`` is the subset served by synthetic balances.
    Exchange credentials are read separately by each client and must not be
    logged.
    """

    source_timeout: float = 15.0
    market_data_timeout: float = 10.0
    request_timeout: float = 30.0
    demo_top_n: int = 20
    exchanges: tuple[str, ...] = ()
    demo_exchanges: frozenset[str] = frozenset()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PortfolioSettings":
        env = os.environ if environ is None else environ

        top_n_raw = env.get("PORTFOLIO_DEMO_TOP_N", "").strip()
        try:
            demo_top_n = int(top_n_raw) if top_n_raw else cls.demo_top_n
        except ValueError as exc:
            raise ValueError(f"PORTFOLIO_DEMO_TOP_N must be an integer, got {top_n_raw!r}") from exc
        if demo_top_n < 1:
            raise ValueError("PORTFOLIO_DEMO_TOP_N must be at least 1")

        return cls(
            source_timeout=_positive_float(env, "PORTFOLIO_SOURCE_TIMEOUT", cls.source_timeout),
            market_data_timeout=_positive_float(env, "PORTFOLIO_MARKET_DATA_TIMEOUT", cls.market_data_timeout),
            request_timeout=_positive_float(env, "PORTFOLIO_REQUEST_TIMEOUT", cls.request_timeout),
            demo_top_n=demo_top_n,
            exchanges=_parse_ids(env.get("PORTFOLIO_EXCHANGES")),
            demo_exchanges=frozenset(_parse_ids(env.get("PORTFOLIO_DEMO_EXCHANGES"))),
        )
