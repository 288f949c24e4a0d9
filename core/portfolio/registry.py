"""Build the exchange sources enabled in settings."""

from __future__ import annotations

import os
from typing import Any, Callable, Mapping, Optional

from cex.bitfinex.balances import BitfinexBalanceClient
from core.portfolio.config import PortfolioSettings
from core.portfolio.demo import DemoExchange
from core.types import ExchangeSource

ClientFactory = Callable[[Mapping[str, str], PortfolioSettings], Any]


def _bitfinex(environ: Mapping[str, str], settings: PortfolioSettings) -> BitfinexBalanceClient:
    return BitfinexBalanceClient.from_env(environ, timeout=settings.source_timeout)


CLIENT_FACTORIES: dict[str, ClientFactory] = {
    "bitfinex": _bitfinex,
}


def build_sources(
    settings: PortfolioSettings,
    environ: Optional[Mapping[str, str]] = None,
    factories: Optional[Mapping[str, ClientFactory]] = None,
) -> list[ExchangeSource]:
    """Instantiate one source per exchange id in ``settings.exchanges``.

    Exchanges listed in ``settings.demo_exchanges`` get a ``DemoExchange``
    instead of a real client and are flagged as demo sources. Their ids must
    still name a supported exchange.

    Raises:
        ValueError: If an exchange id has no client factory
    """
    env = os.environ if environ is None else environ
    factories = CLIENT_FACTORIES if factories is None else factories

    sources: list[ExchangeSource] = []
    for exchange_id in settings.exchanges:
        key = exchange_id.lower()
        if key not in factories:
            raise ValueError(f"Unsupported exchange: {exchange_id}. Supported: {', '.join(factories.keys())}")

        if exchange_id in settings.demo_exchanges:
            sources.append(ExchangeSource(id=exchange_id, client=DemoExchange(exchange_id), is_demo=True))
        else:
            sources.append(ExchangeSource(id=exchange_id, client=factories[key](env, settings)))
    return sources
