"""FastAPI application for the multi-exchange portfolio service.

This module provides a minimal HTTP API service for:
- GET /portfolio - Consolidated balances across exchanges, valued in USD
- GET /system/health - Uptime and portfolio route status

Configuration comes from the environment (see ``PortfolioSettings.from_env``):
- PORTFOLIO_EXCHANGES - Comma-separated exchange ids (e.g. bitfinex)
- PORTFOLIO_DEMO_EXCHANGES - Exchanges served with synthetic balances
- BITFINEX_API_KEY / BITFINEX_API_SECRET - Exchange credentials
- No authentication (local network only)
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from fastapi import FastAPI

from api.routes import health, portfolio
from core.market_cap.coingecko import CoinGeckoClient
from core.portfolio.config import PortfolioSettings
from core.portfolio.interfaces import MarketDataService
from core.portfolio.registry import build_sources
from core.portfolio.symbols import SymbolMapper
from core.types import ExchangeSource

logger = logging.getLogger(__name__)


def create_app(
    *,
    sources: Optional[Sequence[ExchangeSource]] = None,
    market_data: Optional[MarketDataService] = None,
    settings: Optional[PortfolioSettings] = None,
    mapper: Optional[SymbolMapper] = None,
) -> FastAPI:
    """Build the API with the given collaborators.

    The portfolio route is only mounted when at least one balance source and
    a market-data service are provided.
    """
    app = FastAPI(
        title="Portfolio Aggregator API",
        description="Consolidated balances across exchange accounts, valued at market prices",
        version="1.0.0",
    )
    app.include_router(health.router)
    portfolio.register_portfolio_routes(
        app,
        sources=sources or [],
        market_data=market_data,
        settings=settings,
        mapper=mapper,
    )
    return app


def create_app_from_env() -> FastAPI:
    """Build the API from environment configuration."""
    settings = PortfolioSettings.from_env()
    sources = build_sources(settings)
    market_data = CoinGeckoClient(timeout=settings.market_data_timeout)
    mapper = SymbolMapper(CoinGeckoClient.SYMBOL_OVERRIDES)
    return create_app(sources=sources, market_data=market_data, settings=settings, mapper=mapper)


app = create_app_from_env()
