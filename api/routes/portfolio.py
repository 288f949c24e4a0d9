"""API endpoint for the consolidated multi-exchange portfolio."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from core.portfolio.config import PortfolioSettings
from core.portfolio.errors import MarketDataUnavailable
from core.portfolio.interfaces import MarketDataService
from core.portfolio.service import PortfolioAggregator, PortfolioReport
from core.portfolio.symbols import SymbolMapper, default_mapper
from core.types import ConsolidatedEntry, ExchangeSource

logger = logging.getLogger(__name__)

router = APIRouter(tags=["portfolio"])

EMPTY_PORTFOLIO: dict[str, Any] = {"balances": {}, "price": 0, "convertedPrice": {}}


class BalanceEntryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    volume: float
    price: float = 0
    price_percent: float = Field(0, alias="pricePercent")
    converted_price: dict[str, float] = Field(default_factory=dict, alias="convertedPrice")
    unknown_price: bool = Field(True, alias="unknownPrice")


class PortfolioResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    balances: dict[str, BalanceEntryResponse] = Field(default_factory=dict)
    price: float = 0
    converted_price: dict[str, float] = Field(default_factory=dict, alias="convertedPrice")


def _parse_list(values: Optional[Sequence[str]]) -> list[str]:
    """Flatten repeated and comma-separated query values."""
    if not values:
        return []
    items: list[str] = []
    for value in values:
        items.extend(item.strip() for item in value.split(",") if item.strip())
    return items


def _entry_to_dict(entry: ConsolidatedEntry) -> dict[str, Any]:
    return {
        "volume": float(entry.volume),
        "price": float(entry.price),
        "pricePercent": float(entry.price_percent),
        "convertedPrice": {quote: float(value) for quote, value in entry.converted_price.items()},
        "unknownPrice": entry.unknown_price,
    }


def _report_to_dict(report: PortfolioReport) -> dict[str, Any]:
    valuation = report.valuation
    return {
        "balances": {currency: _entry_to_dict(entry) for currency, entry in valuation.balances.items()},
        "price": float(valuation.total_usd),
        "convertedPrice": {quote: float(total) for quote, total in valuation.total_converted.items()},
    }


def _get_aggregator(request: Request) -> PortfolioAggregator:
    return request.app.state.portfolio


def register_portfolio_routes(
    app: FastAPI,
    *,
    sources: Sequence[ExchangeSource],
    market_data: Optional[MarketDataService],
    settings: Optional[PortfolioSettings] = None,
    mapper: Optional[SymbolMapper] = None,
) -> bool:
    """Mount ``/portfolio`` if a market-data service and a balance source exist.

    ``mapper`` translates exchange currencies to the market-data service's
    symbols; the default table is used when omitted.

    Returns:
        True if the route was registered
    """
    balance_sources = [s for s in sources if callable(getattr(s.client, "get_balances", None))]
    if market_data is None or not balance_sources:
        logger.info(
            f"Portfolio route disabled: sources={len(balance_sources)} market_data={market_data is not None}"
        )
        return False

    app.state.portfolio = PortfolioAggregator(balance_sources, market_data, settings, mapper=mapper or default_mapper)
    app.include_router(router)
    logger.info(f"Portfolio route enabled for exchanges: {', '.join(s.id for s in balance_sources)}")
    return True


@router.get("/portfolio", response_model=PortfolioResponse)
async def get_portfolio(
    request: Request,
    exchanges: Optional[list[str]] = Query(None, description="Exchange ids (comma-separated or repeated)"),
    convert_to: Optional[list[str]] = Query(
        None, alias="convertTo", description="Extra quote currencies (comma-separated or repeated)"
    ),
) -> dict[str, Any]:
    """Get balances across exchanges valued in USD and optional quote currencies.

    Unknown exchange ids are ignored; if none of the requested ids exist an
    empty portfolio is returned without contacting any exchange.

    Raises:
        HTTPException: 503 if market data is unavailable, 504 on timeout
    """
    aggregator = _get_aggregator(request)

    # Only an absent or blank parameter means "all exchanges"
    if exchanges and any(value.strip() for value in exchanges):
        sources = aggregator.select_sources(_parse_list(exchanges))
        if not sources:
            return dict(EMPTY_PORTFOLIO)
    else:
        sources = aggregator.select_sources()

    quotes = _parse_list(convert_to)

    try:
        report = await asyncio.wait_for(
            aggregator.aggregate(sources, quotes),
            timeout=aggregator.settings.request_timeout,
        )
    except MarketDataUnavailable as exc:
        logger.error(f"Portfolio market data lookup failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail={"error": "market_data_unavailable", "message": str(exc)},
        ) from exc
    except asyncio.TimeoutError as exc:
        logger.error(f"Portfolio aggregation timed out after {aggregator.settings.request_timeout}s")
        raise HTTPException(
            status_code=504,
            detail={"error": "portfolio_timeout", "message": "Portfolio aggregation timed out"},
        ) from exc

    for outcome in report.failed:
        logger.warning(
            f"Balance fetch failed for exchange={outcome.source_id}: "
            f"{outcome.error.__class__.__name__}: {outcome.error}"
        )

    return _report_to_dict(report)
