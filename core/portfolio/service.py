"""Portfolio aggregation pipeline.

fetch balances -> consolidate -> map symbols -> fetch prices -> value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from core.portfolio.config import PortfolioSettings
from core.portfolio.consolidator import consolidate
from core.portfolio.fetcher import BalanceFetcher
from core.portfolio.interfaces import MarketDataService
from core.portfolio.pricing import PriceEnricher
from core.portfolio.singleflight import TopCurrenciesCache
from core.portfolio.symbols import SymbolMapper, default_mapper
from core.portfolio.valuation import ValuationEngine
from core.types import BalanceOutcome, ExchangeSource, PortfolioValuation


@dataclass(frozen=True)
class PortfolioReport:
    valuation: PortfolioValuation
    outcomes: tuple[BalanceOutcome, ...] = ()

    @property
    def failed(self) -> list[BalanceOutcome]:
        return [o for o in self.outcomes if not o.success]


class PortfolioAggregator:
    """Aggregate balances from registered sources into a valued portfolio.

    Built once per process; the demo top-N cache it owns is shared by every
    request served through it.
    """

    def __init__(
        self,
        sources: Sequence[ExchangeSource],
        market_data: MarketDataService,
        settings: Optional[PortfolioSettings] = None,
        *,
        mapper: SymbolMapper = default_mapper,
        top_currencies: Optional[TopCurrenciesCache] = None,
    ) -> None:
        self.settings = settings or PortfolioSettings()
        self.sources: dict[str, ExchangeSource] = {source.id: source for source in sources}
        self.market_data = market_data
        self.top_currencies = top_currencies or TopCurrenciesCache(
            market_data,
            limit=self.settings.demo_top_n,
            timeout=self.settings.market_data_timeout,
        )
        self.fetcher = BalanceFetcher(self.top_currencies, timeout=self.settings.source_timeout)
        self.enricher = PriceEnricher(market_data, mapper=mapper, timeout=self.settings.market_data_timeout)
        self.engine = ValuationEngine()

    def select_sources(self, requested: Optional[Iterable[str]] = None) -> list[ExchangeSource]:
        """Resolve requested ids to sources, dropping unknown ids.

        ``None`` selects every registered source. Duplicates are collapsed.
        """
        if requested is None:
            return list(self.sources.values())

        selected: list[ExchangeSource] = []
        seen: set[str] = set()
        for source_id in requested:
            if source_id in self.sources and source_id not in seen:
                seen.add(source_id)
                selected.append(self.sources[source_id])
        return selected

    async def aggregate(
        self,
        sources: Sequence[ExchangeSource],
        convert_to: Sequence[str] = (),
    ) -> PortfolioReport:
        """Build the portfolio for ``sources``.

        Raises:
            MarketDataUnavailable: If prices cannot be fetched
        """
        if not sources:
            return PortfolioReport(valuation=PortfolioValuation.empty())

        outcomes = await self.fetcher.fetch_all(sources)
        volumes = consolidate(outcomes)
        prices = await self.enricher.enrich(volumes.keys(), convert_to)
        valuation = self.engine.value(volumes, prices)
        return PortfolioReport(valuation=valuation, outcomes=tuple(outcomes))
