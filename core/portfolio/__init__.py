"""Portfolio aggregation module.

Concurrent balance fetching, cross-exchange consolidation, symbol mapping,
market pricing and valuation.
"""

from .config import PortfolioSettings
from .consolidator import consolidate
from .demo import DemoExchange
from .errors import MarketDataUnavailable, PortfolioError
from .fetcher import BalanceFetcher
from .interfaces import BalanceClient, DemoBalanceClient, MarketDataService
from .pricing import PriceEnricher
from .service import PortfolioAggregator, PortfolioReport
from .singleflight import SingleFlight, TopCurrenciesCache
from .symbols import SymbolMapper
from .valuation import ValuationEngine

__all__ = [
    # Pipeline
    "BalanceFetcher",
    "consolidate",
    "PriceEnricher",
    "ValuationEngine",
    "PortfolioAggregator",
    "PortfolioReport",
    # Symbols
    "SymbolMapper",
    # Concurrency
    "SingleFlight",
    "TopCurrenciesCache",
    # Demo
    "DemoExchange",
    # Config
    "PortfolioSettings",
    # Errors
    "PortfolioError",
    "MarketDataUnavailable",
    # Interfaces
    "BalanceClient",
    "DemoBalanceClient",
    "MarketDataService",
]
