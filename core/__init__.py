"""Core domain modules.

This package contains the building blocks of the portfolio service:

- portfolio: balance fetching, consolidation, pricing and valuation
- market_cap: market-data client (ticker prices, market cap rankings)
- types: shared value types (balances, tickers, portfolio entries)
"""
