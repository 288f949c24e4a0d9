"""Portfolio aggregation errors."""

from __future__ import annotations


class PortfolioError(Exception):
    """Base exception for portfolio aggregation."""


class MarketDataUnavailable(PortfolioError):
    """The market-data lookup failed; the portfolio cannot be valued."""

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
