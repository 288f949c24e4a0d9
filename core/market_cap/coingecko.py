"""CoinGecko API client for ticker prices and market cap rankings.

Implements the market-data service used by portfolio valuation on top of
CoinGecko's free ``/coins/markets`` endpoint. No API key required.

``/coins/markets`` prices in a single ``vs_currency`` per call, so a ticker
request issues one call per quote currency (USD, BTC and every requested
conversion) concurrently and joins the results by coin id.

Rate limits (CoinGecko free tier):
- 10-30 calls/minute
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

# CoinGecko free API endpoint
COINGECKO_API_BASE = "https://api.coingecko.com/api/v3"
MAX_PER_PAGE = 250  # CoinGecko free tier max


class CoinGeckoClient:
    """Async client for CoinGecko API (free tier, no API key)."""

    # (exchange currency, CoinGecko symbol) pairs for a SymbolMapper.
    # CoinGecko lists IOTA as "iota", so only Nano's rename needs an entry.
    SYMBOL_OVERRIDES: tuple[tuple[str, str], ...] = (("XRB", "XNO"),)

    def __init__(
        self,
        timeout: float = 10,
        *,
        base_url: str = COINGECKO_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize CoinGecko client.

        Args:
            timeout: Request timeout in seconds (default: 10)
            base_url: API root, overridable for tests
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``)
        """
        self.timeout = timeout
        self.base_url = base_url
        self._transport = transport

    async def fetch_markets(
        self,
        client: httpx.AsyncClient,
        vs_currency: str,
        *,
        symbols: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Fetch one page of ``/coins/markets`` priced in ``vs_currency``.

        Raises:
            RuntimeError: If the API request fails or returns an unexpected shape
        """
        params: dict[str, Any] = {
            "vs_currency": vs_currency.lower(),
            "order": "market_cap_desc",
            "per_page": min(limit or MAX_PER_PAGE, MAX_PER_PAGE),
            "page": 1,
            "sparkline": "false",
        }
        if symbols:
            params["symbols"] = ",".join(s.lower() for s in symbols)

        try:
            response = await client.get("/coins/markets", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.error(f"CoinGecko API request failed: {exc}")
            raise RuntimeError(f"CoinGecko API request failed: {exc}") from exc

        if not isinstance(data, list):
            raise RuntimeError(f"Unexpected CoinGecko response format: {type(data)}")
        return [coin for coin in data if isinstance(coin, dict)]

    async def get_tickers(
        self,
        *,
        symbols: Optional[Sequence[str]] = None,
        convert_to: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Fetch tickers for ``symbols``, or the top ``limit`` by market cap.

        Returns:
            List of ticker dicts with keys:
            - symbol: Uppercase ticker symbol (e.g., 'BTC')
            - name: Coin name
            - market_cap_rank: Market cap rank (1-based, may be None)
            - price_usd: Price in USD (may be None)
            - price_btc: Price in BTC (may be None)
            - converted: quote currency -> {"price": value}

        Raises:
            RuntimeError: If any API request fails
        """
        if symbols is not None and not symbols:
            return []

        extra_quotes: list[str] = []
        for quote in convert_to or ():
            quote = quote.strip().upper()
            if quote and quote not in ("USD", "BTC") and quote not in extra_quotes:
                extra_quotes.append(quote)
        quotes = ["USD", "BTC", *extra_quotes]

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Accept": "application/json", "User-Agent": "portfolio-aggregator/1.0"},
            transport=self._transport,
        ) as client:
            pages = await asyncio.gather(
                *(self.fetch_markets(client, quote, symbols=symbols, limit=limit) for quote in quotes)
            )

        prices_by_quote = {
            quote: {coin.get("id"): coin.get("current_price") for coin in page}
            for quote, page in zip(quotes, pages)
        }

        tickers = []
        for coin in pages[0]:
            coin_id = coin.get("id")
            symbol = str(coin.get("symbol", "")).upper()
            if not symbol:
                continue
            tickers.append(
                {
                    "symbol": symbol,
                    "name": str(coin.get("name", "")),
                    "market_cap_rank": coin.get("market_cap_rank"),
                    "price_usd": coin.get("current_price"),
                    "price_btc": prices_by_quote["BTC"].get(coin_id),
                    "converted": {
                        quote: {"price": prices_by_quote[quote][coin_id]}
                        for quote in extra_quotes
                        if prices_by_quote[quote].get(coin_id) is not None
                    },
                }
            )

        logger.info(f"Fetched {len(tickers)} tickers from CoinGecko")
        return tickers
