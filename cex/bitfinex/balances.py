"""
Bitfinex API v2 Wallet Balances
===============================

Read-only client for the authenticated wallets endpoint, summing every
wallet type (exchange, margin, funding) into one balance per currency.

Security:
- Never logs API keys/secrets
- Only calls /v2/auth/r/wallets

Reference:
- https://docs.bitfinex.com/reference/rest-auth-wallets
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
import time
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

import httpx

from core.types import to_amount

WALLETS_PATH = "/v2/auth/r/wallets"


def generate_signature(api_secret: str, nonce: str, path: str, body: str = "") -> str:
    """HMAC-SHA384 over ``/api{path}{nonce}{body}``, hex encoded."""
    payload = f"/api{path}{nonce}{body}"
    return hmac.new(api_secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha384).hexdigest()


def build_auth_headers(api_key: str, api_secret: str, path: str, body: str, nonce: Optional[str] = None) -> Dict[str, str]:
    nonce = nonce or str(int(time.time() * 1000))
    return {
        "bfx-nonce": nonce,
        "bfx-apikey": api_key,
        "bfx-signature": generate_signature(api_secret, nonce, path, body),
        "Content-Type": "application/json",
    }


def sum_wallets(rows: Any) -> Dict[str, Dict[str, Decimal]]:
    """Collapse wallet rows into currency -> {"total", "available"}.

    Row layout: [WALLET_TYPE, CURRENCY, BALANCE, UNSETTLED_INTEREST, AVAILABLE_BALANCE, ...]
    """
    if not isinstance(rows, list):
        raise RuntimeError(f"Unexpected wallets response format: {type(rows)}")

    balances: Dict[str, Dict[str, Decimal]] = {}
    for row in rows:
        if not isinstance(row, list) or len(row) < 3:
            continue
        currency = str(row[1]).upper()
        total = to_amount(row[2] or 0)
        available = to_amount(row[4]) if len(row) > 4 and row[4] is not None else Decimal("0")

        entry = balances.setdefault(currency, {"total": Decimal("0"), "available": Decimal("0")})
        entry["total"] += total
        entry["available"] += available

    return {currency: entry for currency, entry in balances.items() if entry["total"] != 0}


class BitfinexBalanceClient:
    """Bitfinex wallets client implementing the balance source protocol."""

    BASE_URL = "https://api.bitfinex.com"
    DEFAULT_TIMEOUT = 10.0  # seconds

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs: Any) -> "BitfinexBalanceClient":
        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get("BITFINEX_API_KEY"),
            api_secret=env.get("BITFINEX_API_SECRET"),
            **kwargs,
        )

    async def get_balances(self) -> Dict[str, Dict[str, Decimal]]:
        """Fetch wallet balances summed per currency.

        Raises:
            ValueError: If credentials are not configured
            RuntimeError: If the API request fails
        """
        if not self.api_key or not self.api_secret:
            raise ValueError("API key and secret required for authenticated endpoints")

        body = json.dumps({})
        headers = build_auth_headers(self.api_key, self.api_secret, WALLETS_PATH, body)

        try:
            async with httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(WALLETS_PATH, content=body, headers=headers)
                response.raise_for_status()
                rows = response.json()
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Bitfinex wallets request failed: {exc}") from exc

        return sum_wallets(rows)
