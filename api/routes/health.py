"""Health check API endpoint."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(prefix="/system/health", tags=["health"])

# Track API start time
_api_start_time = time.time()


@router.get("")
async def health_check(request: Request) -> dict[str, Any]:
    """Get service health.

    Reports API uptime and whether the portfolio route is mounted. The
    portfolio route is absent when no balance source or market-data service
    is configured, which is reported as degraded.
    """
    aggregator = getattr(request.app.state, "portfolio", None)
    uptime_seconds = int(time.time() - _api_start_time)

    portfolio: dict[str, Any] = {
        "status": "ok" if aggregator is not None else "degraded",
        "enabled": aggregator is not None,
        "source_count": len(aggregator.sources) if aggregator is not None else 0,
        "sources": sorted(aggregator.sources) if aggregator is not None else [],
        "demo_sources": sorted(s.id for s in aggregator.sources.values() if s.is_demo) if aggregator else [],
    }
    if aggregator is None:
        portfolio["message"] = "No balance source or market data service configured"

    return {
        "overall": {"status": portfolio["status"]},
        "api": {
            "status": "ok",
            "uptime_seconds": uptime_seconds,
            "message": "API running",
        },
        "portfolio": portfolio,
    }
