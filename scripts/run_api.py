#!/usr/bin/env python3
"""Run the portfolio API server.

This script starts the uvicorn server for the portfolio API.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT]

Environment:
    PORTFOLIO_EXCHANGES - Comma-separated exchange ids to aggregate (e.g. bitfinex)
    PORTFOLIO_DEMO_EXCHANGES - Exchanges to serve with synthetic balances
    BITFINEX_API_KEY / BITFINEX_API_SECRET - Exchange credentials

Examples:
    PORTFOLIO_EXCHANGES=bitfinex python scripts/run_api.py
    python scripts/run_api.py --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main() -> int:
    """Run the API server."""
    parser = argparse.ArgumentParser(description="Run the FastAPI portfolio aggregation server.")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    args = parser.parse_args()

    if not os.environ.get("PORTFOLIO_EXCHANGES"):
        print("Warning: PORTFOLIO_EXCHANGES is not set, /portfolio will not be registered", file=sys.stderr)

    print(f"Starting FastAPI server on {args.host}:{args.port}")
    print("Endpoints:")
    print(f"  - GET http://{args.host}:{args.port}/portfolio")
    print(f"  - GET http://{args.host}:{args.port}/system/health")
    print()

    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
