"""Command line entry point.

    sitmon                 # serve the API (refresh job runs inside it)
    sitmon --agent         # refresh job only, no HTTP server
"""

import argparse
import asyncio

import uvicorn

from sitmon.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(prog="sitmon", description="Situation Monitor")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    parser.add_argument(
        "--agent",
        action="store_true",
        help="Run scheduled refreshes without the HTTP server",
    )
    args = parser.parse_args()

    if args.agent:
        from sitmon.agent import run_agent

        asyncio.run(run_agent())
        return

    uvicorn.run(
        "sitmon.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=get_settings().log_level.lower(),
    )
