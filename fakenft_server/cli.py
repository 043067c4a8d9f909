"""CLI entry point for the FakeNFT server."""

import argparse
import asyncio
import os
import sys
from typing import Optional

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FakeNFT MCP Server - cart, catalog and checkout for the FakeNFT marketplace"
    )
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="stdio",
        help="Server mode: stdio (for MCP protocol) or http (for REST API and cart events)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (HTTP mode only, default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (HTTP mode only, default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable hot reloading (HTTP mode only, watches for file changes)",
    )
    parser.add_argument(
        "--base-url",
        help="FakeNFT API base URL (overrides FAKENFT_BASE_URL)",
    )
    parser.add_argument(
        "--preferences-file",
        help="JSON file for saved sort choices (overrides FAKENFT_PREFERENCES_FILE)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (overrides FAKENFT_LOG_LEVEL)",
    )
    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """
    Export CLI overrides as FAKENFT_* variables.

    Both servers build their settings from the environment, and the HTTP
    server re-imports the app in a subprocess when reloading.
    """
    overrides = {
        "FAKENFT_BASE_URL": args.base_url,
        "FAKENFT_PREFERENCES_FILE": args.preferences_file,
        "FAKENFT_LOG_LEVEL": args.log_level,
    }
    for name, value in overrides.items():
        if value:
            os.environ[name] = value


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    apply_overrides(args)

    if args.mode == "http":
        from .http_server import run_http_server

        run_http_server(host=args.host, port=args.port, reload=args.reload)
    else:
        from .server import main as server_main

        try:
            asyncio.run(server_main())
        except KeyboardInterrupt:
            print("\nShutting down...", file=sys.stderr)
            sys.exit(0)


if __name__ == "__main__":
    main()
