"""Command line entry point: ``python -m credit_store`` or ``credit-store``."""

import argparse
import os
import sys
from typing import List, Optional

import uvicorn

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser() -> argparse.ArgumentParser:
    """Command line options, each defaulting to its environment variable."""
    parser = argparse.ArgumentParser(
        prog="credit-store",
        description="Digital Credit Store: credit ledger and product access service",
    )
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"), help="Bind address (HOST)")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")), help="Bind port (PORT)")
    parser.add_argument(
        "--config",
        default=os.getenv("CONFIG_PATH", "config/store.yaml"),
        help="Catalog and service configuration file (CONFIG_PATH)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        help="Minimum log level (LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=os.getenv("LOG_FORMAT", "json"),
        help="Log rendering (LOG_FORMAT)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        default=os.getenv("RELOAD", "false").lower() == "true",
        help="Restart on code changes, for development (RELOAD)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    # The app module reads its settings from the environment at import time
    os.environ.update(
        LOG_LEVEL=args.log_level,
        LOG_FORMAT=args.log_format,
        CONFIG_PATH=args.config,
    )

    if args.log_format == "console":
        print(f"Digital Credit Store listening on http://{args.host}:{args.port}")
        print(f"  config: {args.config}  log level: {args.log_level}")

    try:
        uvicorn.run(
            "credit_store.main:app",
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
            reload=args.reload,
            access_log=False,
        )
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as exc:
        print(f"credit-store failed to start: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
