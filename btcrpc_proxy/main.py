"""
Uvicorn launcher for the chain-status proxy.

Usage:
  python -m btcrpc_proxy.main [--host 0.0.0.0] [--port 8080]
                              [--workers 1] [--reload] [--log-level info]

Defaults come from the same settings the app reads (HOST, PORT, LOG_LEVEL,
LOG_FORMAT, plus the RPC_* upstream variables).
"""

from __future__ import annotations

import argparse
from typing import Optional

import uvicorn

from .config import get_settings
from .logging import setup_logging


def main(argv: Optional[list[str]] = None) -> None:
    cfg = get_settings()

    parser = argparse.ArgumentParser(description="Run the btcrpc chain-status proxy (uvicorn)")
    parser.add_argument("--host", default=cfg.host, help="Bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=cfg.port, help="Port (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=1, help="Number of workers (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", default=False, help="Enable autoreload (dev only)")
    parser.add_argument("--log-level", default=cfg.log_level.lower(), help="Log level (default: %(default)s)")
    args = parser.parse_args(argv)

    if args.reload and args.workers != 1:
        print("[btcrpc-proxy] --reload implies --workers=1; overriding.")
        args.workers = 1

    setup_logging(level=args.log_level.upper(), log_format=cfg.log_format)

    # Factory import string so each worker builds its own upstream pool.
    uvicorn.run(
        "btcrpc_proxy.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=args.reload,
        workers=args.workers,
        log_config=None,
    )


if __name__ == "__main__":
    main()
