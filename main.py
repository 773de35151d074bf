#!/usr/bin/env python3
"""
KK Preset Browser — launch the API server.

Usage:
    python main.py                          # http://localhost:8000
    python main.py --port 9000              # http://localhost:9000
    python main.py --host 0.0.0.0           # listen on all interfaces
    python main.py --db /path/to/komplete.db3
    python main.py --reload                 # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from utils.config import AppConfig


def main() -> None:
    cfg = AppConfig.from_env()
    parser = argparse.ArgumentParser(
        description="Launch the KK Preset Browser API.",
    )
    parser.add_argument(
        "--host", default=cfg.api_host,
        help=f"Bind address (default: {cfg.api_host} or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=cfg.api_port,
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="Path to komplete.db3 (default: Komplete Kontrol location or APP_DB_PATH env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    args = parser.parse_args()

    # The app reads APP_DB_PATH at import time, including in reload workers
    if args.db is not None:
        os.environ["APP_DB_PATH"] = str(args.db)
    db_path = args.db or cfg.db_path

    if not db_path.exists():
        print(f"Warning: Database not found at {db_path}")
        print("  Is Komplete Kontrol installed? Pass --db /path/to/komplete.db3")
        print()

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting KK Preset Browser API at {url} (docs: {url}/docs)")
    print(f"Database: {db_path}")
    print()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
