#!/usr/bin/env python3
"""
Startup script for the salad cart service.

Usage:
    # Run against the remote catalog from CATALOG_BASE_URL
    python run_server.py

    # Run against a local JSON catalog
    python run_server.py --seed catalog.json

    # Run with custom port and a separate mirror database
    python run_server.py --port 8001 --database-url sqlite:///./data/cart.db

    # Run with reload for development
    python run_server.py --reload
"""

import argparse
import os
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(
        description="Run the salad cart service"
    )
    parser.add_argument(
        "--seed",
        "-s",
        help="JSON catalog file to serve instead of the remote catalog",
    )
    parser.add_argument(
        "--database-url",
        "-d",
        help="Database URL for the cart mirror (overrides DATABASE_URL)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=8000,
        help="Port to run on (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        "-r",
        action="store_true",
        help="Enable auto-reload for development",
    )

    args = parser.parse_args()

    if args.seed:
        if not Path(args.seed).exists():
            print(f"Error: Catalog seed file not found: {args.seed}")
            sys.exit(1)
        os.environ["CATALOG_SEED_FILE"] = args.seed

    database_url = args.database_url or os.environ.get("DATABASE_URL", "")
    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url

    # Ensure data directory exists
    if database_url.startswith("sqlite:///./"):
        db_dir = os.path.dirname(database_url.replace("sqlite:///./", ""))
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    # Configuration is read at import time, so import after the environment is set
    from salad_cart.app_factory import run

    print(f"\n{'=' * 50}")
    print("Starting: Salad Cart")
    print(f"Catalog:  {args.seed or os.environ.get('CATALOG_BASE_URL', 'remote (default)')}")
    print(f"Port:     {args.port}")
    print(f"{'=' * 50}\n")

    run(host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
