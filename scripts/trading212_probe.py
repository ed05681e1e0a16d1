# flake8: noqa E402
# Run via uv so project deps are loaded, e.g.:
# uv run scripts/trading212_probe.py --demo
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from clients.trading212_client import Trading212Client
from config import config
from domain.currency import to_milliunits


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch the live Trading 212 cash balance.")
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Query the demo environment instead of TRADING212_BASE_URL.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    settings = config()
    base_url = "https://demo.trading212.com" if args.demo else settings.trading212_base_url
    client = Trading212Client(
        api_key=settings.trading212_api_key.get_secret_value(),
        base_url=base_url,
        timeout=settings.request_timeout,
    )
    balance = client.get_account_balance()
    if balance is None:
        print("Trading 212 reported no balance for this account.")
        return

    payload: dict[str, Any] = {
        "base_url": base_url,
        "total": str(balance.total),
        "total_milliunits": to_milliunits(balance.total),
        "free": None if balance.free is None else str(balance.free),
        "invested": None if balance.invested is None else str(balance.invested),
    }
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
