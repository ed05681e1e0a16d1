from __future__ import annotations

import argparse
import logging
from time import perf_counter
from typing import Sequence

import uvicorn

from config import LOG_FORMAT, config
from services.sync_service import build_engine, run_sync

logger = logging.getLogger(__name__)


def run(*, account_id: str | None, budget_id: str | None) -> bool:
    settings = config()
    engine = build_engine(settings)

    started = perf_counter()
    result = run_sync(engine, settings, account_id=account_id, budget_id=budget_id)
    logger.info("Sync run took %.2fs", perf_counter() - started)
    return result.ok


def serve(*, host: str, port: int) -> None:
    uvicorn.run("api.api:app", host=host, port=port, reload=False)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sync the Trading 212 cash balance into a YNAB account.")
    parser.add_argument("--account-id", help="YNAB account id (default: YNAB_ACCOUNT_ID).")
    parser.add_argument("--budget-id", help="YNAB budget id (default: YNAB_BUDGET_ID).")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP sync trigger instead of a single sync.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO).")
    args = parser.parse_args(argv)

    logging.basicConfig(level=(args.log_level or config().log_level).upper(), format=LOG_FORMAT)

    if args.serve:
        serve(host=args.host, port=args.port)
        return 0

    return 0 if run(account_id=args.account_id, budget_id=args.budget_id) else 1


if __name__ == "__main__":
    raise SystemExit(main())
