# flake8: noqa E402
# Run via uv to load project deps, e.g.:
# uv run scripts/ynab_history_probe.py --limit 10
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

from clients.ynab_client import YnabClient
from config import config
from domain.sync_markers import build_marker, decode_transactions, was_previously_synced
from utils.formatting import format_milliunits


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List recent YNAB transactions and flag the ones written by the sync.")
    parser.add_argument("--account-id", default=None, help="YNAB account id (default: YNAB_ACCOUNT_ID).")
    parser.add_argument("--budget-id", default=None, help="YNAB budget id (default: YNAB_BUDGET_ID).")
    parser.add_argument("--limit", type=int, default=20, help="Number of most recent transactions to print.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    settings = config()
    account_id = args.account_id or settings.ynab_account_id
    budget_id = args.budget_id or settings.ynab_budget_id
    client = YnabClient(
        api_key=settings.ynab_api_key.get_secret_value(),
        base_url=settings.ynab_base_url,
        timeout=settings.request_timeout,
    )
    marker = build_marker(settings.sync_marker, payee_name=settings.payee_name)

    transactions, ignored = decode_transactions(client.get_transactions_by_account(budget_id, account_id))
    account = client.get_account(budget_id, account_id)

    payload: dict[str, Any] = {
        "account": account.name,
        "ledger_balance": format_milliunits(account.balance),
        "previously_synced": was_previously_synced(transactions, marker),
        "ignored": [{"id": skipped.transaction_id, "reason": skipped.reason} for skipped in ignored],
        "transactions": [
            {
                "id": transaction.id,
                "date": transaction.date.isoformat(),
                "amount": format_milliunits(transaction.amount),
                "payee": transaction.payee_name,
                "memo": transaction.memo,
                "sync_marker": marker.matches(transaction),
            }
            for transaction in transactions[: args.limit]
        ],
    }
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
