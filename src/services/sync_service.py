from __future__ import annotations

import logging

from clients import Trading212Client, YnabClient
from config import AppSettings, config
from domain.reconciliation import ReconciliationEngine, SyncResult
from domain.sync_markers import build_marker

logger = logging.getLogger(__name__)


def build_engine(settings: AppSettings | None = None) -> ReconciliationEngine:
    settings = settings or config()
    balance_source = Trading212Client(
        api_key=settings.trading212_api_key.get_secret_value(),
        base_url=settings.trading212_base_url,
        timeout=settings.request_timeout,
    )
    ledger_client = YnabClient(
        api_key=settings.ynab_api_key.get_secret_value(),
        base_url=settings.ynab_base_url,
        timeout=settings.request_timeout,
    )
    return ReconciliationEngine(
        balance_source=balance_source,
        ledger_client=ledger_client,
        marker=build_marker(settings.sync_marker, payee_name=settings.payee_name),
        payee_name=settings.payee_name,
    )


def run_sync(
    engine: ReconciliationEngine,
    settings: AppSettings,
    *,
    account_id: str | None = None,
    budget_id: str | None = None,
) -> SyncResult:
    account_id = account_id or settings.ynab_account_id
    budget_id = budget_id or settings.ynab_budget_id
    logger.info("Starting sync account=%s budget=%s", account_id, budget_id)
    result = engine.reconcile(account_id, budget_id)
    if result.ok:
        logger.info("Sync finished: %s", result.describe())
    else:
        logger.error("Sync finished: %s", result.describe())
    return result


__all__ = ["build_engine", "run_sync"]
