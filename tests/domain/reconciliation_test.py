from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from clients.trading212_client import Trading212APIError
from clients.ynab_client import YnabAPIError
from domain.currency import Milliunits
from domain.errors import (
    BalanceReadFailed,
    BalanceUnavailable,
    LedgerReadFailed,
    TransactionCreationFailed,
)
from domain.reconciliation import ReconciliationEngine, SyncStatus, compute_sync_amount, describe_sync
from domain.sync_markers import DEFAULT_PAYEE_NAME, MemoTagMarker
from tests.helpers.fakes import (
    ACCOUNT_ID,
    BUDGET_ID,
    SYNC_TIME,
    FakeBalanceSource,
    RecordingLedgerClient,
    ledger_record,
)


def test_initial_sync_seeds_full_balance(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("1000.00")

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert result.status == SyncStatus.SYNCED
    assert result.ok
    assert result.initial_sync is True
    assert result.transaction_id == "txn-1"
    assert len(ledger.created) == 1
    budget_id, transaction = ledger.created[0]
    assert budget_id == BUDGET_ID
    assert transaction.account_id == ACCOUNT_ID
    assert transaction.amount == 1_000_000
    assert transaction.memo == "Initial sync at 05 Mar 2024 14:30:15"
    assert transaction.payee_name == DEFAULT_PAYEE_NAME
    assert transaction.date == date(2024, 3, 5)
    assert "get_account" not in ledger.calls


def test_follow_up_sync_records_delta_against_live_ledger_balance(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("1050.00")
    ledger.transactions = [ledger_record(id="seed", amount=1_000_000, payee_name=DEFAULT_PAYEE_NAME)]
    ledger.account_balance = 1_000_000

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert result.ok
    assert result.initial_sync is False
    assert result.amount == 50_000
    _, transaction = ledger.created[0]
    assert transaction.amount == 50_000
    assert transaction.memo.startswith("Synced at ")
    assert ledger.calls == ["get_transactions_by_account", "get_account", "create_transaction"]


def test_delta_ignores_matched_transaction_amount(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("900")
    ledger.transactions = [
        ledger_record(id="stale", amount=123_456, payee_name=DEFAULT_PAYEE_NAME, date="2024-01-01"),
        ledger_record(id="other", amount=-5_000, payee_name="Fees", date="2024-02-01"),
    ]
    ledger.account_balance = 1_000_000

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert result.ok
    assert ledger.created[0][1].amount == -100_000


def test_unavailable_balance_aborts_without_touching_ledger(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = None

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert result.status == SyncStatus.FAILED
    assert isinstance(result.error, BalanceUnavailable)
    assert result.error.tag == "BalanceUnavailable"
    assert ledger.calls == []
    assert ledger.created == []


def test_balance_transport_failure_is_distinct_from_unavailable(ledger: RecordingLedgerClient) -> None:
    cause = Trading212APIError("Trading 212 request failed", status_code=503)
    engine = ReconciliationEngine(
        balance_source=FakeBalanceSource(error=cause), ledger_client=ledger, clock=lambda: SYNC_TIME
    )

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert isinstance(result.error, BalanceReadFailed)
    assert result.error.cause is cause
    assert ledger.created == []


def test_transaction_history_read_failure(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("10")
    ledger.read_error = YnabAPIError("Unauthorized", status_code=401)

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert isinstance(result.error, LedgerReadFailed)
    assert result.error.cause is ledger.read_error
    assert "create_transaction" not in ledger.calls


def test_account_read_failure(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("10")
    ledger.transactions = [ledger_record(payee_name=DEFAULT_PAYEE_NAME)]
    ledger.account_error = YnabAPIError("Account not found", status_code=404)

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert isinstance(result.error, LedgerReadFailed)
    assert ledger.created == []


def test_create_failure_carries_cause(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("10")
    ledger.create_error = YnabAPIError("Rate limited", status_code=429)

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert isinstance(result.error, TransactionCreationFailed)
    assert result.error.cause is ledger.create_error
    assert "Rate limited" in str(result.error)
    assert ledger.calls.count("create_transaction") == 1


def test_malformed_history_entry_is_skipped(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("25.5")
    malformed = ledger_record(id="weird", payee_name="Someone else")
    malformed["date"] = "yesterday"
    ledger.transactions = [malformed]

    result = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert result.ok
    assert result.initial_sync is True
    assert ledger.created[0][1].amount == 25_500
    assert [skipped.transaction_id for skipped in result.ignored] == ["weird"]


def test_memo_tag_marker_drives_detection_and_memo(
    balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("20")
    engine = ReconciliationEngine(
        balance_source=balance_source, ledger_client=ledger, marker=MemoTagMarker(), clock=lambda: SYNC_TIME
    )

    first = engine.reconcile(ACCOUNT_ID, BUDGET_ID)
    _, written = ledger.created[0]
    ledger.transactions = [ledger_record(id="first", amount=written.amount, memo=written.memo, payee_name="Renamed")]
    ledger.account_balance = 20_000
    balance_source.total = Decimal("19.5")
    second = engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert first.initial_sync is True
    assert written.memo.startswith("tsid:")
    assert second.initial_sync is False
    assert ledger.created[1][1].amount == -500


def test_repeated_runs_do_not_double_count(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("1000")

    engine.reconcile(ACCOUNT_ID, BUDGET_ID)
    _, seed = ledger.created[0]
    ledger.transactions = [ledger_record(id="txn-1", amount=seed.amount, payee_name=seed.payee_name)]
    ledger.account_balance = seed.amount
    engine.reconcile(ACCOUNT_ID, BUDGET_ID)

    assert [transaction.amount for _, transaction in ledger.created] == [1_000_000, 0]


def test_compute_sync_amount() -> None:
    assert compute_sync_amount(Milliunits(5_000), has_prior_sync=False) == 5_000
    assert compute_sync_amount(Milliunits(5_000), has_prior_sync=True, ledger_balance=Milliunits(7_000)) == -2_000
    with pytest.raises(ValueError):
        compute_sync_amount(Milliunits(5_000), has_prior_sync=True)


def test_describe_sync() -> None:
    assert describe_sync(has_prior_sync=False, synced_at=SYNC_TIME) == "Initial sync at 05 Mar 2024 14:30:15"
    assert describe_sync(has_prior_sync=True, synced_at=SYNC_TIME) == "Synced at 05 Mar 2024 14:30:15"


def test_engine_rejects_payee_name_the_ledger_would_refuse(ledger: RecordingLedgerClient) -> None:
    with pytest.raises(ValueError, match="payee_name"):
        ReconciliationEngine(balance_source=FakeBalanceSource(Decimal("1")), ledger_client=ledger, payee_name="x" * 51)


def test_invalid_transaction_fields_are_reported_as_creation_failure(
    engine: ReconciliationEngine, balance_source: FakeBalanceSource, ledger: RecordingLedgerClient
) -> None:
    balance_source.total = Decimal("10")

    result = engine.reconcile("", BUDGET_ID)

    assert result.status == SyncStatus.FAILED
    assert isinstance(result.error, TransactionCreationFailed)
    assert "create_transaction" not in ledger.calls
