from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Callable, Protocol

from pydantic import ValidationError

from domain.balance import AccountBalance
from domain.currency import Milliunits, to_milliunits
from domain.errors import (
    BalanceReadFailed,
    BalanceSourceError,
    BalanceUnavailable,
    LedgerClientError,
    LedgerReadFailed,
    SyncError,
    TransactionCreationFailed,
    TransactionDecodeIgnored,
)
from domain.ledger import MAX_PAYEE_NAME_LENGTH, AccountId, LedgerAccount, NewLedgerTransaction
from domain.sync_markers import DEFAULT_PAYEE_NAME, PayeeMarker, SyncMarker, decode_transactions, was_previously_synced
from utils.formatting import format_milliunits

logger = logging.getLogger(__name__)


class BalanceSource(Protocol):
    def get_account_balance(self) -> AccountBalance | None: ...


class LedgerClient(Protocol):
    def get_transactions_by_account(self, budget_id: str, account_id: str) -> list[dict[str, Any]]: ...

    def get_account(self, budget_id: str, account_id: str) -> LedgerAccount: ...

    def create_transaction(self, budget_id: str, transaction: NewLedgerTransaction) -> str: ...


class SyncStatus(StrEnum):
    SYNCED = "synced"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncResult:
    status: SyncStatus
    error: SyncError | None = None
    transaction_id: str | None = None
    amount: Milliunits | None = None
    initial_sync: bool | None = None
    ignored: tuple[TransactionDecodeIgnored, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.SYNCED

    def describe(self) -> str:
        if self.error is not None:
            return f"{self.status.value}: {self.error.tag}: {self.error}"
        kind = "initial" if self.initial_sync else "delta"
        amount = format_milliunits(self.amount) if self.amount is not None else "?"
        return f"{self.status.value}: {kind} transaction {self.transaction_id} amount={amount}"


def compute_sync_amount(
    investment_amount: Milliunits, *, has_prior_sync: bool, ledger_balance: Milliunits | None = None
) -> Milliunits:
    """Amount of the transaction that brings the ledger in line with the brokerage.

    The first sync seeds the full balance. Later syncs record the difference to
    the ledger account's live balance, which may be negative.
    """
    if not has_prior_sync:
        return investment_amount
    if ledger_balance is None:
        raise ValueError("ledger_balance is required once the account has been synced")
    return Milliunits(investment_amount - ledger_balance)


def describe_sync(*, has_prior_sync: bool, synced_at: datetime) -> str:
    label = "Synced" if has_prior_sync else "Initial sync"
    return f"{label} at {synced_at:%d %b %Y %H:%M:%S}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationEngine:
    """Writes one ledger transaction per run so the ledger matches the brokerage balance."""

    def __init__(
        self,
        *,
        balance_source: BalanceSource,
        ledger_client: LedgerClient,
        marker: SyncMarker | None = None,
        payee_name: str = DEFAULT_PAYEE_NAME,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if not payee_name or len(payee_name) > MAX_PAYEE_NAME_LENGTH:
            msg = f"payee_name must be 1-{MAX_PAYEE_NAME_LENGTH} characters"
            raise ValueError(msg)

        self.balance_source = balance_source
        self.ledger_client = ledger_client
        self.payee_name = payee_name
        self.marker = marker or PayeeMarker(payee_name)
        self.clock = clock

    def reconcile(self, account_id: str, budget_id: str) -> SyncResult:
        ignored: list[TransactionDecodeIgnored] = []
        try:
            return self._reconcile(account_id, budget_id, ignored)
        except SyncError as exc:
            logger.error("Sync of account=%s budget=%s failed: %s", account_id, budget_id, exc)
            return SyncResult(status=SyncStatus.FAILED, error=exc, ignored=tuple(ignored))

    def _reconcile(self, account_id: str, budget_id: str, ignored: list[TransactionDecodeIgnored]) -> SyncResult:
        balance = self._fetch_balance()
        investment_amount = to_milliunits(balance.total)
        logger.info("Brokerage balance: %s", format_milliunits(investment_amount))

        has_prior_sync = self._has_prior_sync(account_id, budget_id, ignored)

        ledger_balance: Milliunits | None = None
        if has_prior_sync:
            ledger_balance = self._fetch_ledger_account(account_id, budget_id).balance
            logger.info("Ledger account balance: %s", format_milliunits(ledger_balance))

        amount = compute_sync_amount(investment_amount, has_prior_sync=has_prior_sync, ledger_balance=ledger_balance)
        synced_at = self.clock()
        try:
            transaction = NewLedgerTransaction(
                account_id=AccountId(account_id),
                amount=amount,
                date=synced_at.date(),
                memo=self.marker.memo_for(
                    describe_sync(has_prior_sync=has_prior_sync, synced_at=synced_at),
                    account_id=account_id,
                    synced_at=synced_at,
                ),
                payee_name=self.payee_name,
            )
        except ValidationError as exc:
            raise TransactionCreationFailed(cause=exc) from exc
        logger.info(
            "Creating %s transaction amount=%s memo=%r",
            "delta" if has_prior_sync else "initial",
            format_milliunits(amount),
            transaction.memo,
        )

        try:
            transaction_id = self.ledger_client.create_transaction(budget_id, transaction)
        except LedgerClientError as exc:
            raise TransactionCreationFailed(cause=exc) from exc

        return SyncResult(
            status=SyncStatus.SYNCED,
            transaction_id=transaction_id,
            amount=amount,
            initial_sync=not has_prior_sync,
            ignored=tuple(ignored),
        )

    def _fetch_balance(self) -> AccountBalance:
        try:
            balance = self.balance_source.get_account_balance()
        except BalanceSourceError as exc:
            raise BalanceReadFailed(cause=exc) from exc
        if balance is None:
            raise BalanceUnavailable()
        return balance

    def _has_prior_sync(self, account_id: str, budget_id: str, ignored: list[TransactionDecodeIgnored]) -> bool:
        try:
            records = self.ledger_client.get_transactions_by_account(budget_id, account_id)
        except LedgerClientError as exc:
            raise LedgerReadFailed(cause=exc) from exc

        transactions, skipped = decode_transactions(records)
        ignored.extend(skipped)
        has_prior_sync = was_previously_synced(transactions, self.marker)
        logger.info(
            "Scanned %d ledger transactions (%d ignored): previous sync %s",
            len(transactions),
            len(skipped),
            "found" if has_prior_sync else "not found",
        )
        return has_prior_sync

    def _fetch_ledger_account(self, account_id: str, budget_id: str) -> LedgerAccount:
        try:
            return self.ledger_client.get_account(budget_id, account_id)
        except LedgerClientError as exc:
            raise LedgerReadFailed(cause=exc) from exc


__all__ = [
    "BalanceSource",
    "LedgerClient",
    "ReconciliationEngine",
    "SyncResult",
    "SyncStatus",
    "compute_sync_amount",
    "describe_sync",
]
