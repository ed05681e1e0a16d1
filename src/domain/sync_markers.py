"""Recognising ledger transactions written by earlier syncs.

Prior-sync state is never stored locally. Each run re-reads the account's
transaction history and looks for a sentinel marker: the payee name by
default, or a ``tsid:<hash>`` memo tag. Records from other tools, or ones
that fail to decode, simply do not match.
"""

from __future__ import annotations

import hashlib
import logging
import re
from datetime import datetime
from enum import StrEnum
from typing import Any, Iterable, Protocol, Sequence

from pydantic import ValidationError

from domain.errors import TransactionDecodeIgnored
from domain.ledger import MAX_PAYEE_NAME_LENGTH, LedgerTransaction

logger = logging.getLogger(__name__)

DEFAULT_PAYEE_NAME = "Trading 212"
MEMO_TAG_PREFIX = "tsid:"
RUN_HASH_LENGTH = 16


class SyncMarkerKind(StrEnum):
    PAYEE = "payee"
    MEMO_TAG = "memo_tag"


class SyncMarker(Protocol):
    def matches(self, transaction: LedgerTransaction) -> bool: ...

    def memo_for(self, description: str, *, account_id: str, synced_at: datetime) -> str: ...


class PayeeMarker:
    def __init__(self, payee_name: str = DEFAULT_PAYEE_NAME) -> None:
        if not payee_name or len(payee_name) > MAX_PAYEE_NAME_LENGTH:
            msg = f"payee_name must be 1-{MAX_PAYEE_NAME_LENGTH} characters"
            raise ValueError(msg)
        self.payee_name = payee_name

    def matches(self, transaction: LedgerTransaction) -> bool:
        return transaction.payee_name == self.payee_name

    def memo_for(self, description: str, *, account_id: str, synced_at: datetime) -> str:
        return description


class MemoTagMarker:
    """Matches memos of the form ``tsid:<16 hex chars>[ description]``."""

    _pattern = re.compile(rf"^{re.escape(MEMO_TAG_PREFIX)}[0-9a-f]{{{RUN_HASH_LENGTH}}}(?:\s|$)")

    def matches(self, transaction: LedgerTransaction) -> bool:
        if transaction.memo is None:
            return False
        return self._pattern.match(transaction.memo) is not None

    def memo_for(self, description: str, *, account_id: str, synced_at: datetime) -> str:
        return f"{MEMO_TAG_PREFIX}{run_hash(account_id, synced_at)} {description}"


def run_hash(account_id: str, synced_at: datetime) -> str:
    digest = hashlib.sha256(f"{account_id}|{synced_at.isoformat()}".encode()).hexdigest()
    return digest[:RUN_HASH_LENGTH]


def build_marker(kind: SyncMarkerKind, *, payee_name: str = DEFAULT_PAYEE_NAME) -> SyncMarker:
    if kind == SyncMarkerKind.MEMO_TAG:
        return MemoTagMarker()
    return PayeeMarker(payee_name)


def decode_transactions(
    records: Iterable[dict[str, Any]],
) -> tuple[list[LedgerTransaction], list[TransactionDecodeIgnored]]:
    """Decode raw ledger records, most recent first.

    Records that fail validation are returned separately and never raise.
    Records sharing a date keep their reverse input order, so the last one
    the ledger listed comes first.
    """
    decoded: list[LedgerTransaction] = []
    ignored: list[TransactionDecodeIgnored] = []
    for record in records:
        try:
            decoded.append(LedgerTransaction.model_validate(record))
        except ValidationError as exc:
            record_id = record.get("id") if isinstance(record, dict) else None
            skipped = TransactionDecodeIgnored(
                transaction_id=str(record_id) if record_id is not None else None,
                reason=f"{exc.error_count()} validation error(s): {_first_error(exc)}",
            )
            logger.warning(
                "Ignoring ledger transaction id=%s that failed to decode (%s)",
                skipped.transaction_id,
                skipped.reason,
            )
            ignored.append(skipped)

    ordered = sorted(reversed(decoded), key=lambda transaction: transaction.date, reverse=True)
    return ordered, ignored


def was_previously_synced(transactions: Sequence[LedgerTransaction], marker: SyncMarker) -> bool:
    """True when any live transaction in the history carries the sync marker.

    Only the existence of a match matters. The matched transaction's own
    amount is never used as a baseline.
    """
    for transaction in transactions:
        if transaction.deleted:
            continue
        if marker.matches(transaction):
            logger.debug("Found previous sync transaction id=%s date=%s", transaction.id, transaction.date)
            return True
    return False


def _first_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', 'invalid')}"


__all__ = [
    "DEFAULT_PAYEE_NAME",
    "MEMO_TAG_PREFIX",
    "MemoTagMarker",
    "PayeeMarker",
    "SyncMarker",
    "SyncMarkerKind",
    "build_marker",
    "decode_transactions",
    "run_hash",
    "was_previously_synced",
]
