from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


class ExternalServiceError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class BalanceSourceError(ExternalServiceError):
    """Raised by a balance source when the balance could not be read at all."""


class LedgerClientError(ExternalServiceError):
    """Raised by a ledger client for transport, HTTP and payload failures."""


class SyncError(Exception):
    tag: ClassVar[str] = "SyncError"
    message: ClassVar[str] = "Sync failed"

    def __init__(self, *, cause: BaseException | None = None) -> None:
        detail = f"{self.message}: {cause}" if cause is not None else self.message
        super().__init__(detail)
        self.cause = cause


class BalanceUnavailable(SyncError):
    tag = "BalanceUnavailable"
    message = "Brokerage account reported no balance"


class BalanceReadFailed(SyncError):
    tag = "BalanceReadFailed"
    message = "Could not fetch the brokerage account balance"


class LedgerReadFailed(SyncError):
    tag = "LedgerReadFailed"
    message = "Could not read the ledger"


class TransactionCreationFailed(SyncError):
    tag = "TransactionCreationFailed"
    message = "Could not create the ledger transaction"


@dataclass(frozen=True)
class TransactionDecodeIgnored:
    """A ledger record skipped during sync detection because it did not decode."""

    transaction_id: str | None
    reason: str

    tag: ClassVar[str] = "TransactionDecodeIgnored"


__all__ = [
    "BalanceReadFailed",
    "BalanceSourceError",
    "BalanceUnavailable",
    "ExternalServiceError",
    "LedgerClientError",
    "LedgerReadFailed",
    "SyncError",
    "TransactionCreationFailed",
    "TransactionDecodeIgnored",
]
