from __future__ import annotations

import datetime as dt
from typing import Any, NewType

from pydantic import BaseModel, ConfigDict, model_validator

from domain.currency import Milliunits

AccountId = NewType("AccountId", str)
BudgetId = NewType("BudgetId", str)
TransactionId = NewType("TransactionId", str)

# YNAB rejects longer payee names.
MAX_PAYEE_NAME_LENGTH = 50


class LedgerTransaction(BaseModel):
    """A transaction as stored in the ledger. Amounts are milliunits."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: TransactionId
    account_id: AccountId
    amount: Milliunits
    date: dt.date
    memo: str | None = None
    payee_name: str | None = None
    deleted: bool = False


class NewLedgerTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_id: AccountId
    amount: Milliunits
    date: dt.date
    memo: str
    payee_name: str

    @model_validator(mode="after")
    def _validate_fields(self) -> NewLedgerTransaction:
        if not self.account_id:
            raise ValueError("NewLedgerTransaction.account_id must be non-empty")
        if not self.payee_name or len(self.payee_name) > MAX_PAYEE_NAME_LENGTH:
            raise ValueError(f"payee_name must be 1-{MAX_PAYEE_NAME_LENGTH} characters")
        return self

    def to_payload(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "memo": self.memo,
            "payee_name": self.payee_name,
        }


class LedgerAccount(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: AccountId
    name: str = ""
    balance: Milliunits


__all__ = [
    "AccountId",
    "BudgetId",
    "LedgerAccount",
    "LedgerTransaction",
    "NewLedgerTransaction",
    "TransactionId",
]
