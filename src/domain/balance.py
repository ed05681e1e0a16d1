from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AccountBalance(BaseModel):
    """Cash snapshot of the brokerage account, in ordinary currency units.

    Only ``total`` drives the sync; the remaining Trading 212 fields are kept
    for logging and probing.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    total: Decimal
    free: Decimal | None = None
    invested: Decimal | None = None
    ppl: Decimal | None = None
    result: Decimal | None = None
    blocked: Decimal | None = None
    pie_cash: Decimal | None = Field(default=None, alias="pieCash")


__all__ = ["AccountBalance"]
