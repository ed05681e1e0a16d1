from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import NewType

Milliunits = NewType("Milliunits", int)

MILLIUNIT_PRECISION = 3


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_milliunits(amount: Decimal | int | float | str) -> Milliunits:
    """Convert a decimal currency amount to milliunits.

    Rounds half away from zero (``ROUND_HALF_UP`` on ``Decimal``), so
    ``0.0005`` becomes ``1`` and ``-0.0005`` becomes ``-1``.
    """
    scaled = to_decimal(amount) * (Decimal(10) ** MILLIUNIT_PRECISION)
    return Milliunits(int(scaled.to_integral_value(rounding=ROUND_HALF_UP)))


def from_milliunits(value: int) -> Decimal:
    return Decimal(value) / (Decimal(10) ** MILLIUNIT_PRECISION)


__all__ = ["MILLIUNIT_PRECISION", "Milliunits", "from_milliunits", "to_decimal", "to_milliunits"]
