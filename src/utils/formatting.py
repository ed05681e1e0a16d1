from __future__ import annotations

from decimal import Decimal

from domain.currency import from_milliunits


def format_currency(value: Decimal) -> str:
    cents = value.quantize(Decimal("0.01"))
    return f"{cents:.2f}"


def format_milliunits(value: int) -> str:
    return format_currency(from_milliunits(value))
