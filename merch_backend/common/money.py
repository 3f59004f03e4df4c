# common/money.py

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid decimal value: {value!r}")


def money(value) -> Decimal:
    """Quantize to 2dp using ROUND_HALF_UP (cash-style rounding)."""
    return to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
