"""Decimal helpers for monetary input."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from cashdesk.core.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("999999.99")

MoneyInput = Union[Decimal, int, float, str]


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: MoneyInput | None, *, field: str) -> Decimal:
    """Parse a non-negative amount with two decimal places.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.10")`` rather than
    its binary expansion.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required", field=field)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} is not a valid amount", field=field) from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} is not a valid amount", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    amount = quantize(amount)
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} is too high", field=field)
    return amount


__all__ = ["CENT", "MAX_AMOUNT", "MoneyInput", "ZERO", "quantize", "to_money"]
