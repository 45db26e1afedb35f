from decimal import Decimal

import pytest

from cashdesk.core.exceptions import ValidationError
from cashdesk.core.money import MAX_AMOUNT, to_money


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("150.75", Decimal("150.75")),
        (0, Decimal("0.00")),
        (0.1, Decimal("0.10")),
        ("10.005", Decimal("10.01")),
        (Decimal("999999.99"), MAX_AMOUNT),
    ],
)
def test_to_money_quantizes_to_cents(raw, expected):
    assert to_money(raw, field="amount") == expected


@pytest.mark.parametrize("raw", ["-0.01", -5, "abc", "NaN", "Infinity", None, True, "1000000.00"])
def test_to_money_rejects_invalid_amounts(raw):
    with pytest.raises(ValidationError) as excinfo:
        to_money(raw, field="opening_balance")
    assert excinfo.value.details == {"field": "opening_balance"}
    assert excinfo.value.category == "validation"
