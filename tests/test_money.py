from __future__ import annotations

from decimal import Decimal

import pytest

from cartkit.domain.errors import CartValidationError
from cartkit.domain.money import number_format, round2, to_decimal


def test_round2_rounds_half_up():
    assert round2(Decimal("2.345")) == Decimal("2.35")
    assert round2(Decimal("2.344")) == Decimal("2.34")
    assert round2(Decimal("-2.345")) == Decimal("-2.35")
    assert round2(10) == Decimal("10.00")


@pytest.mark.parametrize("value", ["abc", "", None, True, "nan", "1,5"])
def test_to_decimal_rejects_non_numeric(value):
    with pytest.raises(CartValidationError):
        to_decimal(value, "price")


def test_to_decimal_goes_through_str_for_floats():
    assert to_decimal(1.1) == Decimal("1.1")
    assert to_decimal("  12.22 ") == Decimal("12.22")
    assert to_decimal(3) == Decimal("3")


def test_number_format_uses_configured_defaults():
    assert number_format(Decimal("3600")) == "3,600.00"


def test_number_format_with_custom_separators():
    assert number_format(Decimal("3600"), 2, ",", ".") == "3.600,00"
    assert number_format(Decimal("5000"), 2, ",", "") == "5000,00"
    assert number_format(Decimal("1234.5"), 0) == "1,235"
