# cartkit/domain/money.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from cartkit.domain.errors import CartValidationError
from cartkit.utils.settings import (
    CART_FORMAT_DECIMALS,
    CART_FORMAT_DECIMAL_POINT,
    CART_FORMAT_THOUSAND_SEPARATOR,
)

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
_CENT = Decimal("0.01")


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Zamiana wejscia (int, float, Decimal, string liczbowy) na Decimal.
    float idzie przez str(), tak jak przy cenach z product-service.
    """
    if isinstance(value, bool) or value is None:
        raise CartValidationError(f"Please supply a valid {field}.")

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise CartValidationError(f"Please supply a valid {field}.") from None

    if not result.is_finite():
        raise CartValidationError(f"Please supply a valid {field}.")
    return result


def round2(value: Any) -> Decimal:
    # zaokraglenie walutowe, half-up jak number_format
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def number_format(
    value: Any,
    decimals: int | None = None,
    decimal_point: str | None = None,
    thousand_separator: str | None = None,
) -> str:
    """Formatuje kwote, brakujace parametry biora domyslne z ustawien."""
    if decimals is None:
        decimals = CART_FORMAT_DECIMALS
    if decimal_point is None:
        decimal_point = CART_FORMAT_DECIMAL_POINT
    if thousand_separator is None:
        thousand_separator = CART_FORMAT_THOUSAND_SEPARATOR

    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    quantized = value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)

    text = f"{quantized:,.{decimals}f}"
    return (
        text.replace(",", "\0")
        .replace(".", decimal_point)
        .replace("\0", thousand_separator)
    )
