"""
Money Utilities - Decimal arithmetic for prices and cart totals.

Catalog prices arrive from the database as floats or strings; they are
converted once and kept as Decimal until the API boundary.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal, None]

MONEY_PRECISION = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """
    Convert any value to Decimal safely.

    Floats go through str() so 19.99 stays 19.99. None and unparseable
    values become Decimal("0").
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return ZERO


def round_money(value: Number) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def to_float(value: Number) -> float:
    """
    Convert to float for JSON responses and external APIs.

    Use only at boundaries, never inside total calculations.
    """
    return float(round_money(value))


def format_money(value: Number, symbol: str = "$") -> str:
    """Format like the storefront displays prices: $1,234.50"""
    return f"{symbol}{round_money(value):,.2f}"
