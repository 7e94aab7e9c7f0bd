"""
Currency helpers - amounts are Decimal with two fractional digits,
stored as integer minor units (paise)
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

CENT = Decimal("0.01")

# Largest amount accepted anywhere; balances of many such amounts still fit a SQLite INTEGER in paise
MAX_AMOUNT = Decimal("9999999999.99")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Quantize any numeric input to a two-digit Decimal"""
    # bool is an int subclass; True is not one rupee
    if isinstance(value, bool):
        raise ValueError(f"Not a valid amount: {value!r}")
    try:
        # float goes through str so 45.5 becomes Decimal("45.5"), not its binary expansion
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"Amount exceeds the limit of {MAX_AMOUNT}: {value!r}")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {value!r}")


def to_minor(amount: Decimal) -> int:
    """Decimal rupees -> integer paise"""
    return int(to_money(amount) * 100)


def from_minor(minor: int) -> Decimal:
    """Integer paise -> Decimal rupees"""
    return (Decimal(minor) / 100).quantize(CENT)


def format_money(amount: Decimal) -> str:
    return f"₹{to_money(amount):.2f}"
