"""Decimal helpers for money, rates and display."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
UNIT = Decimal("1")
ZERO = Decimal("0")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert a number to Decimal through its string form."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    """Round to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_whole(value: Decimal) -> Decimal:
    """Round to whole currency units (fees and penalties)."""
    return value.quantize(UNIT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"€{value:,.2f}"


def format_percent(rate: Decimal | float, digits: int = 2) -> str:
    return f"{float(rate) * 100:.{digits}f}%"
