"""
Juice Bar POS — Decimal helpers for stock and money arithmetic

Quantities and prices are stored as floats; arithmetic goes through Decimal
built from the shortest float repr so 0.3 / 0.1 is 3, not 2.999...
"""
from datetime import datetime, timezone
from decimal import Decimal


def as_decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_float(value: Decimal) -> float:
    return float(value)


def format_amount(value) -> str:
    """120.0 -> '120', 152.5 -> '152.5'."""
    amount = as_decimal(value)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
