"""Decimal helpers shared by the pricing and profit services.

Amounts arrive as ORM Numerics, pydantic Decimals, ints or floats. Floats
are converted through str() so 0.1 stays 0.1 instead of its binary expansion.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Coerce a number to Decimal; None becomes `default`."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return to_decimal(value)


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """amount × percentage / 100"""
    return amount * percentage / HUNDRED


def safe_percentage(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole × 100, or 0 when whole is 0."""
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Any, symbol: str) -> str:
    """Render an amount for messages: 100 -> '৳100', 95.5 -> '৳95.50'."""
    amount = to_decimal(value)
    if amount == amount.to_integral_value():
        return f"{symbol}{int(amount)}"
    return f"{symbol}{round_money(amount)}"
