"""Decimal and minor-unit conversions for money amounts."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.000001")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        # floats go through str() so 0.1 stays 0.1
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc


def quantize_amount(value: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    return value.quantize(CENT, rounding=rounding)


def floor_amount(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def ceil_amount(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_CEILING)


def quantize_rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    """Convert a two-place amount to integer minor units."""
    return int(quantize_amount(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def normalize_currency(code: str) -> str:
    return code.strip().upper()
