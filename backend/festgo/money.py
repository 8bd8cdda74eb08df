# Overview: Integer-cents arithmetic shared by carts, tickets and reports.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation


def tax_cents(subtotal_cents: int, rate_bps: int) -> int:
    """Tax on an amount, nearest-cent rounding (half-up)."""
    if subtotal_cents <= 0 or rate_bps <= 0:
        return 0
    return (subtotal_cents * rate_bps + 5000) // 10000


def to_amount(cents: int | None) -> float:
    """Cents -> decimal amount for JSON responses."""
    if cents is None:
        return 0.0
    return float(Decimal(cents) / 100)


def to_cents(value) -> int:
    """Decimal amount (str/int/float) -> integer cents, half-up."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def rate_percent(rate_bps: int) -> float:
    return rate_bps / 100
