"""Decimal helpers shared by cart and order totals."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(amount) -> Decimal:
    return Decimal(str(amount or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount, percent) -> Decimal:
    """Return ``percent`` % of ``amount`` rounded to cents."""
    return quantize(Decimal(str(amount or 0)) * Decimal(int(percent or 0)) / Decimal(100))


def to_minor_units(amount) -> int:
    """Convert a major-unit amount (e.g. rupees) to the gateway's minor units (paise)."""
    return int((quantize(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return quantize(Decimal(int(amount)) / Decimal(100))
