"""Fixed-point rounding helpers.

Money and hours are persisted at 2 decimal places, rates at 4. Rounding is
ROUND_HALF_UP and applied only at reporting boundaries (per-line amounts,
then run totals), never to intermediate sums.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")


def to_decimal(value: Decimal | int | str | float | None) -> Decimal:
    """Coerce to Decimal; floats go through str() to avoid binary artefacts."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Decimal) -> Decimal:
    """Round to 2 decimal places (cents / hundredths of an hour)."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def round_rate(value: Decimal) -> Decimal:
    """Round an hourly rate to 4 decimal places."""
    return to_decimal(value).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)
