"""Money helpers for statutory amounts.

Contributions and totals round to the nearest sen (half-up). PCB is
truncated to the sen and then rounded UP to the next 5 sen, which is not
standard rounding: 12.31 -> 12.35, 12.30 stays 12.30.
"""

from decimal import Decimal, ROUND_CEILING, ROUND_DOWN, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
FIVE_SEN = Decimal("0.05")
ZERO = Decimal("0.00")


def to_decimal(value: Number | None) -> Decimal:
    """Coerce a number to Decimal without binary float artifacts.

    Floats go through str() so 0.11 becomes Decimal('0.11'), not
    Decimal('0.11000000000000000055511151231257827').
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Expected a number, got bool: {value}")
    return Decimal(str(value))


def round_cents(value: Number) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def truncate_cents(value: Number) -> Decimal:
    """Truncate to 2 decimal places.

    Example: 688.3333 -> 688.33 (not 688.34)
    """
    return to_decimal(value).quantize(CENT, rounding=ROUND_DOWN)


def round_up_to_5_sen(value: Number) -> Decimal:
    """Truncate to sen, then round up to the next multiple of RM0.05.

    Non-positive values return 0.00.
    """
    truncated = truncate_cents(value)
    if truncated <= 0:
        return ZERO
    steps = (truncated / FIVE_SEN).to_integral_value(rounding=ROUND_CEILING)
    return (steps * FIVE_SEN).quantize(CENT)
