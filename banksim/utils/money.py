"""Fixed-point money helpers (2 decimal places, half-up)"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Round to cents with half-up rounding; None counts as zero"""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() keeps floats from dragging binary noise into the quantize
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert without rounding"""
    return value if isinstance(value, Decimal) else Decimal(str(value))


def divide_money(amount: Decimal, divisor: int) -> Decimal:
    """Divide and round to cents, e.g. annual salary into a monthly paycheck"""
    return round_money(to_decimal(amount) / Decimal(divisor))
