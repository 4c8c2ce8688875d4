"""Game-day calendar - converts wall time into game days and finds day boundaries"""

import math
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from banksim.utils.money import ZERO, round_money

ONE_MS = timedelta(milliseconds=1)


def elapsed_ms(last_observed_at: Optional[datetime], now: datetime) -> int:
    """
    Whole wall-clock milliseconds between the last observation and now.

    A missing last observation counts as "now" (zero elapsed). A clock that
    went backwards also yields zero so the game day never decreases. Any
    sub-millisecond remainder is left for the next observation.
    """
    if last_observed_at is None or now <= last_observed_at:
        return 0
    return (now - last_observed_at) // ONE_MS


def game_day_at(game_ms: Optional[int], ms_per_game_day: int) -> float:
    """Fractional game day reached after game_ms of play"""
    return (game_ms or 0) / ms_per_game_day


def whole_day(game_day: Optional[float]) -> int:
    """Integer day a fractional game day falls in"""
    return int(math.floor(game_day or 0.0))


def crossed_days(previous_ms: int, new_ms: int, ms_per_game_day: int) -> range:
    """
    Whole days crossed moving from previous_ms to new_ms of play, in increasing order.

    Works on the integer millisecond cursor so splitting one advance into many
    small ones crosses exactly the same days.

    Example:
        crossed_days(54_000, 192_000, 60_000) -> range(1, 4) -> 1, 2, 3
    """
    return range(previous_ms // ms_per_game_day + 1, new_ms // ms_per_game_day + 1)


def is_year_end(day: int, days_per_year: int) -> bool:
    """Annual growth and dividend fire on the last day of each simulated year"""
    return (day + 1) % days_per_year == 0


def first_year_end(days_per_year: int) -> int:
    return days_per_year - 1


def monthly_growth(liquid_cash: Optional[Decimal], rate: Decimal) -> Decimal:
    """Growth earned on liquid cash for one game day; nothing on zero or negative cash"""
    if liquid_cash is None or liquid_cash <= 0:
        return ZERO
    return round_money(liquid_cash * rate)


def annual_yield(invested: Optional[Decimal], rate: Decimal) -> Decimal:
    """Annual growth or dividend on the invested amount; nothing when not invested"""
    if invested is None or invested <= 0:
        return ZERO
    return round_money(invested * rate)


def discharge_day(filed_day: int, discharge_days: int) -> float:
    """Game day on which an approved bankruptcy is discharged"""
    return float(filed_day + discharge_days)
