"""Discretionary spending allocation for one simulated day"""

from decimal import Decimal
from typing import List

from numpy.random import Generator

from banksim.domain.models import CategoryProfile
from banksim.utils.money import ZERO, round_money, to_decimal


def disposable_income(monthly_income: Decimal, mandatory_spend: Decimal) -> Decimal:
    """Monthly income left after obligations, never negative"""
    return max(ZERO, round_money(to_decimal(monthly_income) - to_decimal(mandatory_spend)))


def draw_category_pct(category: CategoryProfile, rng: Generator) -> float:
    """
    Share of disposable income to spend in a category this day.

    A base share is drawn uniformly from [min_pct, max_pct], then swung by
    a symmetric factor in [-variability, +variability] and clamped at 0.
    """
    low = float(category.min_pct)
    high = float(category.max_pct)
    base_pct = low + rng.random() * (high - low)

    variability = float(category.variability or 0)
    swing = rng.uniform(-variability, variability) if variability > 0 else 0.0
    return max(0.0, base_pct * (1 + swing))


def split_amount(total: Decimal, events: int, rng: Generator) -> List[Decimal]:
    """
    Split a category's spend into installments with random weights.

    Requirements:
    - Weights drawn from [0.5, 1.5] and normalized, so no installment dominates
    - Last installment absorbs the rounding remainder (exact total)
    - Non-positive portions are dropped

    Example:
        100.00 split 4 ways with weights [1.0, 0.5, 1.5, 1.0]
        -> [25.00, 12.50, 37.50, 25.00]
    """
    if total <= 0:
        return []
    if events <= 1:
        return [total]

    weights = rng.uniform(0.5, 1.5, size=events)
    weight_sum = float(weights.sum())

    splits = []
    remaining = total
    for i in range(events):
        if i == events - 1:
            portion = remaining
        else:
            portion = round_money(total * to_decimal(float(weights[i]) / weight_sum))
            portion = min(portion, remaining)
            remaining = remaining - portion

        if portion > 0:
            splits.append(portion)

    return splits


def plan_category_spend(
    disposable: Decimal,
    checking_balance: Decimal,
    category: CategoryProfile,
    rng: Generator,
    events: int,
) -> List[Decimal]:
    """
    Installment amounts for one category, capped so the balance never goes negative.

    Target = disposable * drawn pct, capped at the checking balance, then split.
    Installments are applied against a running balance; anything that would
    be zero or below after capping is dropped.
    """
    if disposable <= 0:
        return []

    pct = draw_category_pct(category, rng)
    target = disposable * to_decimal(pct)
    available = round_money(min(target, checking_balance))
    if available <= 0:
        return []

    installments = []
    running_balance = checking_balance
    for split in split_amount(available, max(1, events), rng):
        if running_balance <= 0:
            break
        amount = round_money(min(split, running_balance))
        if amount <= 0:
            continue
        running_balance -= amount
        installments.append(amount)

    return installments
