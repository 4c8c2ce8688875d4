"""Mortgage payment attribution - rebuild total paid per mortgage from an unlinked ledger"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from banksim.domain.models import LedgerPayment, MortgageTerms
from banksim.utils.money import ZERO, round_money

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def order_mortgages(mortgages: Iterable[MortgageTerms]) -> List[MortgageTerms]:
    """Sort by start payment day (unset last), then creation time (unset last)"""
    return sorted(
        mortgages,
        key=lambda m: (
            m.start_payment_day is None,
            m.start_payment_day or 0,
            m.created_at is None,
            m.created_at or _EPOCH,
        ),
    )


def pick_mortgage(
    payment: LedgerPayment,
    mortgages: List[MortgageTerms],
    paid_so_far: Dict[int, Decimal],
) -> Optional[MortgageTerms]:
    """
    Choose the mortgage a payment most likely paid down.

    Candidates must have started on or before the payment day (or have no
    start day), have a monthly payment, and still be below their property
    price. The candidate whose monthly payment is closest to the payment
    amount wins; on an exact tie the earlier start day wins, and a best
    match with no start day yields to the later candidate.

    `mortgages` must already be in `order_mortgages` order.
    """
    best: Optional[MortgageTerms] = None
    best_diff: Optional[Decimal] = None

    for mortgage in mortgages:
        start_day = mortgage.start_payment_day
        if start_day is not None and payment.game_day < start_day:
            continue
        if mortgage.monthly_payment is None:
            continue
        current_paid = paid_so_far.get(mortgage.mortgage_id, ZERO)
        if mortgage.property_price is not None and current_paid >= mortgage.property_price:
            continue

        diff = abs(payment.amount - mortgage.monthly_payment)
        if best is None or diff < best_diff:
            best, best_diff = mortgage, diff
        elif diff == best_diff:
            best_start = best.start_payment_day
            if best_start is None or (start_day is not None and start_day < best_start):
                best, best_diff = mortgage, diff

    return best


def attribute_payments(
    mortgages: Iterable[MortgageTerms],
    payments: Iterable[LedgerPayment],
) -> Dict[int, Decimal]:
    """
    Recompute total paid per mortgage for one client.

    Best-effort heuristic: mortgage payments carry no mortgage id, so each
    payment (in game day, then creation order) goes to the nearest-amount
    candidate. Each total is seeded with the down payment and finally
    clamped to the property price.

    Returns:
        Mapping of mortgage id to reconstructed total paid
    """
    ordered = order_mortgages(mortgages)
    paid: Dict[int, Decimal] = {m.mortgage_id: round_money(m.down_payment) for m in ordered}

    for payment in sorted(payments, key=lambda p: (p.game_day, p.created_at is None, p.created_at or _EPOCH)):
        chosen = pick_mortgage(payment, ordered, paid)
        if chosen is not None:
            paid[chosen.mortgage_id] = round_money(paid.get(chosen.mortgage_id, ZERO) + payment.amount)

    totals = {}
    for mortgage in ordered:
        total = round_money(paid.get(mortgage.mortgage_id, ZERO))
        if mortgage.property_price is not None and total > mortgage.property_price:
            total = round_money(mortgage.property_price)
        totals[mortgage.mortgage_id] = total
    return totals
