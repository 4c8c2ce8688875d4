"""Mandatory monthly spend - which obligations count and what they add up to"""

from decimal import Decimal
from typing import Iterable, Optional

from banksim.domain.models import LoanStatus, MortgageStatus
from banksim.utils.money import ZERO, round_money


def loan_counts(status: LoanStatus, monthly_payment: Optional[Decimal]) -> bool:
    """Only approved loans with a payment schedule are obligations"""
    return status == LoanStatus.APPROVED and monthly_payment is not None


def mortgage_counts(
    status: MortgageStatus,
    monthly_payment: Optional[Decimal],
    owned_by_client: bool,
    total_paid: Optional[Decimal],
    property_price: Optional[Decimal],
) -> bool:
    """
    Accepted mortgages count while the client owns the property and still owes on it.

    A fully paid-off mortgage stops counting even if it was never formally closed.
    """
    if status != MortgageStatus.ACCEPTED or monthly_payment is None or not owned_by_client:
        return False
    paid = total_paid if total_paid is not None else ZERO
    if property_price is not None and paid >= property_price:
        return False
    return True


def total_mandatory(payments: Iterable[Optional[Decimal]]) -> Decimal:
    """Sum of monthly obligations rounded to cents; missing amounts are skipped"""
    return round_money(sum((p for p in payments if p is not None), ZERO))
