"""Integration tests for bank-level investing"""

from decimal import Decimal

import pytest

from banksim.domain.exceptions import InsufficientFundsError, ValidationError
from banksim.domain.models import InvestmentEventType, TransactionType
from banksim.infrastructure.database.repositories import TransactionRepository
from banksim.services.investments import InvestmentService
from conftest import OWNER, SLOT


@pytest.fixture
def investments(db, clock, started_slot):
    return InvestmentService(db, clock)


def test_invest_then_divest_everything(investments):
    investments.invest(OWNER, SLOT, Decimal("10000.00"))
    state = investments.divest(OWNER, SLOT, Decimal("10000.00"))

    assert state.invested_amount == Decimal("0.00")
    assert state.liquid_cash == Decimal("100000.00")

    summary = investments.investment_summary(OWNER, SLOT)
    assert sorted(e.type for e in summary.events) == [InvestmentEventType.DIVEST, InvestmentEventType.INVEST]
    assert all(e.amount == Decimal("10000.00") and e.asset == "S&P 500" for e in summary.events)


def test_cannot_invest_more_than_liquid_cash(investments):
    with pytest.raises(InsufficientFundsError, match="Insufficient liquid cash"):
        investments.invest(OWNER, SLOT, Decimal("100000.01"))


def test_cannot_divest_more_than_invested(investments):
    investments.invest(OWNER, SLOT, Decimal("500.00"))

    with pytest.raises(InsufficientFundsError, match="Cannot divest more than invested"):
        investments.divest(OWNER, SLOT, Decimal("500.01"))


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00"), None])
def test_amount_must_be_positive(investments, amount):
    with pytest.raises(ValidationError):
        investments.invest(OWNER, SLOT, amount)


def test_summary_totals_repayment_income(db, clock, investments, make_client):
    record = make_client()
    ledger = TransactionRepository(db)
    ledger.append(client=record, type=TransactionType.LOAN_PAYMENT, amount=Decimal("100.00"), game_day=0, created_at=clock.now())
    ledger.append(client=record, type=TransactionType.MORTGAGE_PAYMENT, amount=Decimal("900.00"), game_day=0, created_at=clock.now())
    ledger.append(client=record, type=TransactionType.SPENDING, amount=Decimal("55.00"), game_day=0, created_at=clock.now())

    summary = investments.investment_summary(OWNER, SLOT)

    assert summary.repayment_income_total == Decimal("1000.00")
    assert summary.repayment_income_today == Decimal("1000.00")
    assert len(summary.repayments) == 2
    assert summary.next_growth_day == 11
