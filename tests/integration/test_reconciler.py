"""Integration tests for mortgage ledger reconciliation"""

from decimal import Decimal

import pytest

from banksim.domain.models import MortgageStatus, TransactionType
from banksim.infrastructure.database.repositories import TransactionRepository
from banksim.services.lending import LendingService
from banksim.services.living import LivingService
from banksim.services.reconciliation import MortgageReconciler
from conftest import OWNER, SLOT


@pytest.fixture
def lending(db, clock):
    return LendingService(db, clock)


@pytest.fixture
def reconciler(db, clock):
    return MortgageReconciler(db, clock)


def mortgage_for(db, clock, lending, record, price, status=MortgageStatus.ACCEPTED):
    prop = LivingService(db, clock).create_property(OWNER, SLOT, f"Home {price}", Decimal(price))
    mortgage = lending.create_mortgage(OWNER, SLOT, record.id, prop.id, Decimal("0.00"), 10)
    if status != MortgageStatus.PENDING:
        lending.decide_mortgage(OWNER, SLOT, mortgage.id, status)
    return mortgage


def post(db, clock, record, tx_type, amount, game_day):
    TransactionRepository(db).append(
        client=record, type=tx_type, amount=Decimal(amount), game_day=game_day, created_at=clock.now()
    )


def test_payment_attributed_to_nearest_monthly_amount(db, clock, lending, reconciler, make_client):
    """An 895 payment belongs to the 900 mortgage, not the 1200 one"""
    record = make_client()
    large = mortgage_for(db, clock, lending, record, "144000.00")
    small = mortgage_for(db, clock, lending, record, "108000.00")
    assert (large.monthly_payment, small.monthly_payment) == (Decimal("1200.00"), Decimal("900.00"))
    post(db, clock, record, TransactionType.MORTGAGE_PAYMENT, "895.00", 1)

    reconciler.reconcile(OWNER, SLOT)

    assert small.total_paid == Decimal("895.00")
    assert large.total_paid == Decimal("0.00")


def test_failed_payments_are_not_attributed(db, clock, lending, reconciler, make_client):
    record = make_client()
    mortgage = mortgage_for(db, clock, lending, record, "108000.00")
    post(db, clock, record, TransactionType.PAYMENT_FAILED, "450.00", 1)
    post(db, clock, record, TransactionType.MORTGAGE_PAYMENT, "900.00", 2)

    reconciler.reconcile(OWNER, SLOT)

    assert mortgage.total_paid == Decimal("900.00")


def test_stale_total_is_rebuilt_from_ledger(db, clock, lending, reconciler, make_client):
    record = make_client()
    mortgage = mortgage_for(db, clock, lending, record, "108000.00")
    mortgage.total_paid = Decimal("50000.00")
    post(db, clock, record, TransactionType.MORTGAGE_PAYMENT, "900.00", 1)
    post(db, clock, record, TransactionType.MORTGAGE_PAYMENT, "900.00", 2)

    reconciler.reconcile(OWNER, SLOT)

    assert mortgage.total_paid == Decimal("1800.00")


def test_down_payment_seeds_total(db, clock, lending, reconciler, make_client):
    record = make_client(checking="8000.00")
    prop = LivingService(db, clock).create_property(OWNER, SLOT, "Condo", Decimal("108000.00"))
    mortgage = lending.create_mortgage(OWNER, SLOT, record.id, prop.id, Decimal("6000.00"), 10)
    lending.decide_mortgage(OWNER, SLOT, mortgage.id, MortgageStatus.ACCEPTED)
    post(db, clock, record, TransactionType.MORTGAGE_PAYMENT, "850.00", 1)

    reconciler.reconcile(OWNER, SLOT)

    assert mortgage.total_paid == Decimal("6850.00")


def test_each_client_only_reconciles_against_own_payments(db, clock, lending, reconciler, make_client):
    alice = make_client("Alice")
    bob = make_client("Bob")
    alice_mortgage = mortgage_for(db, clock, lending, alice, "108000.00")
    bob_mortgage = mortgage_for(db, clock, lending, bob, "108000.00")
    post(db, clock, alice, TransactionType.MORTGAGE_PAYMENT, "900.00", 1)

    reconciler.reconcile(OWNER, SLOT)

    assert alice_mortgage.total_paid == Decimal("900.00")
    assert bob_mortgage.total_paid == Decimal("0.00")


def test_pending_mortgages_are_returned_but_untouched(db, clock, lending, reconciler, make_client):
    record = make_client()
    accepted = mortgage_for(db, clock, lending, record, "108000.00")
    pending = mortgage_for(db, clock, lending, record, "144000.00", status=MortgageStatus.PENDING)
    post(db, clock, record, TransactionType.MORTGAGE_PAYMENT, "1200.00", 1)

    result = reconciler.reconcile(OWNER, SLOT)

    assert [m.id for m in result] == [accepted.id, pending.id]
    assert accepted.total_paid == Decimal("1200.00")
    assert pending.total_paid == Decimal("0.00")


def test_reconcile_is_repeatable(db, clock, lending, reconciler, make_client):
    record = make_client()
    mortgage = mortgage_for(db, clock, lending, record, "108000.00")
    post(db, clock, record, TransactionType.MORTGAGE_PAYMENT, "900.00", 1)

    reconciler.reconcile(OWNER, SLOT)
    reconciler.reconcile(OWNER, SLOT)

    assert mortgage.total_paid == Decimal("900.00")
