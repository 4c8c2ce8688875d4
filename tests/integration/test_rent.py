"""Integration tests for rent collection"""

from decimal import Decimal

import pytest

from banksim.domain.exceptions import NotFoundError
from banksim.domain.models import LivingType, TransactionType
from banksim.infrastructure.database.repositories import TransactionRepository
from banksim.services.living import LivingService
from banksim.services.rent import RentService
from conftest import OWNER, SLOT, advance_days, rent_living


@pytest.fixture
def rent(db, clock):
    return RentService(db, clock)


def ledger(db, client_id):
    return sorted(TransactionRepository(db).list_by_client(client_id), key=lambda tx: (tx.game_day, tx.id))


def test_short_balance_records_failed_partial_payment(db, rent, make_client):
    """Rent 50 against a 30 balance takes the 30 and flags the shortfall"""
    record = make_client(checking="30.00")
    living = rent_living(db, record, "50.00", next_rent_day=1)

    assert rent.charge_rent(OWNER, SLOT, 1.0) == 1

    [tx] = ledger(db, record.id)
    assert tx.type == TransactionType.PAYMENT_FAILED
    assert tx.amount == Decimal("30.00")
    assert tx.game_day == 1
    assert record.checking_balance == Decimal("0.00")
    assert living.delinquent is True
    assert record.missed_payment_streak == 1


def test_full_payment_clears_delinquency(db, rent, make_client):
    record = make_client(checking="100.00")
    living = rent_living(db, record, "50.00", next_rent_day=1)
    living.delinquent = True
    record.missed_payment_streak = 2

    rent.charge_rent(OWNER, SLOT, 1.0)

    [tx] = ledger(db, record.id)
    assert tx.type == TransactionType.RENT_PAYMENT
    assert tx.amount == Decimal("50.00")
    assert record.checking_balance == Decimal("50.00")
    assert living.delinquent is False
    assert record.missed_payment_streak == 0
    assert living.next_rent_day == 2


def test_missed_periods_are_caught_up_in_order(db, rent, make_client):
    record = make_client(checking="1000.00")
    living = rent_living(db, record, "100.00", next_rent_day=1)

    assert rent.charge_rent(OWNER, SLOT, 3.7) == 3

    assert [(tx.type, tx.game_day) for tx in ledger(db, record.id)] == [
        (TransactionType.RENT_PAYMENT, 1),
        (TransactionType.RENT_PAYMENT, 2),
        (TransactionType.RENT_PAYMENT, 3),
    ]
    assert record.checking_balance == Decimal("700.00")
    assert living.next_rent_day == 4


def test_catch_up_runs_dry_then_fails(db, rent, make_client):
    record = make_client(checking="150.00")
    rent_living(db, record, "100.00", next_rent_day=1)

    rent.charge_rent(OWNER, SLOT, 3.0)

    assert [(tx.type, tx.amount) for tx in ledger(db, record.id)] == [
        (TransactionType.RENT_PAYMENT, Decimal("100.00")),
        (TransactionType.PAYMENT_FAILED, Decimal("50.00")),
        (TransactionType.PAYMENT_FAILED, Decimal("0.00")),
    ]
    assert record.checking_balance == Decimal("0.00")
    assert record.missed_payment_streak == 2


def test_second_run_on_same_day_charges_nothing(db, rent, make_client):
    record = make_client(checking="500.00")
    rent_living(db, record, "100.00", next_rent_day=1)

    assert rent.charge_rent(OWNER, SLOT, 1.0) == 1
    assert rent.charge_rent(OWNER, SLOT, 1.9) == 0
    assert record.checking_balance == Decimal("400.00")


def test_living_without_cursor_is_scheduled_not_charged(db, rent, make_client):
    record = make_client(checking="500.00")
    living = rent_living(db, record, "100.00", next_rent_day=None)

    assert rent.charge_rent(OWNER, SLOT, 4.2) == 0
    assert living.next_rent_day == 5
    assert ledger(db, record.id) == []


def test_assign_rental_sets_cursor_and_mandatory_spend(db, clock, simulation, make_client):
    record = make_client(checking="500.00")
    living_service = LivingService(db, clock)
    listing = living_service.create_rental("Studio", Decimal("850.00"), bedrooms=1)

    advance_days(clock, 2.3)
    living = living_service.assign_rental(OWNER, SLOT, record.id, listing.id)

    assert living.living_type == LivingType.RENTAL
    assert living.monthly_rent_cache == Decimal("850.00")
    assert living.next_rent_day == 3
    assert record.monthly_mandatory_cache == Decimal("850.00")


def test_moving_out_stops_rent(db, clock, make_client, rent):
    record = make_client(checking="500.00")
    living_service = LivingService(db, clock)
    listing = living_service.create_rental("Studio", Decimal("100.00"))
    living_service.assign_rental(OWNER, SLOT, record.id, listing.id)

    living = living_service.clear_living(OWNER, SLOT, record.id)

    assert living.living_type == LivingType.NONE
    assert record.monthly_mandatory_cache == Decimal("0.00")
    assert rent.charge_rent(OWNER, SLOT, 10.0) == 0


def test_get_living_before_any_selection(db, clock, make_client):
    record = make_client()
    with pytest.raises(NotFoundError, match="Living selection not set"):
        LivingService(db, clock).get_living(OWNER, SLOT, record.id)
