"""Integration tests for daily discretionary spending"""

from decimal import Decimal

import pytest
from numpy.random import default_rng

from banksim.domain.exceptions import ValidationError
from banksim.domain.models import TransactionType
from banksim.services.jobs import JobService
from banksim.services.spending import SpendingCategoryService, SpendingService
from conftest import OWNER, SLOT, advance_days, rent_living


@pytest.fixture
def categories(db):
    service = SpendingCategoryService(db)
    service.create_category("Groceries", Decimal("0.10"), Decimal("0.20"), Decimal("0.10"))
    service.create_category("Dining", Decimal("0.05"), Decimal("0.15"), Decimal("0.20"))
    return service


@pytest.fixture
def spending(db, clock, rng):
    return SpendingService(db, clock, rng=rng)


def test_generating_twice_for_the_same_day_posts_once(spending, categories, make_client):
    record = make_client(checking="5000.00")
    record.monthly_income_cache = Decimal("3000.00")

    first = spending.generate(OWNER, SLOT, record.id)
    balance_after_first = record.checking_balance
    second = spending.generate(OWNER, SLOT, record.id)

    assert first
    assert all(tx.type == TransactionType.SPENDING and tx.game_day == 0 for tx in first)
    assert second == []
    assert record.checking_balance == balance_after_first
    assert balance_after_first == Decimal("5000.00") - sum(tx.amount for tx in first)


def test_spending_bounded_by_disposable_income(db, spending, categories, make_client):
    record = make_client(checking="10000.00")
    record.monthly_income_cache = Decimal("3000.00")
    rent_living(db, record, "1000.00", next_rent_day=1)

    posted = spending.generate(OWNER, SLOT, record.id)

    assert record.monthly_mandatory_cache == Decimal("1000.00")
    assert record.monthly_discretionary_target == Decimal("2000.00")
    # Groceries at most 0.20 * 1.10, dining at most 0.15 * 1.20 of 2000
    assert sum(tx.amount for tx in posted) <= Decimal("800.00")


def test_balance_never_goes_negative(spending, categories, make_client):
    record = make_client(checking="12.34")
    record.monthly_income_cache = Decimal("50000.00")

    posted = spending.generate(OWNER, SLOT, record.id)

    assert sum(tx.amount for tx in posted) == Decimal("12.34")
    assert record.checking_balance == Decimal("0.00")


def test_no_disposable_income_posts_nothing(db, spending, categories, make_client):
    record = make_client(checking="5000.00")
    record.monthly_income_cache = Decimal("800.00")
    rent_living(db, record, "900.00", next_rent_day=1)

    assert spending.generate(OWNER, SLOT, record.id) == []
    assert record.monthly_discretionary_target == Decimal("0.00")
    assert record.checking_balance == Decimal("5000.00")


def test_income_falls_back_to_primary_salaries(db, clock, spending, categories, make_client):
    record = make_client(checking="5000.00")
    jobs = JobService(db, clock)
    job = jobs.create_job("Nurse", "Clinic", Decimal("60000.00"))
    jobs.assign_job(OWNER, SLOT, record.id, job.id)
    record.monthly_income_cache = Decimal("0.00")

    spending.generate(OWNER, SLOT, record.id)

    assert record.monthly_income_cache == Decimal("5000.00")


def test_each_game_day_spends_separately(clock, spending, categories, make_client):
    record = make_client(checking="5000.00")
    record.monthly_income_cache = Decimal("3000.00")

    day_zero = spending.generate(OWNER, SLOT, record.id)
    advance_days(clock, 1)
    day_one = spending.generate(OWNER, SLOT, record.id)

    assert day_zero and day_one
    assert {tx.game_day for tx in day_one} == {1}


def test_explicit_game_day(spending, categories, make_client):
    record = make_client(checking="5000.00")
    record.monthly_income_cache = Decimal("3000.00")

    posted = spending.generate(OWNER, SLOT, record.id, game_day=7)

    assert {tx.game_day for tx in posted} == {7}
    assert spending.generate(OWNER, SLOT, record.id, game_day=7) == []


def test_inactive_categories_are_skipped(db, spending, make_client):
    SpendingCategoryService(db).create_category(
        "Travel", Decimal("0.10"), Decimal("0.20"), default_active=False
    )
    record = make_client(checking="5000.00")
    record.monthly_income_cache = Decimal("3000.00")

    assert spending.generate(OWNER, SLOT, record.id) == []


def test_same_seed_spends_the_same_amounts(db, clock, categories, make_client):
    alice = make_client("Alice", checking="5000.00")
    bob = make_client("Bob", checking="5000.00")
    alice.monthly_income_cache = bob.monthly_income_cache = Decimal("3000.00")

    first = SpendingService(db, clock, rng=default_rng(42)).generate(OWNER, SLOT, alice.id)
    second = SpendingService(db, clock, rng=default_rng(42)).generate(OWNER, SLOT, bob.id)

    assert [tx.amount for tx in first] == [tx.amount for tx in second]


@pytest.mark.parametrize(
    "name,low,high,variability",
    [
        ("", "0.1", "0.2", "0"),
        ("Bad", "0.3", "0.2", "0"),
        ("Bad", "-0.1", "0.2", "0"),
        ("Bad", "0.1", "1.2", "0"),
        ("Bad", "0.1", "0.2", "-1"),
    ],
)
def test_category_validation(db, name, low, high, variability):
    with pytest.raises(ValidationError):
        SpendingCategoryService(db).create_category(name, Decimal(low), Decimal(high), Decimal(variability))


def test_duplicate_category_name_rejected(categories):
    with pytest.raises(ValidationError, match="already exists"):
        categories.create_category("Groceries", Decimal("0.1"), Decimal("0.2"))
