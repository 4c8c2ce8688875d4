"""Integration tests for bankruptcy filing, decisions and discharge"""

import pytest

from banksim.domain.exceptions import InvalidStateTransitionError, NotFoundError, ValidationError
from banksim.domain.models import BankruptcyStatus
from banksim.services.bankruptcy import BLOCK_REASON, BankruptcyService
from conftest import OWNER, SLOT, advance_days


@pytest.fixture
def bankruptcy(db, clock):
    return BankruptcyService(db, clock)


def test_filing_is_stamped_with_current_day(clock, bankruptcy, make_client):
    record = make_client()
    advance_days(clock, 4.6)

    application = bankruptcy.file(OWNER, SLOT, record.id, notes="medical bills")

    assert application.status == BankruptcyStatus.PENDING
    assert application.filed_day == 4
    assert application.notes == "medical bills"


def test_second_open_filing_rejected(bankruptcy, make_client):
    record = make_client()
    bankruptcy.file(OWNER, SLOT, record.id)

    with pytest.raises(ValidationError, match="open bankruptcy"):
        bankruptcy.file(OWNER, SLOT, record.id)


def test_approval_schedules_discharge_and_blocks_purchases(clock, bankruptcy, make_client):
    record = make_client()
    advance_days(clock, 10)
    application = bankruptcy.file(OWNER, SLOT, record.id)

    bankruptcy.decide(OWNER, SLOT, application.id, BankruptcyStatus.APPROVED)

    assert application.status == BankruptcyStatus.APPROVED
    assert application.discharge_at == 2530.0
    assert record.bankrupt is True
    assert record.bankrupt_until == 2530.0
    assert record.purchasing_block_reason == BLOCK_REASON


def test_denial_clears_flags(bankruptcy, make_client):
    record = make_client()
    record.bankrupt = True
    record.purchasing_block_reason = BLOCK_REASON
    application = bankruptcy.file(OWNER, SLOT, record.id)

    bankruptcy.decide(OWNER, SLOT, application.id, BankruptcyStatus.DENIED)

    assert application.status == BankruptcyStatus.DENIED
    assert application.discharge_at is None
    assert record.bankrupt is False
    assert record.purchasing_block_reason is None


def test_denied_client_can_file_again(bankruptcy, make_client):
    record = make_client()
    first = bankruptcy.file(OWNER, SLOT, record.id)
    bankruptcy.decide(OWNER, SLOT, first.id, BankruptcyStatus.DENIED)

    second = bankruptcy.file(OWNER, SLOT, record.id)

    assert second.status == BankruptcyStatus.PENDING


def test_decision_only_once(bankruptcy, make_client):
    record = make_client()
    application = bankruptcy.file(OWNER, SLOT, record.id)
    bankruptcy.decide(OWNER, SLOT, application.id, BankruptcyStatus.APPROVED)

    with pytest.raises(InvalidStateTransitionError):
        bankruptcy.decide(OWNER, SLOT, application.id, BankruptcyStatus.DENIED)


@pytest.mark.parametrize("status", [BankruptcyStatus.PENDING, BankruptcyStatus.FINISHED])
def test_decision_target_must_be_approve_or_deny(bankruptcy, make_client, status):
    record = make_client()
    application = bankruptcy.file(OWNER, SLOT, record.id)

    with pytest.raises(InvalidStateTransitionError):
        bankruptcy.decide(OWNER, SLOT, application.id, status)


def test_unknown_application(bankruptcy, started_slot):
    with pytest.raises(NotFoundError):
        bankruptcy.decide(OWNER, SLOT, 12345, BankruptcyStatus.APPROVED)


def test_sweep_discharges_on_the_discharge_day(bankruptcy, make_client):
    record = make_client()
    application = bankruptcy.file(OWNER, SLOT, record.id)
    bankruptcy.decide(OWNER, SLOT, application.id, BankruptcyStatus.APPROVED)

    assert bankruptcy.sweep(OWNER, SLOT, 2519.99) == 0
    assert record.bankrupt is True

    assert bankruptcy.sweep(OWNER, SLOT, 2520.0) == 1
    assert application.status == BankruptcyStatus.FINISHED
    assert record.bankrupt is False
    assert record.bankrupt_until is None
    assert record.purchasing_block_reason is None


def test_sweep_ignores_pending_and_finished(bankruptcy, make_client):
    pending_client = make_client("Pending")
    done_client = make_client("Done")
    bankruptcy.file(OWNER, SLOT, pending_client.id)
    done = bankruptcy.file(OWNER, SLOT, done_client.id)
    bankruptcy.decide(OWNER, SLOT, done.id, BankruptcyStatus.APPROVED)

    assert bankruptcy.sweep(OWNER, SLOT, 3000.0) == 1
    assert bankruptcy.sweep(OWNER, SLOT, 3000.0) == 0
