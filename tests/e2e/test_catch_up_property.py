"""Property tests: a long gap replays exactly like many short ones"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from banksim.infrastructure.database.models import Base, InvestmentEvent
from banksim.services.investments import InvestmentService
from banksim.services.simulation import SimulationService
from banksim.utils.clock import ManualClock

OWNER = "owner-prop"
START = datetime(2024, 1, 1, tzinfo=timezone.utc)

# Arbitrary microsecond gaps, up to two game days each
gaps = st.lists(st.integers(min_value=0, max_value=120_000_000), min_size=1, max_size=12)


@contextmanager
def fresh_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.mark.e2e
@settings(max_examples=30, deadline=None)
@given(gaps=gaps, invested=st.integers(min_value=0, max_value=50_000))
def test_stepwise_and_single_catch_up_agree(gaps, invested):
    with fresh_session() as db:
        clock = ManualClock(START)
        simulation = SimulationService(db, clock)
        simulation.start_slot(OWNER, 1)
        simulation.start_slot(OWNER, 2)
        if invested:
            InvestmentService(db, clock).invest(OWNER, 1, Decimal(invested))
            InvestmentService(db, clock).invest(OWNER, 2, Decimal(invested))

        for gap in gaps:
            clock.advance(microseconds=gap)
            simulation.require_state(OWNER, 1)
        stepwise = simulation.require_state(OWNER, 1)
        once = simulation.require_state(OWNER, 2)

        assert once.game_ms == stepwise.game_ms
        assert once.game_day == stepwise.game_day
        assert once.liquid_cash == stepwise.liquid_cash
        assert once.invested_amount == stepwise.invested_amount
        assert once.next_growth_day == stepwise.next_growth_day
        events_1 = db.query(InvestmentEvent).filter_by(slot_id=1).count()
        events_2 = db.query(InvestmentEvent).filter_by(slot_id=2).count()
        assert events_1 == events_2


@pytest.mark.e2e
@settings(max_examples=20, deadline=None)
@given(gap=st.integers(min_value=0, max_value=48).map(lambda q: q * 15_000))
def test_advancing_twice_at_the_same_instant_is_a_no_op(gap):
    with fresh_session() as db:
        clock = ManualClock(START)
        simulation = SimulationService(db, clock)
        simulation.start_slot(OWNER, 1)
        clock.advance(milliseconds=gap)

        first = simulation.require_state(OWNER, 1)
        snapshot = (first.game_day, first.liquid_cash, first.invested_amount, first.last_observed_at)
        second = simulation.require_state(OWNER, 1)

        assert (second.game_day, second.liquid_cash, second.invested_amount, second.last_observed_at) == snapshot
        assert clock.now() - START == timedelta(milliseconds=gap)
