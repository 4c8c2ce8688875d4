"""Pytest fixtures for testing"""

from decimal import Decimal
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from numpy.random import default_rng
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from banksim.api.dependencies import get_clock, get_rng
from banksim.api.main import create_app
from banksim.domain.models import LivingType
from banksim.infrastructure.database.models import Base, Client, ClientLiving
from banksim.infrastructure.database.session import get_db
from banksim.services.clients import ClientService
from banksim.services.simulation import SimulationService
from banksim.utils.clock import ManualClock

OWNER = "owner-1"
SLOT = 1
ONE_DAY_MS = 60_000

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> ManualClock:
    """Wall clock that only moves when a test advances it"""
    return ManualClock()


@pytest.fixture
def rng():
    """Seeded random source so spending amounts are reproducible"""
    return default_rng(1234)


@pytest.fixture
def client(db: Session, clock: ManualClock, rng) -> TestClient:
    """Create FastAPI test client with test database, manual clock and seeded rng"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_rng] = lambda: rng
    return TestClient(app)


@pytest.fixture
def simulation(db: Session, clock: ManualClock) -> SimulationService:
    return SimulationService(db, clock)


@pytest.fixture
def started_slot(db: Session, simulation: SimulationService):
    """Slot 1 for owner-1, freshly started at the clock's current time"""
    state = simulation.start_slot(OWNER, SLOT)
    db.commit()
    return state


@pytest.fixture
def make_client(db: Session, clock: ManualClock, started_slot):
    """Factory for a client in the started slot with a given checking balance"""

    def _make(name: str = "Alice", checking: str = "0.00") -> Client:
        record = ClientService(db, clock).create_client(OWNER, SLOT, name)
        record.checking_balance = Decimal(checking)
        db.flush()
        return record

    return _make


def advance_days(clock: ManualClock, days: float) -> None:
    """Move the wall clock forward by a number of game days"""
    clock.advance(milliseconds=days * ONE_DAY_MS)


def rent_living(db: Session, record: Client, rent: str, next_rent_day: Optional[int]) -> ClientLiving:
    """Put a client in a rental with the given rent and cursor, without a listing"""
    living = ClientLiving(
        client=record,
        slot_id=record.slot_id,
        living_type=LivingType.RENTAL,
        monthly_rent_cache=Decimal(rent),
        next_rent_day=next_rent_day,
        delinquent=False,
    )
    db.add(living)
    db.flush()
    return living
