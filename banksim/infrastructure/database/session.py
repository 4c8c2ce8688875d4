"""Database session management and the unit-of-work boundary"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from banksim.config import settings
from banksim.domain.exceptions import ConcurrencyConflictError
from banksim.infrastructure.observability.metrics import conflict_counter


def build_engine(database_url: str):
    """Pooled engine; SQLite gets the thread flag the test client needs"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transactional(db: Session) -> Iterator[Session]:
    """
    Run one logical operation as a single transaction.

    Commits on success and rolls back on any error. A stale version check
    (another writer advanced the same cursor first) or a uniqueness race is
    re-raised as ConcurrencyConflictError so callers can retry.
    """
    try:
        yield db
        db.commit()
    except (StaleDataError, IntegrityError) as e:
        db.rollback()
        conflict_counter.inc()
        logging.warning(f"Concurrent update conflict: {e}", extra={"step": "unit_of_work"})
        raise ConcurrencyConflictError("Record was modified concurrently; retry the operation") from e
    except Exception:
        db.rollback()
        raise
