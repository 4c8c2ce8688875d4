"""Dependency injection for FastAPI endpoints"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, Request
from numpy.random import Generator, default_rng
from sqlalchemy.orm import Session

from banksim.domain.exceptions import (
    ConcurrencyConflictError,
    InsufficientFundsError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from banksim.infrastructure.database.session import transactional
from banksim.utils.clock import Clock, SystemClock

_system_clock = SystemClock()
_rng = default_rng()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Clock:
    """Provide the wall clock (overridden with a ManualClock in tests)"""
    return _system_clock


def get_rng() -> Generator:
    """Provide the random source for spending generation"""
    return _rng


@contextmanager
def unit_of_work(db: Session, request_id: str) -> Iterator[Session]:
    """
    Run an endpoint's work in one transaction and map domain errors to HTTP.

    ValidationError -> 400, NotFoundError -> 404, insufficient funds or a
    limit breach -> 422, concurrent update -> 409.
    """
    try:
        with transactional(db):
            yield db
    except ValidationError as e:
        logging.warning(f"Validation failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InsufficientFundsError, LimitExceededError) as e:
        logging.warning(f"Rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except ConcurrencyConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
