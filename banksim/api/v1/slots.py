"""/v1/slots - slot lifecycle, bank state, investments and the simulation tick"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from numpy.random import Generator
from sqlalchemy.orm import Session

from banksim.api.dependencies import get_clock, get_request_id, get_rng, unit_of_work
from banksim.api.v1.schemas import (
    AmountRequest,
    BankStateResponse,
    InvestmentSummaryResponse,
    MortgageRateRequest,
    SlotSummaryResponse,
    TickResponse,
)
from banksim.infrastructure.database.session import get_db
from banksim.services.investments import InvestmentService
from banksim.services.orchestrator import SimulationTick
from banksim.services.simulation import SimulationService
from banksim.utils.clock import Clock

router = APIRouter()

DEFAULT_SLOTS = [1, 2, 3]


@router.get("/slots", response_model=List[SlotSummaryResponse])
def list_slots(
    request: Request,
    owner_id: str = Query(..., min_length=1),
    slot_ids: Optional[List[int]] = Query(default=None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Advance and summarize each requested slot (slots 1-3 by default)"""
    with unit_of_work(db, get_request_id(request)):
        summaries = SimulationService(db, clock).list_and_advance(owner_id, slot_ids or DEFAULT_SLOTS)
    return [SlotSummaryResponse.model_validate(s) for s in summaries]


@router.post("/slots/{slot_id}/start", response_model=BankStateResponse)
def start_slot(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        state = SimulationService(db, clock).start_slot(owner_id, slot_id)
    return BankStateResponse.model_validate(state)


@router.get("/slots/{slot_id}", response_model=BankStateResponse)
def get_slot(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        state = SimulationService(db, clock).require_state(owner_id, slot_id)
    return BankStateResponse.model_validate(state)


@router.put("/slots/{slot_id}/mortgage-rate", response_model=BankStateResponse)
def update_mortgage_rate(
    slot_id: int,
    body: MortgageRateRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        state = SimulationService(db, clock).update_mortgage_rate(owner_id, slot_id, body.mortgage_rate)
    return BankStateResponse.model_validate(state)


@router.post("/slots/{slot_id}/tick", response_model=TickResponse)
def tick(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    rng: Generator = Depends(get_rng),
):
    """Advance the clock and run payroll, rent, repayments, spending and the bankruptcy sweep"""
    with unit_of_work(db, get_request_id(request)):
        summary = SimulationTick(db, clock, rng=rng).run(owner_id, slot_id)
    return TickResponse.model_validate(summary)


@router.get("/slots/{slot_id}/investments", response_model=InvestmentSummaryResponse)
def investment_summary(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        summary = InvestmentService(db, clock).investment_summary(owner_id, slot_id)
        response = InvestmentSummaryResponse.model_validate(summary)
    return response


@router.post("/slots/{slot_id}/investments/invest", response_model=BankStateResponse)
def invest(
    slot_id: int,
    body: AmountRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        state = InvestmentService(db, clock).invest(owner_id, slot_id, body.amount)
    return BankStateResponse.model_validate(state)


@router.post("/slots/{slot_id}/investments/divest", response_model=BankStateResponse)
def divest(
    slot_id: int,
    body: AmountRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        state = InvestmentService(db, clock).divest(owner_id, slot_id, body.amount)
    return BankStateResponse.model_validate(state)
