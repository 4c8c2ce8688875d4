"""/v1/slots/{slot_id}/... - scheduler runs, decisions and batch jobs"""

from typing import List

from fastapi import APIRouter, Depends, Query, Request
from numpy.random import Generator
from sqlalchemy.orm import Session

from banksim.api.dependencies import get_clock, get_request_id, get_rng, unit_of_work
from banksim.api.v1.schemas import (
    BankruptcyDecisionRequest,
    BankruptcyResponse,
    CountResponse,
    LoanDecisionRequest,
    LoanResponse,
    MortgageDecisionRequest,
    MortgageResponse,
    SpendingRequest,
    TransactionResponse,
)
from banksim.infrastructure.database.session import get_db
from banksim.services.bankruptcy import BankruptcyService
from banksim.services.lending import LendingService
from banksim.services.payroll import PayrollService
from banksim.services.reconciliation import MortgageReconciler
from banksim.services.rent import RentService
from banksim.services.repayments import RepaymentService
from banksim.services.simulation import SimulationService
from banksim.services.spending import SpendingService
from banksim.utils.clock import Clock

router = APIRouter()


@router.post("/slots/{slot_id}/payroll/run", response_model=CountResponse)
def run_payroll(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        game_day = SimulationService(db, clock).require_state(owner_id, slot_id).game_day
        posted = PayrollService(db, clock).run_payroll(owner_id, slot_id, game_day)
    return CountResponse(game_day=game_day, posted=posted)


@router.post("/slots/{slot_id}/rent/charge", response_model=CountResponse)
def charge_rent(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        game_day = SimulationService(db, clock).require_state(owner_id, slot_id).game_day
        posted = RentService(db, clock).charge_rent(owner_id, slot_id, game_day)
    return CountResponse(game_day=game_day, posted=posted)


@router.post("/slots/{slot_id}/repayments/collect", response_model=CountResponse)
def collect_repayments(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        game_day = SimulationService(db, clock).require_state(owner_id, slot_id).game_day
        posted = RepaymentService(db, clock).collect_repayments(owner_id, slot_id, game_day)
    return CountResponse(game_day=game_day, posted=posted)


@router.post("/slots/{slot_id}/clients/{client_id}/spending", response_model=List[TransactionResponse])
def generate_spending(
    slot_id: int,
    client_id: int,
    body: SpendingRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    rng: Generator = Depends(get_rng),
):
    """Spend a client's disposable income for one day; empty if that day was already spent"""
    with unit_of_work(db, get_request_id(request)):
        posted = SpendingService(db, clock, rng=rng).generate(owner_id, slot_id, client_id, body.game_day)
        response = [TransactionResponse.model_validate(tx) for tx in posted]
    return response


@router.post("/slots/{slot_id}/mortgages/reconcile", response_model=List[MortgageResponse])
def reconcile_mortgages(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        SimulationService(db, clock).require_state(owner_id, slot_id)
        mortgages = MortgageReconciler(db, clock).reconcile(owner_id, slot_id)
        response = [MortgageResponse.model_validate(m) for m in mortgages]
    return response


@router.post("/slots/{slot_id}/bankruptcy/sweep", response_model=CountResponse)
def sweep_bankruptcies(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        game_day = SimulationService(db, clock).require_state(owner_id, slot_id).game_day
        posted = BankruptcyService(db, clock).sweep(owner_id, slot_id, game_day)
    return CountResponse(game_day=game_day, posted=posted)


@router.post("/slots/{slot_id}/bankruptcy/{application_id}/decision", response_model=BankruptcyResponse)
def decide_bankruptcy(
    slot_id: int,
    application_id: int,
    body: BankruptcyDecisionRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        application = BankruptcyService(db, clock).decide(owner_id, slot_id, application_id, body.status)
    return BankruptcyResponse.model_validate(application)


@router.get("/slots/{slot_id}/loans", response_model=List[LoanResponse])
def list_loans(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        loans = LendingService(db, clock).list_loans(owner_id, slot_id)
        response = [LoanResponse.model_validate(loan) for loan in loans]
    return response


@router.post("/slots/{slot_id}/loans/{loan_id}/decision", response_model=LoanResponse)
def decide_loan(
    slot_id: int,
    loan_id: int,
    body: LoanDecisionRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        loan = LendingService(db, clock).decide_loan(owner_id, slot_id, loan_id, body.status)
    return LoanResponse.model_validate(loan)


@router.get("/slots/{slot_id}/mortgages", response_model=List[MortgageResponse])
def list_mortgages(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        mortgages = LendingService(db, clock).list_mortgages(owner_id, slot_id)
        response = [MortgageResponse.model_validate(m) for m in mortgages]
    return response


@router.post("/slots/{slot_id}/mortgages/{mortgage_id}/decision", response_model=MortgageResponse)
def decide_mortgage(
    slot_id: int,
    mortgage_id: int,
    body: MortgageDecisionRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        mortgage = LendingService(db, clock).decide_mortgage(owner_id, slot_id, mortgage_id, body.status)
    return MortgageResponse.model_validate(mortgage)
