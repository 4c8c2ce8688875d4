"""/v1/slots/{slot_id}/clients - client accounts, ledger, jobs, living and applications"""

from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from banksim.api.dependencies import get_clock, get_request_id, unit_of_work
from banksim.api.v1.schemas import (
    AmountRequest,
    BankruptcyFileRequest,
    BankruptcyResponse,
    CashflowResponse,
    ClientCreateRequest,
    ClientJobResponse,
    ClientResponse,
    JobAssignRequest,
    LivingResponse,
    LoanCreateRequest,
    LoanResponse,
    MortgageCreateRequest,
    MortgageResponse,
    PropertyAssignRequest,
    RentalAssignRequest,
    TransactionResponse,
)
from banksim.infrastructure.database.session import get_db
from banksim.services.bankruptcy import BankruptcyService
from banksim.services.clients import ClientService
from banksim.services.jobs import JobService
from banksim.services.lending import LendingService
from banksim.services.living import LivingService
from banksim.utils.clock import Clock

router = APIRouter()

CLIENTS = "/slots/{slot_id}/clients"
CLIENT = CLIENTS + "/{client_id}"


@router.post(CLIENTS, response_model=ClientResponse, status_code=201)
def create_client(
    slot_id: int,
    body: ClientCreateRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        client = ClientService(db, clock).create_client(owner_id, slot_id, body.name)
    return ClientResponse.model_validate(client)


@router.get(CLIENTS, response_model=List[ClientResponse])
def list_clients(
    slot_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        clients = ClientService(db, clock).list_clients(owner_id, slot_id)
        response = [ClientResponse.model_validate(c) for c in clients]
    return response


@router.get(CLIENT, response_model=ClientResponse)
def get_client(
    slot_id: int,
    client_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        client = ClientService(db, clock).get_client(owner_id, slot_id, client_id)
    return ClientResponse.model_validate(client)


@router.post(CLIENT + "/deposit", response_model=TransactionResponse)
def deposit(
    slot_id: int,
    client_id: int,
    body: AmountRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        tx = ClientService(db, clock).deposit(owner_id, slot_id, client_id, body.amount)
    return TransactionResponse.model_validate(tx)


@router.post(CLIENT + "/withdraw", response_model=TransactionResponse)
def withdraw(
    slot_id: int,
    client_id: int,
    body: AmountRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        tx = ClientService(db, clock).withdraw(owner_id, slot_id, client_id, body.amount)
    return TransactionResponse.model_validate(tx)


@router.post(CLIENT + "/savings/deposit", response_model=TransactionResponse)
def savings_deposit(
    slot_id: int,
    client_id: int,
    body: AmountRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        tx = ClientService(db, clock).savings_deposit(owner_id, slot_id, client_id, body.amount)
    return TransactionResponse.model_validate(tx)


@router.post(CLIENT + "/savings/withdraw", response_model=TransactionResponse)
def savings_withdraw(
    slot_id: int,
    client_id: int,
    body: AmountRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        tx = ClientService(db, clock).savings_withdraw(owner_id, slot_id, client_id, body.amount)
    return TransactionResponse.model_validate(tx)


@router.get(CLIENT + "/transactions", response_model=List[TransactionResponse])
def list_transactions(
    slot_id: int,
    client_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        transactions = ClientService(db, clock).list_transactions(owner_id, slot_id, client_id)
        response = [TransactionResponse.model_validate(tx) for tx in transactions]
    return response


@router.get(CLIENT + "/cashflow", response_model=CashflowResponse)
def monthly_cashflow(
    slot_id: int,
    client_id: int,
    request: Request,
    year: int = Query(...),
    month: int = Query(...),
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        cashflow = ClientService(db, clock).monthly_cashflow(owner_id, slot_id, client_id, year, month)
    return CashflowResponse.model_validate(cashflow)


@router.post(CLIENT + "/jobs", response_model=ClientJobResponse, status_code=201)
def assign_job(
    slot_id: int,
    client_id: int,
    body: JobAssignRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        client_job = JobService(db, clock).assign_job(owner_id, slot_id, client_id, body.job_id, body.primary)
    return ClientJobResponse.model_validate(client_job)


@router.get(CLIENT + "/living", response_model=LivingResponse)
def get_living(
    slot_id: int,
    client_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        living = LivingService(db, clock).get_living(owner_id, slot_id, client_id)
    return LivingResponse.model_validate(living)


@router.put(CLIENT + "/living/rental", response_model=LivingResponse)
def assign_rental(
    slot_id: int,
    client_id: int,
    body: RentalAssignRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        living = LivingService(db, clock).assign_rental(owner_id, slot_id, client_id, body.rental_id)
    return LivingResponse.model_validate(living)


@router.put(CLIENT + "/living/property", response_model=LivingResponse)
def assign_owned_property(
    slot_id: int,
    client_id: int,
    body: PropertyAssignRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        living = LivingService(db, clock).assign_owned_property(owner_id, slot_id, client_id, body.property_id)
    return LivingResponse.model_validate(living)


@router.delete(CLIENT + "/living", response_model=LivingResponse)
def clear_living(
    slot_id: int,
    client_id: int,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        living = LivingService(db, clock).clear_living(owner_id, slot_id, client_id)
    return LivingResponse.model_validate(living)


@router.post(CLIENT + "/loans", response_model=LoanResponse, status_code=201)
def create_loan(
    slot_id: int,
    client_id: int,
    body: LoanCreateRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        loan = LendingService(db, clock).create_loan(owner_id, slot_id, client_id, body.amount, body.term_years)
    return LoanResponse.model_validate(loan)


@router.post(CLIENT + "/mortgages", response_model=MortgageResponse, status_code=201)
def create_mortgage(
    slot_id: int,
    client_id: int,
    body: MortgageCreateRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        mortgage = LendingService(db, clock).create_mortgage(
            owner_id, slot_id, client_id, body.property_id, body.down_payment, body.term_years
        )
    return MortgageResponse.model_validate(mortgage)


@router.post(CLIENT + "/bankruptcy", response_model=BankruptcyResponse, status_code=201)
def file_bankruptcy(
    slot_id: int,
    client_id: int,
    body: BankruptcyFileRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        application = BankruptcyService(db, clock).file(owner_id, slot_id, client_id, body.notes)
    return BankruptcyResponse.model_validate(application)
