"""/v1 catalogue - jobs, rentals, slot properties and spending categories"""

from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from banksim.api.dependencies import get_clock, get_request_id, unit_of_work
from banksim.api.v1.schemas import (
    CategoryCreateRequest,
    CategoryResponse,
    JobCreateRequest,
    JobResponse,
    PropertyCreateRequest,
    PropertyResponse,
    RentalCreateRequest,
    RentalResponse,
)
from banksim.infrastructure.database.session import get_db
from banksim.services.jobs import JobService
from banksim.services.living import LivingService
from banksim.services.spending import SpendingCategoryService
from banksim.utils.clock import Clock

router = APIRouter()


@router.post("/jobs", response_model=JobResponse, status_code=201)
def create_job(body: JobCreateRequest, request: Request, db: Session = Depends(get_db)):
    with unit_of_work(db, get_request_id(request)):
        job = JobService(db).create_job(body.title, body.employer, body.annual_salary, body.pay_cycle_days)
    return JobResponse.model_validate(job)


@router.get("/jobs", response_model=List[JobResponse])
def list_jobs(db: Session = Depends(get_db)):
    return [JobResponse.model_validate(job) for job in JobService(db).list_jobs()]


@router.post("/rentals", response_model=RentalResponse, status_code=201)
def create_rental(body: RentalCreateRequest, request: Request, db: Session = Depends(get_db)):
    with unit_of_work(db, get_request_id(request)):
        rental = LivingService(db).create_rental(body.name, body.monthly_rent, body.bedrooms, body.location)
    return RentalResponse.model_validate(rental)


@router.get("/rentals", response_model=List[RentalResponse])
def list_rentals(db: Session = Depends(get_db)):
    return [RentalResponse.model_validate(rental) for rental in LivingService(db).list_rentals()]


@router.post("/slots/{slot_id}/properties", response_model=PropertyResponse, status_code=201)
def create_property(
    slot_id: int,
    body: PropertyCreateRequest,
    request: Request,
    owner_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    with unit_of_work(db, get_request_id(request)):
        prop = LivingService(db, clock).create_property(owner_id, slot_id, body.name, body.price)
    return PropertyResponse.model_validate(prop)


@router.post("/spending-categories", response_model=CategoryResponse, status_code=201)
def create_category(body: CategoryCreateRequest, request: Request, db: Session = Depends(get_db)):
    with unit_of_work(db, get_request_id(request)):
        category = SpendingCategoryService(db).create_category(
            body.name,
            body.min_pct_income,
            body.max_pct_income,
            body.variability,
            body.default_active,
        )
    return CategoryResponse.model_validate(category)


@router.get("/spending-categories", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return [CategoryResponse.model_validate(c) for c in SpendingCategoryService(db).list_categories()]
