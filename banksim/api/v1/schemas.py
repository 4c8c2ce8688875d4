"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from banksim.domain.models import (
    BankruptcyStatus,
    InvestmentEventType,
    LivingType,
    LoanStatus,
    MortgageStatus,
    PropertyStatus,
    TransactionType,
)


class _OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Requests


class AmountRequest(BaseModel):
    """Body for deposits, withdrawals, savings moves, invest and divest"""

    amount: Decimal = Field(..., description="Amount in currency units, 2 decimal places")


class MortgageRateRequest(BaseModel):
    mortgage_rate: Decimal = Field(..., ge=0)


class ClientCreateRequest(BaseModel):
    name: Optional[str] = None


class JobCreateRequest(BaseModel):
    title: str
    employer: str
    annual_salary: Decimal
    pay_cycle_days: int = 30


class JobAssignRequest(BaseModel):
    job_id: int
    primary: bool = True


class RentalCreateRequest(BaseModel):
    name: str
    monthly_rent: Decimal
    bedrooms: Optional[int] = None
    location: Optional[str] = None


class PropertyCreateRequest(BaseModel):
    name: str
    price: Decimal


class RentalAssignRequest(BaseModel):
    rental_id: int


class PropertyAssignRequest(BaseModel):
    property_id: int


class LoanCreateRequest(BaseModel):
    amount: Decimal
    term_years: int


class LoanDecisionRequest(BaseModel):
    status: LoanStatus


class MortgageCreateRequest(BaseModel):
    property_id: int
    down_payment: Decimal
    term_years: int


class MortgageDecisionRequest(BaseModel):
    status: MortgageStatus


class CategoryCreateRequest(BaseModel):
    name: str
    min_pct_income: Decimal
    max_pct_income: Decimal
    variability: Decimal = Decimal("0")
    default_active: bool = True


class BankruptcyFileRequest(BaseModel):
    notes: Optional[str] = None


class BankruptcyDecisionRequest(BaseModel):
    status: BankruptcyStatus


class SpendingRequest(BaseModel):
    """Explicit game day; omitted means the slot's current day"""

    game_day: Optional[int] = Field(default=None, ge=0)


# Responses


class BankStateResponse(_OrmModel):
    slot_id: int
    liquid_cash: Decimal
    invested_amount: Decimal
    asset_price: Decimal
    mortgage_rate: Decimal
    game_day: float
    next_dividend_day: int
    next_growth_day: int
    last_observed_at: Optional[datetime] = None


class SlotSummaryResponse(_OrmModel):
    slot_id: int
    client_count: int
    game_day: float
    liquid_cash: Decimal
    has_data: bool


class ClientResponse(_OrmModel):
    id: int
    slot_id: int
    name: str
    checking_balance: Decimal
    savings_balance: Decimal
    daily_withdrawn: Decimal
    card_number: Optional[str] = None
    card_expiry: Optional[str] = None
    monthly_income_cache: Decimal
    monthly_mandatory_cache: Decimal
    monthly_discretionary_target: Decimal
    bankrupt: bool
    bankrupt_until: Optional[float] = None
    purchasing_block_reason: Optional[str] = None


class TransactionResponse(_OrmModel):
    id: int
    client_id: int
    type: TransactionType
    amount: Decimal
    game_day: int
    created_at: datetime


class CashflowResponse(_OrmModel):
    game_month: int
    income: Decimal
    spending: Decimal
    net: Decimal
    spending_vs_income_pct: float


class InvestmentEventResponse(_OrmModel):
    type: InvestmentEventType
    asset: str
    amount: Decimal
    game_day: int
    created_at: datetime


class InvestmentSummaryResponse(_OrmModel):
    liquid_cash: Decimal
    invested_amount: Decimal
    asset_price: Decimal
    game_day: float
    next_growth_day: int
    next_dividend_day: int
    repayment_income_total: Decimal
    repayment_income_today: Decimal
    events: List[InvestmentEventResponse]
    repayments: List[TransactionResponse]


class JobResponse(_OrmModel):
    id: int
    title: str
    employer: str
    annual_salary: Decimal
    pay_cycle_days: int


class ClientJobResponse(_OrmModel):
    id: int
    client_id: int
    job_id: int
    next_payday: Optional[float] = None
    primary: bool


class RentalResponse(_OrmModel):
    id: int
    name: str
    monthly_rent: Decimal
    bedrooms: Optional[int] = None
    location: Optional[str] = None


class PropertyResponse(_OrmModel):
    id: int
    slot_id: int
    name: str
    price: Decimal
    status: PropertyStatus
    owner_client_id: Optional[int] = None


class LivingResponse(_OrmModel):
    client_id: int
    living_type: LivingType
    rental_id: Optional[int] = None
    property_id: Optional[int] = None
    monthly_rent_cache: Optional[Decimal] = None
    next_rent_day: Optional[int] = None
    delinquent: bool


class LoanResponse(_OrmModel):
    id: int
    client_id: int
    amount: Decimal
    term_years: int
    status: LoanStatus
    monthly_payment: Optional[Decimal] = None
    next_payment_day: Optional[int] = None
    total_repaid: Decimal
    missed_payments: int


class MortgageResponse(_OrmModel):
    id: int
    client_id: int
    property_id: Optional[int] = None
    property_price: Decimal
    down_payment: Decimal
    loan_amount: Decimal
    term_years: int
    interest_rate: Decimal
    status: MortgageStatus
    monthly_payment: Optional[Decimal] = None
    start_payment_day: Optional[int] = None
    next_payment_day: Optional[int] = None
    total_paid: Decimal
    payments_made: int
    missed_payments: int


class CategoryResponse(_OrmModel):
    id: int
    name: str
    min_pct_income: Decimal
    max_pct_income: Decimal
    variability: Optional[Decimal] = None
    default_active: bool


class BankruptcyResponse(_OrmModel):
    id: int
    client_id: int
    status: BankruptcyStatus
    filed_day: int
    discharge_at: Optional[float] = None
    notes: Optional[str] = None


class CountResponse(BaseModel):
    """Result of a scheduler run"""

    game_day: float
    posted: int


class TickResponse(_OrmModel):
    game_day: float
    payroll_payments: int
    rent_charges: int
    repayments: int
    spending_transactions: int
    bankruptcies_discharged: int
    clients: List[int]
