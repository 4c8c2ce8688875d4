"""Domain models - enums and pure Python dataclasses representing business values"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionType(str, Enum):
    """Ledger entry kinds"""

    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    PAYROLL_DEPOSIT = "PAYROLL_DEPOSIT"
    SAVINGS_DEPOSIT = "SAVINGS_DEPOSIT"
    SAVINGS_WITHDRAWAL = "SAVINGS_WITHDRAWAL"
    LOAN_DISBURSEMENT = "LOAN_DISBURSEMENT"
    LOAN_PAYMENT = "LOAN_PAYMENT"
    MORTGAGE_DOWN_PAYMENT = "MORTGAGE_DOWN_PAYMENT"
    MORTGAGE_DOWN_PAYMENT_FUNDING = "MORTGAGE_DOWN_PAYMENT_FUNDING"
    MORTGAGE_PAYMENT = "MORTGAGE_PAYMENT"
    RENT_PAYMENT = "RENT_PAYMENT"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    SPENDING = "SPENDING"


# Money flowing into the client; everything else counts as spending in cashflow reports
INCOME_TRANSACTION_TYPES = (
    TransactionType.DEPOSIT,
    TransactionType.PAYROLL_DEPOSIT,
    TransactionType.SAVINGS_DEPOSIT,
    TransactionType.LOAN_DISBURSEMENT,
    TransactionType.MORTGAGE_DOWN_PAYMENT_FUNDING,
)

# Payments the bank receives from its clients
REPAYMENT_TRANSACTION_TYPES = (
    TransactionType.MORTGAGE_PAYMENT,
    TransactionType.LOAN_PAYMENT,
)


class InvestmentEventType(str, Enum):
    INVEST = "INVEST"
    DIVEST = "DIVEST"
    GROWTH = "GROWTH"
    DIVIDEND = "DIVIDEND"


class LoanStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID_OFF = "PAID_OFF"


class MortgageStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class BankruptcyStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    FINISHED = "FINISHED"


class LivingType(str, Enum):
    NONE = "NONE"
    RENTAL = "RENTAL"
    OWNED_PROPERTY = "OWNED_PROPERTY"


class PropertyStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OWNED = "OWNED"


@dataclass
class CategoryProfile:
    """Spending category parameters, as fractions of disposable income"""

    name: str
    min_pct: Decimal
    max_pct: Decimal
    variability: Decimal = Decimal("0")


@dataclass
class MortgageTerms:
    """Accepted mortgage as seen by payment attribution"""

    mortgage_id: int
    monthly_payment: Optional[Decimal]
    property_price: Optional[Decimal]
    down_payment: Decimal
    start_payment_day: Optional[int]
    created_at: Optional[datetime]


@dataclass
class LedgerPayment:
    """Mortgage payment transaction with no link to a specific mortgage"""

    game_day: int
    amount: Decimal
    created_at: Optional[datetime] = None


@dataclass
class SlotSummary:
    """Per-slot overview for slot pickers"""

    slot_id: int
    client_count: int
    game_day: float
    liquid_cash: Decimal
    has_data: bool


@dataclass
class Cashflow:
    """Income vs spending for one game month"""

    game_month: int
    income: Decimal
    spending: Decimal
    net: Decimal
    spending_vs_income_pct: float


@dataclass
class TickSummary:
    """What a single orchestrator pass posted"""

    game_day: float
    payroll_payments: int = 0
    rent_charges: int = 0
    repayments: int = 0
    spending_transactions: int = 0
    bankruptcies_discharged: int = 0
    clients: List[int] = field(default_factory=list)


@dataclass
class InvestmentSummary:
    """Bank investment position plus repayment income received from clients"""

    liquid_cash: Decimal
    invested_amount: Decimal
    asset_price: Decimal
    game_day: float
    next_growth_day: int
    next_dividend_day: int
    repayment_income_total: Decimal
    repayment_income_today: Decimal
    events: list = field(default_factory=list)
    repayments: list = field(default_factory=list)
