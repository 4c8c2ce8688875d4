"""Personal loans and mortgages - origination and decisions"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from banksim.config import Settings
from banksim.domain.calendar import whole_day
from banksim.domain.exceptions import (
    InsufficientFundsError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from banksim.domain.models import LoanStatus, MortgageStatus, PropertyStatus, TransactionType
from banksim.infrastructure.database.models import Loan, Mortgage
from banksim.infrastructure.database.repositories import (
    LoanRepository,
    MortgageRepository,
    PropertyRepository,
)
from banksim.services.clients import ClientService
from banksim.services.obligations import MandatorySpendService
from banksim.utils.clock import Clock
from banksim.utils.money import ZERO, divide_money, round_money

MONTHS_PER_YEAR = 12


def monthly_installment(principal: Decimal, term_years: int) -> Decimal:
    """Straight-line amortization: principal / (term * 12), no interest"""
    months = term_years * MONTHS_PER_YEAR
    if months <= 0:
        return round_money(principal)
    return divide_money(principal, months)


class LendingService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.client_service = ClientService(db, clock, config)
        self.clock = self.client_service.clock
        self.settings = self.client_service.settings
        self.loans = LoanRepository(db)
        self.mortgages = MortgageRepository(db)
        self.properties = PropertyRepository(db)
        self.mandatory = MandatorySpendService(db)

    # Loans

    def create_loan(self, owner_id: str, slot_id: int, client_id: int, amount: Decimal, term_years: int) -> Loan:
        if amount is None or amount <= 0:
            raise ValidationError("Loan amount must be greater than zero.")
        low, high = self.settings.loan_term_years_min, self.settings.loan_term_years_max
        if term_years is None or term_years < low or term_years > high:
            raise ValidationError(f"Term must be between {low} and {high} years.")

        client = self.client_service.get_client(owner_id, slot_id, client_id)
        now = self.clock.now()
        loan = Loan(
            owner_id=owner_id,
            slot_id=slot_id,
            client=client,
            amount=round_money(amount),
            term_years=term_years,
            interest_rate=Decimal("0.0000"),
            status=LoanStatus.PENDING,
            total_repaid=ZERO,
            missed_payments=0,
            created_at=now,
            updated_at=now,
        )
        return self.loans.save(loan)

    def list_loans(self, owner_id: str, slot_id: int) -> List[Loan]:
        return self.loans.list_by_slot(owner_id, slot_id)

    def decide_loan(self, owner_id: str, slot_id: int, loan_id: int, status: LoanStatus) -> Loan:
        """
        Approve or reject a pending loan.

        Approval disburses the principal into checking and starts the
        repayment schedule one period from today; rejection changes nothing else.
        """
        if status not in (LoanStatus.APPROVED, LoanStatus.REJECTED):
            raise InvalidStateTransitionError(f"Cannot move a loan to {status.value}.")
        loan = self.loans.get(loan_id, owner_id, slot_id)
        if loan is None:
            raise NotFoundError("Loan not found")
        if loan.status != LoanStatus.PENDING:
            raise InvalidStateTransitionError("Loan already processed.")

        if status == LoanStatus.APPROVED:
            client, state = self.client_service.load(owner_id, slot_id, loan.client_id, for_update=True)
            self.client_service.post_credit(client, state, loan.amount, TransactionType.LOAN_DISBURSEMENT)
            loan.monthly_payment = monthly_installment(loan.amount, loan.term_years)
            loan.next_payment_day = whole_day(state.game_day) + self.settings.repayment_period_days

        loan.status = status
        loan.updated_at = self.clock.now()
        self.loans.save(loan)
        if status == LoanStatus.APPROVED:
            self.mandatory.recalc(loan.client)

        logging.info(
            "Loan decided",
            extra={"owner_id": owner_id, "slot_id": slot_id, "loan_id": loan.id, "status": status.value},
        )
        return loan

    # Mortgages

    def create_mortgage(
        self,
        owner_id: str,
        slot_id: int,
        client_id: int,
        property_id: int,
        down_payment: Decimal,
        term_years: int,
    ) -> Mortgage:
        low, high = self.settings.mortgage_term_years_min, self.settings.mortgage_term_years_max
        if term_years is None or term_years < low or term_years > high:
            raise ValidationError(f"Term must be between {low} and {high} years.")
        if down_payment is None or down_payment < 0:
            raise ValidationError("Down payment cannot be negative.")

        client, state = self.client_service.load(owner_id, slot_id, client_id)
        prop = self.properties.get(property_id, slot_id)
        if prop is None:
            raise NotFoundError("Property not found")
        if prop.status != PropertyStatus.AVAILABLE:
            raise ValidationError("Property is no longer available.")
        down_payment = round_money(down_payment)
        if down_payment > prop.price:
            raise ValidationError("Down payment cannot exceed the property price.")

        now = self.clock.now()
        mortgage = Mortgage(
            owner_id=owner_id,
            slot_id=slot_id,
            client=client,
            property=prop,
            property_price=prop.price,
            down_payment=down_payment,
            loan_amount=round_money(prop.price - down_payment),
            term_years=term_years,
            interest_rate=state.mortgage_rate,
            status=MortgageStatus.PENDING,
            total_paid=ZERO,
            payments_made=0,
            missed_payments=0,
            created_at=now,
            updated_at=now,
        )
        return self.mortgages.save(mortgage)

    def list_mortgages(self, owner_id: str, slot_id: int) -> List[Mortgage]:
        return self.mortgages.list_by_slot(owner_id, slot_id)

    def decide_mortgage(self, owner_id: str, slot_id: int, mortgage_id: int, status: MortgageStatus) -> Mortgage:
        """
        Accept or reject a pending mortgage.

        Acceptance takes the down payment from checking, hands the property to
        the client and starts repayments one period after today. The down
        payment counts toward total paid.
        """
        if status not in (MortgageStatus.ACCEPTED, MortgageStatus.REJECTED):
            raise InvalidStateTransitionError(f"Cannot move a mortgage to {status.value}.")
        mortgage = self.mortgages.get(mortgage_id, owner_id, slot_id)
        if mortgage is None:
            raise NotFoundError("Mortgage not found")
        if mortgage.status != MortgageStatus.PENDING:
            raise InvalidStateTransitionError("Mortgage already processed.")

        if status == MortgageStatus.ACCEPTED:
            prop = mortgage.property
            if prop is None or prop.status != PropertyStatus.AVAILABLE:
                raise ValidationError("Property is no longer available.")
            client, state = self.client_service.load(owner_id, slot_id, mortgage.client_id, for_update=True)
            down_payment = round_money(mortgage.down_payment)
            if down_payment > client.checking_balance:
                raise InsufficientFundsError("Not enough funds to purchase property.")

            if down_payment > 0:
                self.client_service.post_debit(client, state, down_payment, TransactionType.MORTGAGE_DOWN_PAYMENT)
            prop.status = PropertyStatus.OWNED
            prop.owner_client = client
            self.properties.save(prop)

            start_day = whole_day(state.game_day)
            mortgage.monthly_payment = monthly_installment(mortgage.loan_amount, mortgage.term_years)
            mortgage.start_payment_day = start_day
            mortgage.next_payment_day = start_day + self.settings.repayment_period_days
            mortgage.total_paid = round_money((mortgage.total_paid or ZERO) + down_payment)

        mortgage.status = status
        mortgage.updated_at = self.clock.now()
        self.mortgages.save(mortgage)
        if status == MortgageStatus.ACCEPTED:
            self.mandatory.recalc(mortgage.client)

        logging.info(
            "Mortgage decided",
            extra={"owner_id": owner_id, "slot_id": slot_id, "mortgage_id": mortgage.id, "status": status.value},
        )
        return mortgage
