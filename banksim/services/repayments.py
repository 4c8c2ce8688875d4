"""Loan and mortgage repayment collection - rent-shaped catch-up per obligation"""

from decimal import Decimal
from typing import Optional, Set

from sqlalchemy.orm import Session

from banksim.config import Settings, settings as default_settings
from banksim.domain.calendar import whole_day
from banksim.domain.models import LoanStatus, MortgageStatus, TransactionType
from banksim.infrastructure.database.models import Client, Loan, Mortgage
from banksim.infrastructure.database.repositories import (
    ClientRepository,
    LoanRepository,
    MortgageRepository,
    TransactionRepository,
)
from banksim.infrastructure.observability.logging import log_posting
from banksim.infrastructure.observability.metrics import record_repayment
from banksim.services.obligations import MandatorySpendService
from banksim.utils.clock import Clock, SystemClock
from banksim.utils.money import ZERO, round_money

PAID = "PAID"
FAILED = "FAILED"


class RepaymentService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.settings = config or default_settings
        self.clients = ClientRepository(db)
        self.loans = LoanRepository(db)
        self.mortgages = MortgageRepository(db)
        self.transactions = TransactionRepository(db)
        self.mandatory = MandatorySpendService(db)

    def collect_repayments(self, owner_id: str, slot_id: int, as_of_game_day: float) -> int:
        """
        Take every due loan and mortgage installment, once per missed period.

        A full debit records LOAN_PAYMENT / MORTGAGE_PAYMENT; a short debit
        records PAYMENT_FAILED for what could be taken and counts a missed
        payment. Loans that reach their principal become PAID_OFF; mortgages
        stop collecting once total paid reaches the property price.

        Returns:
            Number of repayment transactions posted (paid or failed)
        """
        day = whole_day(as_of_game_day)
        period = self.settings.repayment_period_days
        posted = 0
        settled: Set[int] = set()

        for loan in self.loans.list_by_slot(owner_id, slot_id, for_update=True):
            if loan.status != LoanStatus.APPROVED or loan.next_payment_day is None or loan.monthly_payment is None:
                continue
            while loan.next_payment_day is not None and day >= loan.next_payment_day:
                self._collect_loan(loan, loan.next_payment_day)
                posted += 1
                if loan.total_repaid >= loan.amount:
                    loan.status = LoanStatus.PAID_OFF
                    loan.next_payment_day = None
                    settled.add(loan.client_id)
                else:
                    loan.next_payment_day += period
                loan.updated_at = self.clock.now()
            self.loans.save(loan)

        for mortgage in self.mortgages.list_by_slot(owner_id, slot_id, status=MortgageStatus.ACCEPTED, for_update=True):
            if mortgage.next_payment_day is None or mortgage.monthly_payment is None:
                continue
            while mortgage.next_payment_day is not None and day >= mortgage.next_payment_day:
                self._collect_mortgage(mortgage, mortgage.next_payment_day)
                posted += 1
                if mortgage.total_paid >= mortgage.property_price:
                    mortgage.next_payment_day = None
                    settled.add(mortgage.client_id)
                else:
                    mortgage.next_payment_day += period
                mortgage.updated_at = self.clock.now()
            self.mortgages.save(mortgage)

        # Paid-off obligations drop out of mandatory spend
        for client_id in sorted(settled):
            client = self.clients.get(client_id, owner_id, slot_id)
            if client is not None:
                self.mandatory.recalc(client)

        return posted

    def _collect_loan(self, loan: Loan, due_day: int) -> None:
        due = round_money(min(loan.monthly_payment, loan.amount - loan.total_repaid))
        paid = self._debit(loan.client, due, due_day, TransactionType.LOAN_PAYMENT)
        loan.total_repaid = round_money(loan.total_repaid + paid)
        if paid >= due:
            loan.last_payment_status = PAID
        else:
            loan.last_payment_status = FAILED
            loan.missed_payments = (loan.missed_payments or 0) + 1
        record_repayment("loan", paid >= due)

    def _collect_mortgage(self, mortgage: Mortgage, due_day: int) -> None:
        remaining = round_money(mortgage.property_price - (mortgage.total_paid or ZERO))
        due = round_money(min(mortgage.monthly_payment, remaining))
        paid = self._debit(mortgage.client, due, due_day, TransactionType.MORTGAGE_PAYMENT)
        mortgage.total_paid = round_money((mortgage.total_paid or ZERO) + paid)
        if paid >= due:
            mortgage.last_payment_status = PAID
            mortgage.payments_made = (mortgage.payments_made or 0) + 1
        else:
            mortgage.last_payment_status = FAILED
            mortgage.missed_payments = (mortgage.missed_payments or 0) + 1
        record_repayment("mortgage", paid >= due)

    def _debit(self, client: Client, due: Decimal, due_day: int, paid_type: TransactionType) -> Decimal:
        """Take min(checking, due); short payments are recorded as PAYMENT_FAILED"""
        paid = round_money(max(ZERO, min(client.checking_balance, due)))
        paid_in_full = paid >= due

        client.checking_balance = round_money(client.checking_balance - paid)
        if paid_in_full:
            client.missed_payment_streak = 0
        else:
            client.missed_payment_streak = (client.missed_payment_streak or 0) + 1
        self.clients.save(client)

        tx_type = paid_type if paid_in_full else TransactionType.PAYMENT_FAILED
        self.transactions.append(
            client=client,
            type=tx_type,
            amount=paid,
            game_day=due_day,
            created_at=self.clock.now(),
        )
        log_posting("repayment", client.id, due_day, paid, due=str(due), outcome=tx_type.value)
        return paid
