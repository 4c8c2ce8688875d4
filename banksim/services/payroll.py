"""Payday scheduler - monthly salary per primary job, with catch-up"""

from typing import Optional

from sqlalchemy.orm import Session

from banksim.config import Settings, settings as default_settings
from banksim.domain.calendar import whole_day
from banksim.domain.models import TransactionType
from banksim.infrastructure.database.models import ClientJob
from banksim.infrastructure.database.repositories import (
    ClientJobRepository,
    ClientRepository,
    TransactionRepository,
)
from banksim.infrastructure.observability.logging import log_posting
from banksim.infrastructure.observability.metrics import payroll_payment_counter
from banksim.utils.clock import Clock, SystemClock
from banksim.utils.money import divide_money, round_money


class PayrollService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.settings = config or default_settings
        self.client_jobs = ClientJobRepository(db)
        self.clients = ClientRepository(db)
        self.transactions = TransactionRepository(db)

    def run_payroll(self, owner_id: str, slot_id: int, as_of_game_day: float) -> int:
        """
        Pay every primary job whose payday has come, once per missed payday.

        Each payday posts its own PAYROLL_DEPOSIT stamped with that payday's
        whole day, then moves the cursor exactly 1.0 day forward. A job without
        a payday cursor is skipped; assign_job is what schedules the first one.

        Returns:
            Number of payroll deposits posted
        """
        paid = 0
        for client_job in self.client_jobs.list_by_slot(owner_id, slot_id, for_update=True):
            if not client_job.primary or client_job.next_payday is None:
                continue
            while client_job.next_payday <= as_of_game_day:
                self._pay(client_job)
                paid += 1
        return paid

    def _pay(self, client_job: ClientJob) -> None:
        client = client_job.client
        payday = client_job.next_payday
        # One game day is one month: a twelfth of the annual salary
        pay = divide_money(client_job.job.annual_salary, self.settings.days_per_year)

        client.checking_balance = round_money(client.checking_balance + pay)
        self.clients.save(client)
        self.transactions.append(
            client=client,
            type=TransactionType.PAYROLL_DEPOSIT,
            amount=pay,
            game_day=whole_day(payday),
            created_at=self.clock.now(),
        )

        client_job.next_payday = payday + 1.0
        self.client_jobs.save(client_job)

        payroll_payment_counter.inc()
        log_posting("payroll", client.id, whole_day(payday), pay, job=client_job.job.title)
