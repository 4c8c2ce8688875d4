"""Job catalogue and job assignment"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from banksim.config import Settings
from banksim.domain.calendar import whole_day
from banksim.domain.exceptions import NotFoundError, ValidationError
from banksim.infrastructure.database.models import Client, ClientJob, Job
from banksim.infrastructure.database.repositories import ClientJobRepository, JobRepository
from banksim.services.clients import ClientService
from banksim.utils.clock import Clock
from banksim.utils.money import ZERO, divide_money


class JobService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.client_service = ClientService(db, clock, config)
        self.clock = self.client_service.clock
        self.settings = self.client_service.settings
        self.jobs = JobRepository(db)
        self.client_jobs = ClientJobRepository(db)

    def create_job(self, title: str, employer: str, annual_salary: Decimal, pay_cycle_days: int = 30) -> Job:
        if not title or not title.strip():
            raise ValidationError("Job title required")
        if not employer or not employer.strip():
            raise ValidationError("Employer required")
        if annual_salary is None or annual_salary <= 0:
            raise ValidationError("Annual salary must be positive")
        if pay_cycle_days is None or pay_cycle_days <= 0:
            raise ValidationError("Pay cycle days must be positive")
        return self.jobs.create(title.strip(), employer.strip(), annual_salary, pay_cycle_days)

    def list_jobs(self) -> List[Job]:
        return self.db.query(Job).order_by(Job.title.asc()).all()

    def assign_job(self, owner_id: str, slot_id: int, client_id: int, job_id: int, primary: bool = True) -> ClientJob:
        """
        Give a client a job; the first payday is the start of the next whole game day.

        A new primary job demotes the client's other primary jobs, so at most
        one job pays at a time.
        """
        client, state = self.client_service.load(owner_id, slot_id, client_id, for_update=True)
        job = self.jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job not found")

        if primary:
            for existing in self.client_jobs.list_by_client(client.id):
                if existing.primary:
                    existing.primary = False
                    self.client_jobs.save(existing)

        now = self.clock.now()
        client_job = ClientJob(
            client=client,
            slot_id=slot_id,
            job=job,
            next_payday=float(whole_day(state.game_day)) + 1.0,
            primary=primary,
            start_date=now,
            created_at=now,
        )
        self.client_jobs.save(client_job)
        self.recalculate_monthly_income(client)

        logging.info(
            "Job assigned",
            extra={
                "owner_id": owner_id,
                "slot_id": slot_id,
                "client_id": client.id,
                "job_id": job.id,
                "primary": primary,
                "next_payday": client_job.next_payday,
            },
        )
        return client_job

    def recalculate_monthly_income(self, client: Client) -> Decimal:
        """Monthly income cache = sum of primary salaries / days per year"""
        annual = sum((cj.job.annual_salary for cj in self.client_jobs.list_by_client(client.id) if cj.primary), ZERO)
        client.monthly_income_cache = divide_money(annual, self.settings.days_per_year)
        self.client_service.clients.save(client)
        return client.monthly_income_cache
