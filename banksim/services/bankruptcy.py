"""Bankruptcy filings, decisions and the discharge sweep"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from banksim.config import Settings
from banksim.domain.calendar import discharge_day, whole_day
from banksim.domain.exceptions import InvalidStateTransitionError, NotFoundError, ValidationError
from banksim.domain.models import BankruptcyStatus
from banksim.infrastructure.database.models import BankruptcyApplication, Client
from banksim.infrastructure.database.repositories import BankruptcyRepository
from banksim.infrastructure.observability.metrics import bankruptcy_discharge_counter
from banksim.services.clients import ClientService
from banksim.utils.clock import Clock

BLOCK_REASON = "Bankruptcy"
OPEN_STATUSES = (BankruptcyStatus.PENDING, BankruptcyStatus.APPROVED)


class BankruptcyService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.client_service = ClientService(db, clock, config)
        self.clock = self.client_service.clock
        self.settings = self.client_service.settings
        self.applications = BankruptcyRepository(db)

    def file(self, owner_id: str, slot_id: int, client_id: int, notes: Optional[str] = None) -> BankruptcyApplication:
        """File for bankruptcy; stamped with the current whole game day"""
        client, state = self.client_service.load(owner_id, slot_id, client_id, for_update=True)
        if any(app.status in OPEN_STATUSES for app in client.bankruptcies):
            raise ValidationError("Client already has an open bankruptcy application.")

        application = BankruptcyApplication(
            slot_id=slot_id,
            client=client,
            status=BankruptcyStatus.PENDING,
            filed_day=whole_day(state.game_day),
            filed_at=self.clock.now(),
            notes=notes,
        )
        self.applications.save(application)
        logging.info(
            "Bankruptcy filed",
            extra={"owner_id": owner_id, "slot_id": slot_id, "client_id": client.id, "filed_day": application.filed_day},
        )
        return application

    def decide(self, owner_id: str, slot_id: int, application_id: int, status: BankruptcyStatus) -> BankruptcyApplication:
        """
        Approve or deny a pending application.

        Approval schedules the discharge a fixed number of game days after the
        filing day and blocks the client from purchasing; denial clears any
        bankrupt flag immediately.
        """
        if status not in (BankruptcyStatus.APPROVED, BankruptcyStatus.DENIED):
            raise InvalidStateTransitionError(f"Cannot move a bankruptcy application to {status.value}.")
        self.client_service.simulation.require_state(owner_id, slot_id)
        application = self.applications.get(application_id, owner_id)
        if application is None or application.slot_id != slot_id:
            raise NotFoundError("Bankruptcy application not found")
        if application.status != BankruptcyStatus.PENDING:
            raise InvalidStateTransitionError("Bankruptcy application already decided.")

        client = application.client
        if status == BankruptcyStatus.APPROVED:
            application.discharge_at = discharge_day(application.filed_day, self.settings.bankruptcy_discharge_days)
            client.bankrupt = True
            client.bankrupt_until = application.discharge_at
            client.purchasing_block_reason = BLOCK_REASON
        else:
            application.discharge_at = None
            self._clear(client)

        application.status = status
        application.decided_at = self.clock.now()
        self.applications.save(application)
        logging.info(
            "Bankruptcy decided",
            extra={
                "owner_id": owner_id,
                "slot_id": slot_id,
                "client_id": client.id,
                "status": status.value,
                "discharge_at": application.discharge_at,
            },
        )
        return application

    def sweep(self, owner_id: str, slot_id: int, current_game_day: float) -> int:
        """
        Discharge every approved application whose discharge day has arrived.

        Returns:
            Number of applications moved to FINISHED
        """
        discharged = 0
        for application in self.applications.list_by_slot(owner_id, slot_id, for_update=True):
            if application.status != BankruptcyStatus.APPROVED or application.discharge_at is None:
                continue
            if current_game_day < application.discharge_at:
                continue
            application.status = BankruptcyStatus.FINISHED
            self._clear(application.client)
            self.applications.save(application)
            discharged += 1
            logging.info(
                "Bankruptcy discharged",
                extra={
                    "owner_id": owner_id,
                    "slot_id": slot_id,
                    "client_id": application.client_id,
                    "discharge_at": application.discharge_at,
                    "game_day": current_game_day,
                },
            )

        if discharged:
            bankruptcy_discharge_counter.inc(discharged)
        return discharged

    @staticmethod
    def _clear(client: Client) -> None:
        client.bankrupt = False
        client.bankrupt_until = None
        client.purchasing_block_reason = None
