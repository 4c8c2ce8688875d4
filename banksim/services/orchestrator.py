"""One simulation pass over a slot - clock first, then every scheduler at the new day"""

import logging
from typing import Optional

from numpy.random import Generator
from sqlalchemy.orm import Session

from banksim.config import Settings
from banksim.domain.calendar import whole_day
from banksim.domain.models import TickSummary
from banksim.services.bankruptcy import BankruptcyService
from banksim.services.payroll import PayrollService
from banksim.services.rent import RentService
from banksim.services.repayments import RepaymentService
from banksim.services.simulation import SimulationService
from banksim.services.spending import SpendingService
from banksim.utils.clock import Clock


class SimulationTick:
    """
    Drives the schedulers for a slot at its now-current game day.

    Order: advance clock, payroll, rent, repayments, spending per client,
    bankruptcy sweep. Payroll runs before the debits so a client's pay for a
    day is available to that day's rent. Everything shares the caller's
    transaction.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
        rng: Optional[Generator] = None,
    ):
        self.simulation = SimulationService(db, clock, config)
        clock, config = self.simulation.clock, self.simulation.settings
        self.payroll = PayrollService(db, clock, config)
        self.rent = RentService(db, clock, config)
        self.repayments = RepaymentService(db, clock, config)
        self.spending = SpendingService(db, clock, config, rng)
        self.bankruptcy = BankruptcyService(db, clock, config)

    def run(self, owner_id: str, slot_id: int) -> TickSummary:
        state = self.simulation.require_state(owner_id, slot_id)
        game_day = state.game_day
        day = whole_day(game_day)

        summary = TickSummary(game_day=game_day)
        summary.payroll_payments = self.payroll.run_payroll(owner_id, slot_id, game_day)
        summary.rent_charges = self.rent.charge_rent(owner_id, slot_id, game_day)
        summary.repayments = self.repayments.collect_repayments(owner_id, slot_id, game_day)

        for client in self.simulation.clients.list_by_slot(owner_id, slot_id, for_update=True):
            posted = self.spending.generate_for_client(client, day)
            summary.spending_transactions += len(posted)
            summary.clients.append(client.id)

        summary.bankruptcies_discharged = self.bankruptcy.sweep(owner_id, slot_id, game_day)

        logging.info(
            "Simulation tick complete",
            extra={
                "owner_id": owner_id,
                "slot_id": slot_id,
                "step": "tick",
                "game_day": game_day,
                "payroll_payments": summary.payroll_payments,
                "rent_charges": summary.rent_charges,
                "repayments": summary.repayments,
                "spending_transactions": summary.spending_transactions,
                "bankruptcies_discharged": summary.bankruptcies_discharged,
            },
        )
        return summary
