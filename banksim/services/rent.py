"""Rent collector - monthly rent debits with partial-payment fallback"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from banksim.config import Settings, settings as default_settings
from banksim.domain.calendar import whole_day
from banksim.domain.models import TransactionType
from banksim.infrastructure.database.models import ClientLiving
from banksim.infrastructure.database.repositories import (
    ClientLivingRepository,
    ClientRepository,
    TransactionRepository,
)
from banksim.infrastructure.observability.logging import log_posting
from banksim.infrastructure.observability.metrics import record_rent_charge
from banksim.utils.clock import Clock, SystemClock
from banksim.utils.money import ZERO, round_money


class RentService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.settings = config or default_settings
        self.livings = ClientLivingRepository(db)
        self.clients = ClientRepository(db)
        self.transactions = TransactionRepository(db)

    def charge_rent(self, owner_id: str, slot_id: int, as_of_game_day: float) -> int:
        """
        Debit rent for every rental whose rent day has come, once per missed period.

        The debit is min(checking, rent): a full debit records RENT_PAYMENT, a
        short one records PAYMENT_FAILED for what could be taken and marks the
        living delinquent. A living with no rent cursor gets one and is not
        charged on that pass.

        Returns:
            Number of rent transactions posted (paid or failed)
        """
        day = whole_day(as_of_game_day)
        period = self.settings.repayment_period_days
        charged = 0

        for living in self.livings.list_by_slot(owner_id, slot_id, for_update=True):
            rent = living.monthly_rent_cache
            if rent is None or rent <= 0:
                continue
            if living.next_rent_day is None:
                living.next_rent_day = day + period
                self.livings.save(living)
                continue

            while day >= living.next_rent_day:
                self._debit(living, rent, living.next_rent_day)
                living.next_rent_day += period
                charged += 1
            self.livings.save(living)

        return charged

    def _debit(self, living: ClientLiving, rent: Decimal, due_day: int) -> None:
        client = living.client
        paid = round_money(max(ZERO, min(client.checking_balance, rent)))
        paid_in_full = paid >= rent

        client.checking_balance = round_money(client.checking_balance - paid)
        if paid_in_full:
            client.missed_payment_streak = 0
        else:
            client.missed_payment_streak = (client.missed_payment_streak or 0) + 1
        living.delinquent = not paid_in_full
        self.clients.save(client)

        tx_type = TransactionType.RENT_PAYMENT if paid_in_full else TransactionType.PAYMENT_FAILED
        self.transactions.append(
            client=client,
            type=tx_type,
            amount=paid,
            game_day=due_day,
            created_at=self.clock.now(),
        )

        record_rent_charge(paid_in_full)
        log_posting("rent", client.id, due_day, paid, due=str(rent), outcome=tx_type.value)
