"""Bank-level investing of liquid cash into the index asset"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from banksim.config import Settings
from banksim.domain.calendar import whole_day
from banksim.domain.exceptions import InsufficientFundsError, ValidationError
from banksim.domain.models import REPAYMENT_TRANSACTION_TYPES, InvestmentEventType, InvestmentSummary
from banksim.infrastructure.database.models import BankState
from banksim.infrastructure.database.repositories import (
    ClientRepository,
    InvestmentEventRepository,
    TransactionRepository,
)
from banksim.infrastructure.observability.metrics import investment_event_counter
from banksim.services.simulation import SimulationService
from banksim.utils.clock import Clock
from banksim.utils.money import round_money

HISTORY_LIMIT = 50


class InvestmentService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.simulation = SimulationService(db, clock, config)
        self.clock = self.simulation.clock
        self.settings = self.simulation.settings
        self.events = InvestmentEventRepository(db)
        self.clients = ClientRepository(db)
        self.transactions = TransactionRepository(db)

    def invest(self, owner_id: str, slot_id: int, amount: Decimal) -> BankState:
        """Move liquid cash into the index"""
        self._validate_amount(amount)
        state = self.simulation.require_state(owner_id, slot_id)
        amount = round_money(amount)
        if amount > state.liquid_cash:
            raise InsufficientFundsError("Insufficient liquid cash.")

        state.liquid_cash = round_money(state.liquid_cash - amount)
        state.invested_amount = round_money(state.invested_amount + amount)
        self.simulation.states.save(state)
        self._record(state, InvestmentEventType.INVEST, amount)
        return state

    def divest(self, owner_id: str, slot_id: int, amount: Decimal) -> BankState:
        """Sell index holdings back into liquid cash"""
        self._validate_amount(amount)
        state = self.simulation.require_state(owner_id, slot_id)
        amount = round_money(amount)
        if amount > state.invested_amount:
            raise InsufficientFundsError("Cannot divest more than invested.")

        state.invested_amount = round_money(state.invested_amount - amount)
        state.liquid_cash = round_money(state.liquid_cash + amount)
        self.simulation.states.save(state)
        self._record(state, InvestmentEventType.DIVEST, amount)
        return state

    def investment_summary(self, owner_id: str, slot_id: int) -> InvestmentSummary:
        state = self.simulation.require_state(owner_id, slot_id)
        current_day = whole_day(state.game_day)

        client_ids = [c.id for c in self.clients.list_by_slot(owner_id, slot_id)]
        repayments = self.transactions.list_by_clients_and_types(client_ids, REPAYMENT_TRANSACTION_TYPES)
        total = round_money(sum((tx.amount for tx in repayments), Decimal("0")))
        today = round_money(sum((tx.amount for tx in repayments if tx.game_day == current_day), Decimal("0")))

        return InvestmentSummary(
            liquid_cash=state.liquid_cash,
            invested_amount=state.invested_amount,
            asset_price=state.asset_price,
            game_day=state.game_day,
            next_growth_day=state.next_growth_day,
            next_dividend_day=state.next_dividend_day,
            repayment_income_total=total,
            repayment_income_today=today,
            events=self.events.list_recent(owner_id, slot_id, limit=HISTORY_LIMIT),
            repayments=repayments[:HISTORY_LIMIT],
        )

    def _record(self, state: BankState, event_type: InvestmentEventType, amount: Decimal) -> None:
        self.events.record(
            owner_id=state.owner_id,
            slot_id=state.slot_id,
            type=event_type,
            asset=self.settings.asset_name,
            amount=amount,
            game_day=whole_day(state.game_day),
            created_at=self.clock.now(),
        )
        investment_event_counter.labels(type=event_type.value).inc()

    @staticmethod
    def _validate_amount(amount: Optional[Decimal]) -> None:
        if amount is None or amount <= 0:
            raise ValidationError("Invalid amount.")
