"""Game clock engine - lazy, catch-up advancement of a slot's bank state"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from banksim.config import Settings, settings as default_settings
from banksim.domain.calendar import (
    annual_yield,
    crossed_days,
    elapsed_ms,
    first_year_end,
    game_day_at,
    is_year_end,
    monthly_growth,
    whole_day,
)
from banksim.domain.exceptions import NotFoundError, ValidationError
from banksim.domain.models import InvestmentEventType, SlotSummary
from banksim.infrastructure.database.models import BankState
from banksim.infrastructure.database.repositories import (
    BankStateRepository,
    ClientRepository,
    InvestmentEventRepository,
    PropertyRepository,
)
from banksim.infrastructure.observability.logging import log_catch_up
from banksim.infrastructure.observability.metrics import game_days_advanced_counter, investment_event_counter
from banksim.utils.clock import Clock, SystemClock, ensure_utc
from banksim.utils.money import ZERO, round_money


class SimulationService:
    """Owns the per-slot game clock; every read of a slot goes through advance()"""

    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.settings = config or default_settings
        self.states = BankStateRepository(db)
        self.clients = ClientRepository(db)
        self.events = InvestmentEventRepository(db)
        self.properties = PropertyRepository(db)

    def start_slot(self, owner_id: str, slot_id: int) -> BankState:
        """Create the slot's bank state, or wipe and reset an existing one"""
        state = self.states.get(owner_id, slot_id, for_update=True) or BankState(owner_id=owner_id, slot_id=slot_id)
        clients = list(state.clients)
        self.properties.release_owned_by([c.id for c in clients])
        # delete-orphan takes each client's jobs, living, loans, mortgages and ledger with it
        state.clients.clear()
        self.events.delete_by_slot(owner_id, slot_id)
        state.liquid_cash = round_money(self.settings.starting_cash)
        state.invested_amount = ZERO
        state.asset_price = round_money(self.settings.asset_initial_price)
        state.mortgage_rate = Decimal("0.0000")
        state.game_ms = 0
        state.game_day = 0.0
        state.last_observed_at = self.clock.now()
        state.next_dividend_day = first_year_end(self.settings.days_per_year)
        state.next_growth_day = first_year_end(self.settings.days_per_year)
        self.states.save(state)

        logging.info(
            "Slot started",
            extra={"owner_id": owner_id, "slot_id": slot_id, "step": "slot_start", "clients_removed": len(clients)},
        )
        return state

    def get_and_advance(self, owner_id: str, slot_id: int) -> Optional[BankState]:
        state = self.states.get(owner_id, slot_id, for_update=True)
        if state is None:
            return None
        return self.advance(state)

    def require_state(self, owner_id: str, slot_id: int) -> BankState:
        """Advanced bank state, or NotFoundError when the slot was never started"""
        state = self.get_and_advance(owner_id, slot_id)
        if state is None:
            raise NotFoundError(
                f"Bank state not found for slot {slot_id}. Start the slot before using it."
            )
        return state

    def current_day(self, owner_id: str, slot_id: int) -> int:
        return whole_day(self.require_state(owner_id, slot_id).game_day)

    def list_and_advance(self, owner_id: str, slot_ids: Sequence[int]) -> List[SlotSummary]:
        summaries = []
        for slot_id in slot_ids:
            state = self.get_and_advance(owner_id, slot_id)
            client_count = self.clients.count_by_slot(owner_id, slot_id)
            if state is None:
                summaries.append(
                    SlotSummary(
                        slot_id=slot_id,
                        client_count=client_count,
                        game_day=0.0,
                        liquid_cash=ZERO,
                        has_data=client_count > 0,
                    )
                )
                continue
            summaries.append(
                SlotSummary(
                    slot_id=slot_id,
                    client_count=client_count,
                    game_day=state.game_day,
                    liquid_cash=state.liquid_cash,
                    has_data=state.game_day > 0 or client_count > 0,
                )
            )
        return summaries

    def update_mortgage_rate(self, owner_id: str, slot_id: int, mortgage_rate: Decimal) -> BankState:
        if mortgage_rate is None or mortgage_rate < 0:
            raise ValidationError("Invalid mortgage rate.")
        state = self.require_state(owner_id, slot_id)
        state.mortgage_rate = mortgage_rate
        return self.states.save(state)

    def advance(self, state: BankState) -> BankState:
        """
        Move the slot's game clock up to now and fire every crossed day boundary.

        For each whole day in (floor(old), floor(new)], in order:
        1. Liquid cash grows by the monthly rate
        2. On the last day of a year: invested amount grows, dividend is paid
           into liquid cash, and both next-event days move one year ahead
        3. Every client's daily withdrawn counter resets

        Days are derived only from the persisted integer cursor (game_ms,
        last_observed_at), so calling this twice without time passing is a
        no-op, and a long gap replays every missed day exactly once no matter
        how it is split into observations.
        """
        now = self.clock.now()
        last_observed = ensure_utc(state.last_observed_at)
        if last_observed is None:
            state.last_observed_at = now
            return state

        elapsed = elapsed_ms(last_observed, now)
        if elapsed <= 0:
            return state

        ms_per_day = self.settings.ms_per_game_day
        previous_ms = state.game_ms or 0
        new_ms = previous_ms + elapsed
        previous_day = game_day_at(previous_ms, ms_per_day)
        state.game_ms = new_ms
        state.game_day = game_day_at(new_ms, ms_per_day)
        # only whole milliseconds are consumed; the remainder carries over
        state.last_observed_at = last_observed + timedelta(milliseconds=elapsed)

        days = crossed_days(previous_ms, new_ms, ms_per_day)
        if days:
            clients = self.clients.list_by_slot(state.owner_id, state.slot_id, for_update=True)
            for day in days:
                self._apply_cash_growth(state)
                if is_year_end(day, self.settings.days_per_year):
                    self._apply_asset_growth(state, day)
                    self._apply_dividend(state, day)
                for client in clients:
                    client.daily_withdrawn = ZERO

            game_days_advanced_counter.inc(len(days))
            log_catch_up(state.owner_id, state.slot_id, previous_day, state.game_day, len(days))

        return self.states.save(state)

    def _apply_cash_growth(self, state: BankState) -> None:
        growth = monthly_growth(state.liquid_cash, self.settings.liquid_cash_monthly_growth)
        if growth > 0:
            state.liquid_cash = round_money(state.liquid_cash + growth)

    def _apply_asset_growth(self, state: BankState, day: int) -> None:
        growth = annual_yield(state.invested_amount, self.settings.asset_annual_growth)
        if growth > 0:
            state.invested_amount = round_money(state.invested_amount + growth)
            self._record_event(state, InvestmentEventType.GROWTH, growth, day)
        state.next_growth_day = day + self.settings.days_per_year

    def _apply_dividend(self, state: BankState, day: int) -> None:
        dividend = annual_yield(state.invested_amount, self.settings.asset_annual_dividend)
        if dividend > 0:
            state.liquid_cash = round_money(state.liquid_cash + dividend)
            self._record_event(state, InvestmentEventType.DIVIDEND, dividend, day)
        state.next_dividend_day = day + self.settings.days_per_year

    def _record_event(self, state: BankState, event_type: InvestmentEventType, amount: Decimal, day: int) -> None:
        self.events.record(
            owner_id=state.owner_id,
            slot_id=state.slot_id,
            type=event_type,
            asset=self.settings.asset_name,
            amount=amount,
            game_day=day,
            created_at=self.clock.now(),
        )
        investment_event_counter.labels(type=event_type.value).inc()
