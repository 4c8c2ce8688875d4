"""Client accounts and their ledger postings"""

import logging
import secrets
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from banksim.config import Settings, settings as default_settings
from banksim.domain.calendar import whole_day
from banksim.domain.exceptions import (
    InsufficientFundsError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from banksim.domain.models import INCOME_TRANSACTION_TYPES, Cashflow, TransactionType
from banksim.infrastructure.database.models import BankState, Client, Transaction
from banksim.infrastructure.database.repositories import ClientRepository, TransactionRepository
from banksim.services.simulation import SimulationService
from banksim.utils.clock import Clock
from banksim.utils.money import ZERO, round_money


class ClientService:
    """Create clients and move money in and out of their checking/savings accounts"""

    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.simulation = SimulationService(db, clock, config)
        self.clock = self.simulation.clock
        self.settings = self.simulation.settings
        self.clients = ClientRepository(db)
        self.transactions = TransactionRepository(db)

    def create_client(self, owner_id: str, slot_id: int, name: Optional[str]) -> Client:
        if name is None or not name.strip():
            raise ValidationError("Please enter the client's name.")
        if len(name) > self.settings.client_name_max_length:
            raise ValidationError(
                f"Client name is too long (max {self.settings.client_name_max_length} characters)."
            )
        state = self.simulation.require_state(owner_id, slot_id)

        card_number, card_expiry, card_cvv = self._generate_debit_card()
        client = Client(
            bank_state=state,
            owner_id=owner_id,
            slot_id=slot_id,
            name=name.strip(),
            checking_balance=ZERO,
            savings_balance=ZERO,
            daily_withdrawn=ZERO,
            card_number=card_number,
            card_expiry=card_expiry,
            card_cvv=card_cvv,
            monthly_income_cache=ZERO,
            monthly_mandatory_cache=ZERO,
            monthly_discretionary_target=ZERO,
            employment_status="ACTIVE",
            bankrupt=False,
            missed_payment_streak=0,
            created_at=self.clock.now(),
        )
        self.clients.save(client)

        logging.info(
            "Client created",
            extra={"owner_id": owner_id, "slot_id": slot_id, "client_id": client.id, "step": "client_create"},
        )
        return client

    def list_clients(self, owner_id: str, slot_id: int) -> List[Client]:
        self.simulation.require_state(owner_id, slot_id)
        return self.clients.list_by_slot(owner_id, slot_id)

    def get_client(self, owner_id: str, slot_id: int, client_id: int, for_update: bool = False) -> Client:
        client, _ = self.load(owner_id, slot_id, client_id, for_update=for_update)
        return client

    def load(
        self,
        owner_id: str,
        slot_id: int,
        client_id: int,
        for_update: bool = False,
    ) -> Tuple[Client, BankState]:
        """Advance the slot clock, then fetch the client; NotFoundError for either"""
        state = self.simulation.require_state(owner_id, slot_id)
        client = self.clients.get(client_id, owner_id, slot_id, for_update=for_update)
        if client is None:
            raise NotFoundError("Client not found")
        return client, state

    def deposit(self, owner_id: str, slot_id: int, client_id: int, amount: Decimal) -> Transaction:
        return self.credit_account(owner_id, slot_id, client_id, amount, TransactionType.DEPOSIT, enforce_upper_limit=True)

    def fund_mortgage_down_payment(self, owner_id: str, slot_id: int, client_id: int, amount: Decimal) -> Transaction:
        return self.credit_account(owner_id, slot_id, client_id, amount, TransactionType.MORTGAGE_DOWN_PAYMENT_FUNDING)

    def credit_account(
        self,
        owner_id: str,
        slot_id: int,
        client_id: int,
        amount: Decimal,
        type: TransactionType,
        enforce_upper_limit: bool = False,
    ) -> Transaction:
        """Add money to checking and record it under the given transaction type"""
        self._validate_amount(amount, enforce_upper_limit)
        client, state = self.load(owner_id, slot_id, client_id, for_update=True)
        return self.post_credit(client, state, amount, type)

    def withdraw(self, owner_id: str, slot_id: int, client_id: int, amount: Decimal) -> Transaction:
        self._validate_amount(amount)
        client, state = self.load(owner_id, slot_id, client_id, for_update=True)
        amount = round_money(amount)

        if amount > client.checking_balance:
            raise InsufficientFundsError("Insufficient funds.")
        remaining_limit = round_money(self.settings.daily_withdrawal_limit - client.daily_withdrawn)
        if amount > remaining_limit:
            raise LimitExceededError(f"Exceeds daily limit. You can withdraw ${remaining_limit} more today.")

        client.daily_withdrawn = round_money(client.daily_withdrawn + amount)
        return self.post_debit(client, state, amount, TransactionType.WITHDRAWAL)

    def savings_deposit(self, owner_id: str, slot_id: int, client_id: int, amount: Decimal) -> Transaction:
        """Move money from checking into savings"""
        self._validate_amount(amount)
        client, state = self.load(owner_id, slot_id, client_id, for_update=True)
        amount = round_money(amount)
        if amount > client.checking_balance:
            raise InsufficientFundsError("Insufficient checking balance.")

        client.checking_balance = round_money(client.checking_balance - amount)
        client.savings_balance = round_money(client.savings_balance + amount)
        self.clients.save(client)
        return self._record(client, state, TransactionType.SAVINGS_DEPOSIT, amount)

    def savings_withdraw(self, owner_id: str, slot_id: int, client_id: int, amount: Decimal) -> Transaction:
        """Move money from savings back into checking"""
        self._validate_amount(amount)
        client, state = self.load(owner_id, slot_id, client_id, for_update=True)
        amount = round_money(amount)
        if amount > client.savings_balance:
            raise InsufficientFundsError("Insufficient savings balance.")

        client.savings_balance = round_money(client.savings_balance - amount)
        client.checking_balance = round_money(client.checking_balance + amount)
        self.clients.save(client)
        return self._record(client, state, TransactionType.SAVINGS_WITHDRAWAL, amount)

    def post_credit(self, client: Client, state: BankState, amount: Decimal, type: TransactionType) -> Transaction:
        """Credit an already-loaded client (caller has validated the amount)"""
        amount = round_money(amount)
        client.checking_balance = round_money(client.checking_balance + amount)
        self.clients.save(client)
        return self._record(client, state, type, amount)

    def post_debit(self, client: Client, state: BankState, amount: Decimal, type: TransactionType) -> Transaction:
        """Debit an already-loaded client (caller has checked the balance)"""
        amount = round_money(amount)
        client.checking_balance = round_money(client.checking_balance - amount)
        self.clients.save(client)
        return self._record(client, state, type, amount)

    def list_transactions(self, owner_id: str, slot_id: int, client_id: int) -> List[Transaction]:
        client = self.get_client(owner_id, slot_id, client_id)
        return self.transactions.list_by_client(client.id)

    def monthly_cashflow(self, owner_id: str, slot_id: int, client_id: int, year: int, month: int) -> Cashflow:
        """
        Income vs spending for one game month.

        One game day is one month, so the month maps to a single game day:
        (year - 1) * days_per_year + (month - 1).
        """
        if year < 1:
            raise ValidationError("Year must be >= 1.")
        if month < 1 or month > self.settings.days_per_year:
            raise ValidationError(f"Month must be between 1 and {self.settings.days_per_year}.")

        client = self.get_client(owner_id, slot_id, client_id)
        game_month = (year - 1) * self.settings.days_per_year + (month - 1)
        income, spending = self.transactions.cashflow_totals(client.id, game_month, INCOME_TRANSACTION_TYPES)

        spending_vs_income_pct = float(spending / income * 100) if income > 0 else 0.0
        return Cashflow(
            game_month=game_month,
            income=income,
            spending=spending,
            net=round_money(income - spending),
            spending_vs_income_pct=spending_vs_income_pct,
        )

    def _record(self, client: Client, state: BankState, type: TransactionType, amount: Decimal) -> Transaction:
        return self.transactions.append(
            client=client,
            type=type,
            amount=amount,
            game_day=whole_day(state.game_day),
            created_at=self.clock.now(),
        )

    def _validate_amount(self, amount: Optional[Decimal], enforce_upper_limit: bool = False) -> None:
        if amount is None or amount <= 0:
            raise ValidationError("Invalid amount.")
        if enforce_upper_limit and amount > self.settings.max_deposit_amount:
            raise ValidationError(
                f"Invalid deposit amount (must be > 0 and <= {self.settings.max_deposit_amount:,.0f})."
            )

    def _generate_debit_card(self) -> Tuple[str, str, str]:
        digits = "".join(str(secrets.randbelow(10)) for _ in range(16))
        number = " ".join(digits[i:i + 4] for i in range(0, 16, 4))
        expiry_month = secrets.randbelow(12) + 1
        expiry_year = self.clock.now().year + secrets.randbelow(5) + 3
        expiry = f"{expiry_month:02d}/{expiry_year % 100:02d}"
        cvv = str(100 + secrets.randbelow(900))
        return number, expiry, cvv
