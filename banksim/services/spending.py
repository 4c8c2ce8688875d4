"""Discretionary spending generator and the category catalogue it draws from"""

from decimal import Decimal
from typing import List, Optional

from numpy.random import Generator, default_rng
from sqlalchemy.orm import Session

from banksim.config import Settings
from banksim.domain.calendar import whole_day
from banksim.domain.exceptions import ValidationError
from banksim.domain.models import CategoryProfile, TransactionType
from banksim.domain.spending import disposable_income, plan_category_spend
from banksim.infrastructure.database.models import Client, SpendingCategory, Transaction
from banksim.infrastructure.database.repositories import (
    ClientJobRepository,
    SpendingCategoryRepository,
    TransactionRepository,
)
from banksim.infrastructure.observability.logging import log_posting
from banksim.infrastructure.observability.metrics import spending_transaction_counter
from banksim.services.clients import ClientService
from banksim.services.obligations import MandatorySpendService
from banksim.utils.clock import Clock
from banksim.utils.money import ZERO, divide_money, round_money


class SpendingService:
    """Spends a client's disposable income across active categories, once per game day"""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
        rng: Optional[Generator] = None,
    ):
        self.db = db
        self.client_service = ClientService(db, clock, config)
        self.clock = self.client_service.clock
        self.settings = self.client_service.settings
        self.rng = rng if rng is not None else default_rng()
        self.categories = SpendingCategoryRepository(db)
        self.client_jobs = ClientJobRepository(db)
        self.transactions = TransactionRepository(db)
        self.mandatory = MandatorySpendService(db)

    def generate(self, owner_id: str, slot_id: int, client_id: int, game_day: Optional[int] = None) -> List[Transaction]:
        """Generate spending for a client; defaults to the slot's current whole day"""
        client, state = self.client_service.load(owner_id, slot_id, client_id, for_update=True)
        day = whole_day(state.game_day) if game_day is None else game_day
        return self.generate_for_client(client, day)

    def generate_for_client(self, client: Client, game_day: int) -> List[Transaction]:
        """
        Post the day's discretionary spending for an already-locked client.

        Returns an empty list if SPENDING was already posted for this day. The
        existence check runs in the caller's transaction, against a locked and
        versioned client row, so a racing duplicate cannot spend twice.

        Categories run in id order against one running checking balance, so
        earlier categories can leave less for later ones.
        """
        if self.transactions.exists_for_day(client.id, TransactionType.SPENDING, game_day):
            return []

        income = self._resolve_monthly_income(client)
        mandatory = self.mandatory.recalc(client)
        disposable = disposable_income(income, mandatory)
        if client.monthly_discretionary_target != disposable:
            client.monthly_discretionary_target = disposable

        events = max(1, self.settings.spending_events_per_month)
        running_balance = client.checking_balance
        posted = []
        now = self.clock.now()

        for category in self.categories.list_active():
            amounts = plan_category_spend(disposable, running_balance, self._profile(category), self.rng, events)
            for amount in amounts:
                running_balance = round_money(running_balance - amount)
                posted.append(
                    self.transactions.append(
                        client=client,
                        type=TransactionType.SPENDING,
                        amount=amount,
                        game_day=game_day,
                        created_at=now,
                    )
                )

        if posted:
            client.checking_balance = running_balance
            spending_transaction_counter.inc(len(posted))
            log_posting(
                "spending",
                client.id,
                game_day,
                sum((tx.amount for tx in posted), ZERO),
                transactions=len(posted),
                disposable=str(disposable),
            )
        self.client_service.clients.save(client)
        return posted

    def _resolve_monthly_income(self, client: Client) -> Decimal:
        """Cached monthly income, filled from primary job salaries when unset"""
        if client.monthly_income_cache is not None and client.monthly_income_cache > 0:
            return client.monthly_income_cache
        income = sum(
            (
                divide_money(cj.job.annual_salary, self.settings.days_per_year)
                for cj in self.client_jobs.list_by_client(client.id)
                if cj.primary
            ),
            ZERO,
        )
        client.monthly_income_cache = round_money(income)
        return client.monthly_income_cache

    @staticmethod
    def _profile(category: SpendingCategory) -> CategoryProfile:
        return CategoryProfile(
            name=category.name,
            min_pct=category.min_pct_income,
            max_pct=category.max_pct_income,
            variability=category.variability or Decimal("0"),
        )


class SpendingCategoryService:
    def __init__(self, db: Session):
        self.db = db
        self.categories = SpendingCategoryRepository(db)

    def create_category(
        self,
        name: str,
        min_pct_income: Decimal,
        max_pct_income: Decimal,
        variability: Decimal = Decimal("0"),
        default_active: bool = True,
        mandatory: bool = False,
    ) -> SpendingCategory:
        if not name or not name.strip():
            raise ValidationError("Category name required")
        if min_pct_income is None or max_pct_income is None:
            raise ValidationError("Category percentages required")
        if not (0 <= min_pct_income <= max_pct_income <= 1):
            raise ValidationError("Percentages must satisfy 0 <= min <= max <= 1")
        if variability is None or variability < 0:
            raise ValidationError("Variability cannot be negative")
        if self.categories.get_by_name(name.strip()) is not None:
            raise ValidationError(f"Category {name.strip()} already exists")

        return self.categories.save(
            SpendingCategory(
                name=name.strip(),
                min_pct_income=min_pct_income,
                max_pct_income=max_pct_income,
                variability=variability,
                mandatory=mandatory,
                default_active=default_active,
            )
        )

    def list_categories(self) -> List[SpendingCategory]:
        return self.categories.list_all()
