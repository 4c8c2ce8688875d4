"""Data access layer - record store and ledger for simulation entities"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from banksim.domain.models import (
    InvestmentEventType,
    LivingType,
    MortgageStatus,
    PropertyStatus,
    TransactionType,
)
from banksim.infrastructure.database.models import (
    BankState,
    BankruptcyApplication,
    Client,
    ClientJob,
    ClientLiving,
    InvestmentEvent,
    Job,
    Loan,
    Mortgage,
    Property,
    Rental,
    SpendingCategory,
    Transaction,
)
from banksim.utils.money import round_money


class _Repository:
    def __init__(self, db: Session):
        self.db = db

    def save(self, record):
        """Stage changes and flush without committing (caller owns the transaction)"""
        self.db.add(record)
        self.db.flush()
        return record

    def delete(self, record) -> None:
        self.db.delete(record)
        self.db.flush()


class BankStateRepository(_Repository):
    """Repository for per-slot bank state"""

    def get(self, owner_id: str, slot_id: int, for_update: bool = False) -> Optional[BankState]:
        """Fetch the slot's bank state, optionally locking the row for a catch-up"""
        query = self.db.query(BankState).filter(BankState.owner_id == owner_id, BankState.slot_id == slot_id)
        if for_update:
            query = query.with_for_update()
        return query.first()


class ClientRepository(_Repository):
    """Repository for clients"""

    def get(self, client_id: int, owner_id: str, slot_id: int, for_update: bool = False) -> Optional[Client]:
        query = self.db.query(Client).filter(
            Client.id == client_id,
            Client.owner_id == owner_id,
            Client.slot_id == slot_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_by_slot(self, owner_id: str, slot_id: int, for_update: bool = False) -> List[Client]:
        query = (
            self.db.query(Client)
            .filter(Client.owner_id == owner_id, Client.slot_id == slot_id)
            .order_by(Client.id.asc())
        )
        if for_update:
            query = query.with_for_update()
        return query.all()

    def count_by_slot(self, owner_id: str, slot_id: int) -> int:
        return self.db.query(Client).filter(Client.owner_id == owner_id, Client.slot_id == slot_id).count()


class JobRepository(_Repository):
    """Repository for the job catalogue"""

    def create(self, title: str, employer: str, annual_salary: Decimal, pay_cycle_days: int = 30) -> Job:
        return self.save(
            Job(
                title=title,
                employer=employer,
                annual_salary=round_money(annual_salary),
                pay_cycle_days=pay_cycle_days,
            )
        )

    def get(self, job_id: int) -> Optional[Job]:
        return self.db.query(Job).filter(Job.id == job_id).first()


class ClientJobRepository(_Repository):
    """Repository for client job assignments (payday cursors)"""

    def list_by_client(self, client_id: int) -> List[ClientJob]:
        return self.db.query(ClientJob).filter(ClientJob.client_id == client_id).order_by(ClientJob.id.asc()).all()

    def list_by_slot(self, owner_id: str, slot_id: int, for_update: bool = False) -> List[ClientJob]:
        query = (
            self.db.query(ClientJob)
            .join(Client, ClientJob.client_id == Client.id)
            .filter(Client.owner_id == owner_id, ClientJob.slot_id == slot_id)
            .order_by(ClientJob.id.asc())
        )
        if for_update:
            query = query.with_for_update()
        return query.all()


class RentalRepository(_Repository):
    """Repository for rental listings"""

    def create(self, name: str, monthly_rent: Decimal, bedrooms: Optional[int] = None, location: Optional[str] = None) -> Rental:
        return self.save(Rental(name=name, monthly_rent=round_money(monthly_rent), bedrooms=bedrooms, location=location))

    def get(self, rental_id: int) -> Optional[Rental]:
        return self.db.query(Rental).filter(Rental.id == rental_id).first()


class PropertyRepository(_Repository):
    """Repository for slot properties"""

    def create(self, slot_id: int, name: str, price: Decimal) -> Property:
        return self.save(Property(slot_id=slot_id, name=name, price=round_money(price), status=PropertyStatus.AVAILABLE))

    def get(self, property_id: int, slot_id: int) -> Optional[Property]:
        return self.db.query(Property).filter(Property.id == property_id, Property.slot_id == slot_id).first()

    def release_owned_by(self, client_ids: Sequence[int]) -> int:
        """Put properties owned by these clients back on the market"""
        if not client_ids:
            return 0
        released = (
            self.db.query(Property)
            .filter(Property.owner_client_id.in_(list(client_ids)))
            .update({Property.status: PropertyStatus.AVAILABLE, Property.owner_client_id: None}, synchronize_session="fetch")
        )
        self.db.flush()
        return released


class ClientLivingRepository(_Repository):
    """Repository for living arrangements (rent cursors)"""

    def get_by_client(self, client_id: int) -> Optional[ClientLiving]:
        return self.db.query(ClientLiving).filter(ClientLiving.client_id == client_id).first()

    def get_or_new(self, client: Client) -> ClientLiving:
        living = self.get_by_client(client.id)
        if living is None:
            living = ClientLiving(client=client, slot_id=client.slot_id, living_type=LivingType.NONE)
        return living

    def list_by_slot(self, owner_id: str, slot_id: int, for_update: bool = False) -> List[ClientLiving]:
        query = (
            self.db.query(ClientLiving)
            .join(Client, ClientLiving.client_id == Client.id)
            .filter(Client.owner_id == owner_id, ClientLiving.slot_id == slot_id)
            .order_by(ClientLiving.id.asc())
        )
        if for_update:
            query = query.with_for_update()
        return query.all()


class LoanRepository(_Repository):
    """Repository for personal loans"""

    def get(self, loan_id: int, owner_id: str, slot_id: int) -> Optional[Loan]:
        return (
            self.db.query(Loan)
            .filter(Loan.id == loan_id, Loan.owner_id == owner_id, Loan.slot_id == slot_id)
            .first()
        )

    def list_by_client(self, client_id: int) -> List[Loan]:
        return self.db.query(Loan).filter(Loan.client_id == client_id).order_by(Loan.id.asc()).all()

    def list_by_slot(self, owner_id: str, slot_id: int, for_update: bool = False) -> List[Loan]:
        query = self.db.query(Loan).filter(Loan.owner_id == owner_id, Loan.slot_id == slot_id).order_by(Loan.id.asc())
        if for_update:
            query = query.with_for_update()
        return query.all()


class MortgageRepository(_Repository):
    """Repository for mortgages"""

    def get(self, mortgage_id: int, owner_id: str, slot_id: int) -> Optional[Mortgage]:
        return (
            self.db.query(Mortgage)
            .filter(Mortgage.id == mortgage_id, Mortgage.owner_id == owner_id, Mortgage.slot_id == slot_id)
            .first()
        )

    def list_by_client(self, client_id: int) -> List[Mortgage]:
        return self.db.query(Mortgage).filter(Mortgage.client_id == client_id).order_by(Mortgage.id.asc()).all()

    def list_by_slot(
        self,
        owner_id: str,
        slot_id: int,
        status: Optional[MortgageStatus] = None,
        for_update: bool = False,
    ) -> List[Mortgage]:
        query = self.db.query(Mortgage).filter(Mortgage.owner_id == owner_id, Mortgage.slot_id == slot_id)
        if status is not None:
            query = query.filter(Mortgage.status == status)
        if for_update:
            query = query.with_for_update()
        return query.order_by(Mortgage.id.asc()).all()


class TransactionRepository(_Repository):
    """Append-only ledger of client money movements"""

    def append(
        self,
        client: Client,
        type: TransactionType,
        amount: Decimal,
        game_day: int,
        created_at: datetime,
    ) -> Transaction:
        """Record one transaction; amounts are rounded to cents"""
        return self.save(
            Transaction(
                client=client,
                type=type,
                amount=round_money(amount),
                game_day=int(game_day),
                created_at=created_at,
            )
        )

    def list_by_client(self, client_id: int) -> List[Transaction]:
        """Newest first"""
        return (
            self.db.query(Transaction)
            .filter(Transaction.client_id == client_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .all()
        )

    def exists_for_day(self, client_id: int, type: TransactionType, game_day: int) -> bool:
        return (
            self.db.query(Transaction.id)
            .filter(
                Transaction.client_id == client_id,
                Transaction.type == type,
                Transaction.game_day == game_day,
            )
            .first()
            is not None
        )

    def list_by_clients_and_types(
        self,
        client_ids: Sequence[int],
        types: Iterable[TransactionType],
    ) -> List[Transaction]:
        """Newest game day first, then newest creation"""
        if not client_ids:
            return []
        return (
            self.db.query(Transaction)
            .filter(Transaction.client_id.in_(list(client_ids)), Transaction.type.in_(list(types)))
            .order_by(Transaction.game_day.desc(), Transaction.created_at.desc(), Transaction.id.desc())
            .all()
        )

    def list_by_client_and_types_ordered(self, client_id: int, types: Iterable[TransactionType]) -> List[Transaction]:
        """Oldest first by game day, then creation time (ledger replay order)"""
        return (
            self.db.query(Transaction)
            .filter(Transaction.client_id == client_id, Transaction.type.in_(list(types)))
            .order_by(Transaction.game_day.asc(), Transaction.created_at.asc(), Transaction.id.asc())
            .all()
        )

    def cashflow_totals(
        self,
        client_id: int,
        game_day: int,
        income_types: Iterable[TransactionType],
    ) -> tuple[Decimal, Decimal]:
        """(income, spending) posted on one game day"""
        income_types = list(income_types)
        income, spending = (
            self.db.query(
                func.coalesce(func.sum(case((Transaction.type.in_(income_types), Transaction.amount), else_=0)), 0),
                func.coalesce(func.sum(case((Transaction.type.in_(income_types), 0), else_=Transaction.amount)), 0),
            )
            .filter(Transaction.client_id == client_id, Transaction.game_day == game_day)
            .one()
        )
        return round_money(income), round_money(spending)


class InvestmentEventRepository(_Repository):
    """Repository for investment events"""

    def record(
        self,
        owner_id: str,
        slot_id: int,
        type: InvestmentEventType,
        asset: str,
        amount: Decimal,
        game_day: int,
        created_at: datetime,
    ) -> InvestmentEvent:
        return self.save(
            InvestmentEvent(
                owner_id=owner_id,
                slot_id=slot_id,
                type=type,
                asset=asset,
                amount=round_money(amount),
                game_day=game_day,
                created_at=created_at,
            )
        )

    def list_recent(self, owner_id: str, slot_id: int, limit: int = 50) -> List[InvestmentEvent]:
        return (
            self.db.query(InvestmentEvent)
            .filter(InvestmentEvent.owner_id == owner_id, InvestmentEvent.slot_id == slot_id)
            .order_by(InvestmentEvent.game_day.desc(), InvestmentEvent.created_at.desc(), InvestmentEvent.id.desc())
            .limit(limit)
            .all()
        )

    def delete_by_slot(self, owner_id: str, slot_id: int) -> int:
        deleted = (
            self.db.query(InvestmentEvent)
            .filter(InvestmentEvent.owner_id == owner_id, InvestmentEvent.slot_id == slot_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted


class SpendingCategoryRepository(_Repository):
    """Repository for spending categories"""

    def list_all(self) -> List[SpendingCategory]:
        return self.db.query(SpendingCategory).order_by(SpendingCategory.id.asc()).all()

    def list_active(self) -> List[SpendingCategory]:
        return (
            self.db.query(SpendingCategory)
            .filter(SpendingCategory.default_active.is_(True))
            .order_by(SpendingCategory.id.asc())
            .all()
        )

    def get_by_name(self, name: str) -> Optional[SpendingCategory]:
        return self.db.query(SpendingCategory).filter(SpendingCategory.name == name).first()


class BankruptcyRepository(_Repository):
    """Repository for bankruptcy applications"""

    def get(self, application_id: int, owner_id: str) -> Optional[BankruptcyApplication]:
        return (
            self.db.query(BankruptcyApplication)
            .join(Client, BankruptcyApplication.client_id == Client.id)
            .filter(BankruptcyApplication.id == application_id, Client.owner_id == owner_id)
            .first()
        )

    def list_by_slot(self, owner_id: str, slot_id: int, for_update: bool = False) -> List[BankruptcyApplication]:
        query = (
            self.db.query(BankruptcyApplication)
            .join(Client, BankruptcyApplication.client_id == Client.id)
            .filter(Client.owner_id == owner_id, BankruptcyApplication.slot_id == slot_id)
            .order_by(BankruptcyApplication.id.asc())
        )
        if for_update:
            query = query.with_for_update()
        return query.all()
