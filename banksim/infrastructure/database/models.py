"""SQLAlchemy ORM models - the record store for the simulation"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from banksim.domain.models import (
    BankruptcyStatus,
    InvestmentEventType,
    LivingType,
    LoanStatus,
    MortgageStatus,
    PropertyStatus,
    TransactionType,
)

Base = declarative_base()

Money = Numeric(14, 2)


def _enum(enum_cls):
    return Enum(enum_cls, native_enum=False, length=40, validate_strings=True)


class BankState(Base):
    """One simulated bank per (owner, slot); owns the game clock cursor"""

    __tablename__ = "bank_state"
    __table_args__ = (UniqueConstraint("owner_id", "slot_id", name="uq_bank_state_owner_slot"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Text, nullable=False, index=True)
    slot_id = Column(Integer, nullable=False)
    liquid_cash = Column(Money, nullable=False)
    invested_amount = Column(Money, nullable=False)
    asset_price = Column(Money, nullable=False)
    mortgage_rate = Column(Numeric(8, 4), nullable=False, default=0)
    game_day = Column(Float, nullable=False, default=0.0)
    game_ms = Column(BigInteger, nullable=False, default=0)
    last_observed_at = Column(DateTime(timezone=True), nullable=True)
    next_dividend_day = Column(Integer, nullable=False)
    next_growth_day = Column(Integer, nullable=False)
    version = Column(Integer, nullable=False)

    clients = relationship("Client", back_populates="bank_state", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}


class Client(Base):
    """Bank customer inside one slot"""

    __tablename__ = "client"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bank_state_id = Column(Integer, ForeignKey("bank_state.id", ondelete="CASCADE"), nullable=False)
    owner_id = Column(Text, nullable=False, index=True)
    slot_id = Column(Integer, nullable=False, index=True)
    name = Column(Text, nullable=False)
    checking_balance = Column(Money, nullable=False)
    savings_balance = Column(Money, nullable=False)
    daily_withdrawn = Column(Money, nullable=False)
    card_number = Column(Text, nullable=True)
    card_expiry = Column(Text, nullable=True)
    card_cvv = Column(Text, nullable=True)
    monthly_income_cache = Column(Money, nullable=False)
    monthly_mandatory_cache = Column(Money, nullable=False)
    monthly_discretionary_target = Column(Money, nullable=False)
    employment_status = Column(Text, nullable=False, default="ACTIVE")
    bankrupt = Column(Boolean, nullable=False, default=False)
    bankrupt_until = Column(Float, nullable=True)
    purchasing_block_reason = Column(Text, nullable=True)
    missed_payment_streak = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version = Column(Integer, nullable=False)

    bank_state = relationship("BankState", back_populates="clients")
    transactions = relationship("Transaction", back_populates="client", cascade="all, delete-orphan")
    jobs = relationship("ClientJob", back_populates="client", cascade="all, delete-orphan")
    living = relationship("ClientLiving", back_populates="client", uselist=False, cascade="all, delete-orphan")
    loans = relationship("Loan", back_populates="client", cascade="all, delete-orphan")
    mortgages = relationship("Mortgage", back_populates="client", cascade="all, delete-orphan")
    bankruptcies = relationship("BankruptcyApplication", back_populates="client", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}


class Job(Base):
    """Job catalogue entry"""

    __tablename__ = "job"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    employer = Column(Text, nullable=False)
    annual_salary = Column(Money, nullable=False)
    pay_cycle_days = Column(Integer, nullable=False, default=30)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ClientJob(Base):
    """Job held by a client, with its own payday cursor"""

    __tablename__ = "client_job"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("client.id", ondelete="CASCADE"), nullable=False)
    slot_id = Column(Integer, nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("job.id"), nullable=False)
    next_payday = Column(Float, nullable=True)
    primary = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version = Column(Integer, nullable=False)

    client = relationship("Client", back_populates="jobs")
    job = relationship("Job")

    __mapper_args__ = {"version_id_col": version}


class Rental(Base):
    """Rental listing a client can live in"""

    __tablename__ = "rental"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    monthly_rent = Column(Money, nullable=False)
    bedrooms = Column(Integer, nullable=True)
    location = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Property(Base):
    """Property for sale within a slot; owned once its mortgage is accepted"""

    __tablename__ = "property"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_id = Column(Integer, nullable=False, index=True)
    name = Column(Text, nullable=False)
    price = Column(Money, nullable=False)
    status = Column(_enum(PropertyStatus), nullable=False, default=PropertyStatus.AVAILABLE)
    owner_client_id = Column(Integer, ForeignKey("client.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    owner_client = relationship("Client")


class ClientLiving(Base):
    """Where a client lives; rental living carries the rent cursor"""

    __tablename__ = "client_living"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer,
        ForeignKey("client.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    slot_id = Column(Integer, nullable=False, index=True)
    living_type = Column(_enum(LivingType), nullable=False, default=LivingType.NONE)
    rental_id = Column(Integer, ForeignKey("rental.id"), nullable=True)
    property_id = Column(Integer, ForeignKey("property.id"), nullable=True)
    monthly_rent_cache = Column(Money, nullable=True)
    next_rent_day = Column(Integer, nullable=True)
    delinquent = Column(Boolean, nullable=False, default=False)
    start_date = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    client = relationship("Client", back_populates="living")
    rental = relationship("Rental")
    property = relationship("Property")

    __mapper_args__ = {"version_id_col": version}


class Loan(Base):
    """Personal loan"""

    __tablename__ = "loan"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Text, nullable=False, index=True)
    slot_id = Column(Integer, nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("client.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Money, nullable=False)
    term_years = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(8, 4), nullable=False, default=0)
    status = Column(_enum(LoanStatus), nullable=False, default=LoanStatus.PENDING)
    monthly_payment = Column(Money, nullable=True)
    next_payment_day = Column(Integer, nullable=True)
    total_repaid = Column(Money, nullable=False, default=0)
    missed_payments = Column(Integer, nullable=False, default=0)
    last_payment_status = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    client = relationship("Client", back_populates="loans")


class Mortgage(Base):
    """Mortgage on a slot property"""

    __tablename__ = "mortgage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Text, nullable=False, index=True)
    slot_id = Column(Integer, nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("client.id", ondelete="CASCADE"), nullable=False)
    property_id = Column(Integer, ForeignKey("property.id"), nullable=True)
    property_price = Column(Money, nullable=False)
    down_payment = Column(Money, nullable=False)
    loan_amount = Column(Money, nullable=False)
    term_years = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(8, 4), nullable=False, default=0)
    status = Column(_enum(MortgageStatus), nullable=False, default=MortgageStatus.PENDING)
    monthly_payment = Column(Money, nullable=True)
    start_payment_day = Column(Integer, nullable=True)
    next_payment_day = Column(Integer, nullable=True)
    total_paid = Column(Money, nullable=False, default=0)
    payments_made = Column(Integer, nullable=False, default=0)
    missed_payments = Column(Integer, nullable=False, default=0)
    last_payment_status = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    client = relationship("Client", back_populates="mortgages")
    property = relationship("Property")


class Transaction(Base):
    """Immutable ledger entry"""

    __tablename__ = "ledger_transaction"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer,
        ForeignKey("client.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(_enum(TransactionType), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    game_day = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    client = relationship("Client", back_populates="transactions")


class InvestmentEvent(Base):
    """Invest/divest by the player, growth/dividend by the clock"""

    __tablename__ = "investment_event"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Text, nullable=False, index=True)
    slot_id = Column(Integer, nullable=False)
    type = Column(_enum(InvestmentEventType), nullable=False)
    asset = Column(Text, nullable=False)
    amount = Column(Money, nullable=False)
    game_day = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class SpendingCategory(Base):
    """Discretionary spending category, percentages of disposable income"""

    __tablename__ = "spending_category"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, unique=True)
    min_pct_income = Column(Numeric(6, 4), nullable=False)
    max_pct_income = Column(Numeric(6, 4), nullable=False)
    variability = Column(Numeric(6, 4), nullable=True)
    mandatory = Column(Boolean, nullable=False, default=False)
    default_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BankruptcyApplication(Base):
    """Bankruptcy filing and its discharge schedule"""

    __tablename__ = "bankruptcy_application"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_id = Column(Integer, nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("client.id", ondelete="CASCADE"), nullable=False)
    status = Column(_enum(BankruptcyStatus), nullable=False, default=BankruptcyStatus.PENDING)
    filed_day = Column(Integer, nullable=False, default=0)
    filed_at = Column(DateTime(timezone=True), nullable=False)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    discharge_at = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    client = relationship("Client", back_populates="bankruptcies")
