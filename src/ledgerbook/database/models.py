"""SQLAlchemy models for ledgerbook database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    Index,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

AMOUNT = Numeric(18, 2)


class Account(Base):
    """Chart-of-accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    level = Column(Integer, nullable=False, default=1)
    parent_code = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "code", name="uq_company_account_code"),)

    # Relationships
    movements = relationship("Movement", back_populates="account")


class JournalEntry(Base):
    """Journal entry header model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    company_id = Column(String, nullable=False, index=True)
    number = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False, default="")
    reference = Column(String, nullable=True)
    status = Column(String, nullable=False, default="DRAFT")
    # Bumped on every draft edit; confirmation only applies to the validated version
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "number", name="uq_company_entry_number"),
        Index("ix_entry_company_status_date", "company_id", "status", "date"),
    )

    # Relationships
    movements = relationship(
        "Movement",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="Movement.position",
    )


class Movement(Base):
    """Journal entry line model, also the book side of a reconciliation."""

    __tablename__ = "movements"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    debit = Column(AMOUNT, nullable=False, default=0)
    credit = Column(AMOUNT, nullable=False, default=0)
    description = Column(String, nullable=True)
    reconciled = Column(Boolean, default=False, nullable=False)
    bank_movement_id = Column(Integer, nullable=True)
    reconciled_at = Column(DateTime, nullable=True)

    # Relationships
    entry = relationship("JournalEntry", back_populates="movements")
    account = relationship("Account", back_populates="movements")


class BankMovement(Base):
    """Bank statement line model."""

    __tablename__ = "bank_movements"

    id = Column(Integer, primary_key=True)
    company_id = Column(String, nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    amount = Column(AMOUNT, nullable=False)
    direction = Column(String, nullable=False)
    description = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    reconciled = Column(Boolean, default=False, nullable=False)
    linked_movement_id = Column(Integer, nullable=True)
    reconciled_at = Column(DateTime, nullable=True)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on foreign key enforcement for SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
