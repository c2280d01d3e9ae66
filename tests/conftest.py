"""Shared pytest fixtures for ledgerbook tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from ledgerbook.config import LedgerConfig
from ledgerbook.database.factories import create_sqlite_database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.entities import AccountType, Movement
from ledgerbook.domain.journal import JournalEntryService
from ledgerbook.domain.ledger import LedgerService
from ledgerbook.domain.reconciliation import ReconciliationService
from ledgerbook.domain.statements import StatementService


# (code, name, type, parent code)
SAMPLE_CHART = [
    ("10", "Cash and equivalents", AccountType.ASSET, None),
    ("1011", "Bank - checking", AccountType.ASSET, "10"),
    ("1012", "Bank - savings", AccountType.ASSET, "10"),
    ("12", "Trade receivables", AccountType.ASSET, None),
    ("1212", "Invoices receivable", AccountType.ASSET, "12"),
    ("33", "Property and equipment", AccountType.ASSET, None),
    ("3361", "Computer equipment", AccountType.ASSET, "33"),
    ("40", "Taxes payable", AccountType.LIABILITY, None),
    ("40111", "Sales tax payable", AccountType.LIABILITY, "40"),
    ("45", "Borrowings", AccountType.LIABILITY, None),
    ("4511", "Bank loans", AccountType.LIABILITY, "45"),
    ("50", "Capital", AccountType.EQUITY, None),
    ("5011", "Share capital", AccountType.EQUITY, "50"),
    ("63", "Services", AccountType.EXPENSE, None),
    ("6311", "Transport", AccountType.EXPENSE, "63"),
    ("69", "Cost of sales", AccountType.EXPENSE, None),
    ("6911", "Cost of goods sold", AccountType.EXPENSE, "69"),
    ("70", "Sales", AccountType.INCOME, None),
    ("7011", "Sales of goods", AccountType.INCOME, "70"),
    ("77", "Financial income", AccountType.INCOME, None),
    ("7721", "Interest earned", AccountType.INCOME, "77"),
]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def config():
    """Default engine configuration."""
    return LedgerConfig()


@pytest.fixture
def account_service(temp_db, config):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, config)


@pytest.fixture
def journal_service(temp_db, config):
    """Create a JournalEntryService with a temporary database."""
    return JournalEntryService(temp_db, config)


@pytest.fixture
def ledger_service(temp_db, config):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db, config)


@pytest.fixture
def statement_service(temp_db, config):
    """Create a StatementService with a temporary database."""
    return StatementService(temp_db, config)


@pytest.fixture
def reconciliation_service(temp_db, config):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db, config)


@pytest.fixture
def chart(account_service):
    """Create the sample chart of accounts; returns code -> account ID."""
    ids = {}
    for code, name, account_type, parent_code in SAMPLE_CHART:
        ids[code] = account_service.create_account(
            code=code, name=name, account_type=account_type, parent_code=parent_code
        )
    return ids


@pytest.fixture
def post_entry(journal_service, chart):
    """Return a helper that posts an entry from (code, debit, credit) lines."""
    counter = {"n": 0}

    def post(when, lines, description="Test entry", number=None, confirm=True, reference=None):
        counter["n"] += 1
        movements = [
            Movement(
                id=None,
                account_id=chart[code],
                debit=Decimal(str(debit)),
                credit=Decimal(str(credit)),
            )
            for code, debit, credit in lines
        ]
        return journal_service.create_entry(
            number=number or f"E-{counter['n']:04d}",
            date=when,
            description=description,
            lines=movements,
            reference=reference,
            confirm=confirm,
        )

    return post


@pytest.fixture
def march_sale(post_entry):
    """Sale of 1000 plus 180 tax collected into the checking account on 2024-03-15."""
    return post_entry(
        date(2024, 3, 15),
        [("1011", 1180, 0), ("7011", 0, 1000), ("40111", 0, 180)],
        description="Invoice F001-123",
        number="A-0001",
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
