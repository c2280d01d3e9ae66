"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from ledgerbook.domain import entities
from ledgerbook.domain.entities import BankDirection, EntryStatus, Movement
from ledgerbook.domain.errors import ConflictError


@pytest.fixture
def sample_entry(temp_db, chart):
    """A confirmed two-line entry stored directly through the database."""
    return temp_db.create_journal_entry(
        company_id="default",
        number="DB-1",
        date=date(2024, 3, 15),
        description="Direct insert",
        status=EntryStatus.CONFIRMED,
        movements=[
            Movement(id=None, account_id=chart["1011"], debit=Decimal("50"), position=1),
            Movement(id=None, account_id=chart["7011"], credit=Decimal("50"), position=2),
        ],
    )


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db):
        """Test that get_account returns a domain Account entity."""
        account_id = temp_db.create_account(
            company_id="default",
            code="10",
            name="Cash",
            account_type=entities.AccountType.ASSET,
            level=1,
        )

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.id == account_id
        assert account.type == entities.AccountType.ASSET
        assert account.active is True
        assert isinstance(account.created_at, datetime)

    def test_list_accounts_scoped_by_company(self, temp_db, chart):
        """Test that list_accounts only returns the company's accounts."""
        temp_db.create_account(
            company_id="acme", code="10", name="Cash", account_type="ASSET", level=1
        )

        accounts = temp_db.list_accounts("default")
        assert len(accounts) == len(chart)
        assert all(isinstance(acc, entities.Account) for acc in accounts)
        assert len(temp_db.list_accounts("acme")) == 1

    def test_get_journal_entry_returns_movements_in_order(self, temp_db, sample_entry, chart):
        """Test that entries come back with their ordered movements."""
        entry = temp_db.get_journal_entry(sample_entry)

        assert isinstance(entry, entities.JournalEntry)
        assert entry.status == EntryStatus.CONFIRMED
        assert [m.account_id for m in entry.movements] == [chart["1011"], chart["7011"]]
        assert all(m.entry_id == sample_entry for m in entry.movements)

    def test_get_missing_records_returns_none(self, temp_db):
        """Test lookups of unknown IDs return None."""
        assert temp_db.get_account(404) is None
        assert temp_db.get_journal_entry(404) is None
        assert temp_db.get_movement(404) is None
        assert temp_db.get_bank_movement(404) is None

    def test_transition_entry_status_is_conditional(self, temp_db, sample_entry):
        """Test a status transition only applies from the expected status."""
        assert temp_db.transition_entry_status(
            sample_entry, EntryStatus.DRAFT, EntryStatus.CONFIRMED
        ) is False
        assert temp_db.transition_entry_status(
            sample_entry, EntryStatus.CONFIRMED, EntryStatus.VOID
        ) is True
        assert temp_db.get_journal_entry(sample_entry).status == EntryStatus.VOID

    def test_delete_draft_entry_refuses_confirmed(self, temp_db, sample_entry):
        """Test only drafts can be deleted."""
        assert temp_db.delete_draft_entry(sample_entry) is False
        assert temp_db.get_journal_entry(sample_entry) is not None

    def test_update_draft_entry_refuses_confirmed(self, temp_db, sample_entry):
        """Test only drafts can be updated."""
        assert temp_db.update_draft_entry(sample_entry, description="Changed") is False
        assert temp_db.get_journal_entry(sample_entry).description == "Direct insert"

    def test_list_confirmed_entries_by_account(self, temp_db, sample_entry, chart):
        """Test filtering confirmed entries by a touched account."""
        assert [e.id for e in temp_db.list_confirmed_entries("default", account_id=chart["1011"])] == [
            sample_entry
        ]
        assert temp_db.list_confirmed_entries("default", account_id=chart["1012"]) == []

    def test_link_and_unlink_movements(self, temp_db, sample_entry, chart):
        """Test linking is all-or-nothing and unlinking needs the exact pair."""
        bank_id = temp_db.create_bank_movement(
            company_id="default",
            account_id=chart["1011"],
            date=date(2024, 3, 16),
            amount=Decimal("50"),
            direction=BankDirection.CREDIT_TO_ACCOUNT,
        )
        movement_id = temp_db.get_journal_entry(sample_entry).movements[0].id
        other_id = temp_db.get_journal_entry(sample_entry).movements[1].id

        assert temp_db.link_movements(bank_id, movement_id) is True
        # Bank side already taken: nothing changes on the book side
        assert temp_db.link_movements(bank_id, other_id) is False
        assert temp_db.get_movement(other_id).reconciled is False

        assert temp_db.unlink_movements(bank_id, other_id) is False
        assert temp_db.unlink_movements(bank_id, movement_id) is True
        assert temp_db.get_bank_movement(bank_id).reconciled is False
        assert temp_db.get_movement(movement_id).bank_movement_id is None

    def test_link_requires_confirmed_entry(self, temp_db, chart):
        """Test the book side can only be linked while its entry is CONFIRMED."""
        draft_id = temp_db.create_journal_entry(
            company_id="default",
            number="DB-2",
            date=date(2024, 3, 15),
            description="Draft",
            status=EntryStatus.DRAFT,
            movements=[
                Movement(id=None, account_id=chart["1011"], debit=Decimal("50")),
                Movement(id=None, account_id=chart["7011"], credit=Decimal("50")),
            ],
        )
        bank_id = temp_db.create_bank_movement(
            company_id="default",
            account_id=chart["1011"],
            date=date(2024, 3, 16),
            amount=Decimal("50"),
            direction=BankDirection.CREDIT_TO_ACCOUNT,
        )
        movement_id = temp_db.get_journal_entry(draft_id).movements[0].id

        assert temp_db.link_movements(bank_id, movement_id) is False
        assert temp_db.get_bank_movement(bank_id).reconciled is False

    def test_void_refused_while_reconciled(self, temp_db, sample_entry, chart):
        """Test the VOID transition checks reconciled movements itself."""
        bank_id = temp_db.create_bank_movement(
            company_id="default",
            account_id=chart["1011"],
            date=date(2024, 3, 16),
            amount=Decimal("50"),
            direction=BankDirection.CREDIT_TO_ACCOUNT,
        )
        movement_id = temp_db.get_journal_entry(sample_entry).movements[0].id
        assert temp_db.link_movements(bank_id, movement_id) is True

        assert temp_db.transition_entry_status(
            sample_entry, EntryStatus.CONFIRMED, EntryStatus.VOID
        ) is False
        assert temp_db.get_journal_entry(sample_entry).status == EntryStatus.CONFIRMED

    def test_confirm_transition_checks_version(self, temp_db, chart):
        """Test a confirmation validated against an old version is refused."""
        draft_id = temp_db.create_journal_entry(
            company_id="default",
            number="DB-3",
            date=date(2024, 3, 15),
            description="Draft",
            status=EntryStatus.DRAFT,
            movements=[],
        )
        assert temp_db.update_draft_entry(draft_id, description="Edited") is True

        assert temp_db.transition_entry_status(
            draft_id, EntryStatus.DRAFT, EntryStatus.CONFIRMED, expected_version=1
        ) is False
        assert temp_db.transition_entry_status(
            draft_id, EntryStatus.DRAFT, EntryStatus.CONFIRMED, expected_version=2
        ) is True

    def test_duplicate_account_code_is_a_conflict(self, temp_db, chart):
        """Test a unique-code violation surfaces as a domain conflict."""
        with pytest.raises(ConflictError, match="1011"):
            temp_db.create_account(
                company_id="default", code="1011", name="Copy", account_type="ASSET", level=2
            )

    def test_movement_count_includes_bank_movements(self, temp_db, chart):
        """Test an account with only bank lines still counts as used."""
        temp_db.create_bank_movement(
            company_id="default",
            account_id=chart["1012"],
            date=date(2024, 3, 16),
            amount=Decimal("5"),
            direction=BankDirection.DEBIT_FROM_ACCOUNT,
        )
        assert temp_db.get_account_movement_count(chart["1012"]) == 1
