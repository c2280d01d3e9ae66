"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly; ledgerbook.domain resolves its services lazily
from ledgerbook.domain.entities import (
    Account,
    AccountType,
    BankDirection,
    BankMovement,
    EntryStatus,
    JournalEntry,
    Movement,
)


class Database(ABC):
    """Abstract database interface for ledgerbook.

    Every mutating method is atomic: it either commits completely or leaves
    the store unchanged.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        company_id: str,
        code: str,
        name: str,
        account_type: AccountType,
        level: int,
        parent_code: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a chart-of-accounts entry. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, company_id: str, code: str) -> Optional[Account]:
        """Get account by its code within a company."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        company_id: str,
        account_type: Optional[AccountType] = None,
        active_only: bool = False,
    ) -> list[Account]:
        """List accounts of a company ordered by code."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> None:
        """Update mutable account fields."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_movement_count(self, account_id: int) -> int:
        """Count movements (any entry status) posted to an account."""
        pass

    # Journal entry operations
    @abstractmethod
    def create_journal_entry(
        self,
        company_id: str,
        number: str,
        date: date,
        description: str,
        status: EntryStatus,
        movements: Sequence[Movement],
        reference: Optional[str] = None,
    ) -> int:
        """Create an entry with its movements in one transaction. Returns entry ID."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get entry by ID, including its movements."""
        pass

    @abstractmethod
    def entry_number_exists(self, company_id: str, number: str) -> bool:
        """Check if an entry number is already used within a company."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        company_id: str,
        status: Optional[EntryStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> list[JournalEntry]:
        """List entries with optional filters.

        Entries are ordered by date, then number, then id, ascending. When
        account_id is given, only entries with at least one movement on that
        account are returned (with all of their movements).
        """
        pass

    def list_confirmed_entries(
        self,
        company_id: str,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[JournalEntry]:
        """List CONFIRMED entries, the only ones that reach the ledger."""
        return self.list_journal_entries(
            company_id,
            status=EntryStatus.CONFIRMED,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
        )

    @abstractmethod
    def update_draft_entry(
        self,
        entry_id: int,
        number: Optional[str] = None,
        date: Optional[date] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        movements: Optional[Sequence[Movement]] = None,
    ) -> bool:
        """Update a DRAFT entry, replacing its movements if given.

        Every successful update bumps the entry version.
        Returns False without changing anything if the entry is not a draft.
        """
        pass

    @abstractmethod
    def transition_entry_status(
        self,
        entry_id: int,
        from_status: EntryStatus,
        to_status: EntryStatus,
        expected_version: Optional[int] = None,
    ) -> bool:
        """Move an entry between statuses only if it is still in from_status.

        Returns False, changing nothing, unless the entry is still in
        from_status and, when expected_version is given, still at that
        version. VOID is refused while one of its movements is reconciled.
        """
        pass

    @abstractmethod
    def delete_draft_entry(self, entry_id: int) -> bool:
        """Delete an entry only if it is a draft."""
        pass

    # Movement operations
    @abstractmethod
    def get_movement(self, movement_id: int) -> Optional[Movement]:
        """Get an accounting movement by ID."""
        pass

    # Bank movement operations
    @abstractmethod
    def create_bank_movement(
        self,
        company_id: str,
        account_id: int,
        date: date,
        amount: Decimal,
        direction: BankDirection,
        description: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> int:
        """Store a bank statement line as pending. Returns bank movement ID."""
        pass

    @abstractmethod
    def get_bank_movement(self, bank_movement_id: int) -> Optional[BankMovement]:
        """Get bank movement by ID."""
        pass

    @abstractmethod
    def list_bank_movements(
        self,
        company_id: str,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        reconciled: Optional[bool] = None,
    ) -> list[BankMovement]:
        """List bank movements ordered by date and id."""
        pass

    # Reconciliation operations
    @abstractmethod
    def link_movements(self, bank_movement_id: int, movement_id: int) -> bool:
        """Atomically mark both sides reconciled and record the mutual link.

        Returns False, leaving both sides untouched, if either side is
        already reconciled at the time of the write. The movement must still
        belong to a CONFIRMED entry.
        """
        pass

    @abstractmethod
    def unlink_movements(self, bank_movement_id: int, movement_id: int) -> bool:
        """Atomically clear a link between the two given movements.

        Returns False, leaving both sides untouched, unless each side is
        currently linked to the other.
        """
        pass
