"""Journal entry validation and lifecycle."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from ledgerbook.config import LedgerConfig
from ledgerbook.database.base import Database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.entities import ZERO, EntryStatus, JournalEntry, Movement
from ledgerbook.domain.errors import (
    AmbiguousMovement,
    ConflictError,
    InsufficientMovements,
    NotFoundError,
    PostedEntryImmutable,
    UnbalancedEntry,
    UnknownAccount,
    ValidationError,
    duplicate_entry_number,
    entry_not_found,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_amount(value) -> Decimal:
    """Coerce a number to a two-place Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_lines(lines: Sequence[Movement]) -> tuple[Movement, ...]:
    """Drop blank lines and number the remaining ones.

    A blank line carries no amount on either side; the entry editor leaves
    such rows behind and they are not part of the entry.
    """
    kept = []
    for line in lines:
        debit = to_amount(line.debit)
        credit = to_amount(line.credit)
        if debit == 0 and credit == 0:
            continue
        kept.append(
            replace(line, debit=debit, credit=credit, position=len(kept) + 1)
        )
    return tuple(kept)


def _check_nothing_reconciled(entry: JournalEntry) -> None:
    reconciled = [m.id for m in entry.movements if m.reconciled]
    if reconciled:
        ids = ", ".join(str(movement_id) for movement_id in reconciled)
        raise ConflictError(
            f"Cannot void journal entry {entry.id}: movements {ids} are reconciled. "
            "Revert the reconciliation first."
        )


class JournalEntryValidator:
    """Read-only balance and structure checks for a journal entry."""

    def __init__(self, account_service: AccountService, config: Optional[LedgerConfig] = None):
        """Initialize validator.

        Args:
            account_service: Account directory used to resolve movement accounts
            config: Engine configuration (epsilon, company)
        """
        self.account_service = account_service
        self.config = config or account_service.config

    def validate(self, entry: JournalEntry) -> JournalEntry:
        """Validate an entry that is a draft or about to be confirmed.

        Checks run in order and stop at the first failure:
        at least two movements with an amount, exactly one positive side per
        movement, every account known and active, and total debit equal to
        total credit within the epsilon.

        Args:
            entry: Candidate entry

        Returns:
            The same entry, unchanged

        Raises:
            InsufficientMovements: Fewer than two movements carry an amount
            AmbiguousMovement: A movement has both, neither, or a negative side
            UnknownAccount: A movement account is missing, inactive, or
                belongs to another company
            UnbalancedEntry: Debit and credit totals differ beyond the epsilon
        """
        movements = entry.movements

        with_amount = [m for m in movements if m.debit != 0 or m.credit != 0]
        if len(with_amount) < 2:
            raise InsufficientMovements(len(with_amount))

        for index, movement in enumerate(movements, start=1):
            position = movement.position or index
            debit, credit = movement.debit, movement.credit
            if debit < 0 or credit < 0 or (debit > 0) == (credit > 0):
                raise AmbiguousMovement(position, debit, credit)

        for movement in movements:
            account = self.account_service.get_account(movement.account_id)
            if account is None or account.company_id != entry.company_id:
                raise UnknownAccount(movement.account_id)
            if not account.active:
                raise UnknownAccount(movement.account_id, inactive=True)

        total_debit = sum((m.debit for m in movements), ZERO)
        total_credit = sum((m.credit for m in movements), ZERO)
        if abs(total_debit - total_credit) > self.config.epsilon:
            raise UnbalancedEntry(total_debit, total_credit)

        return entry

    def is_balanced(self, entry: JournalEntry) -> bool:
        """Return True if the entry's totals agree within the epsilon."""
        return abs(entry.total_debit - entry.total_credit) <= self.config.epsilon


class JournalEntryService:
    """Service for creating, confirming, voiding and reversing entries.

    Confirmed entries are append-only: amounts are never edited in place.
    Corrections are made by voiding or by posting a reversing entry.
    """

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize journal entry service.

        Args:
            db: Database instance
            config: Engine configuration
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.account_service = AccountService(db, self.config)
        self.validator = JournalEntryValidator(self.account_service, self.config)

    def create_entry(
        self,
        number: str,
        date: date,
        description: str,
        lines: Sequence[Movement],
        reference: Optional[str] = None,
        confirm: bool = False,
    ) -> int:
        """Create a journal entry as a draft, or confirmed if requested.

        Args:
            number: Entry number, unique within the company
            date: Entry date
            description: Entry description
            lines: Movements (id is ignored); blank lines are dropped
            reference: Optional external reference
            confirm: If True, validate and store as CONFIRMED

        Returns:
            Entry ID

        Raises:
            ValidationError: If the number is empty or validation fails
            ConflictError: If the number is already used
        """
        number = number.strip()
        if not number:
            raise ValidationError("Entry number cannot be empty")
        if self.db.entry_number_exists(self.config.company_id, number):
            raise ConflictError(duplicate_entry_number(number, self.config.company_id))

        status = EntryStatus.CONFIRMED if confirm else EntryStatus.DRAFT
        candidate = JournalEntry(
            id=None,
            company_id=self.config.company_id,
            number=number,
            date=date,
            description=description or "",
            reference=reference,
            status=status,
            movements=normalize_lines(lines),
        )
        if confirm:
            self.validator.validate(candidate)
        else:
            self._check_accounts_exist(candidate.movements)

        entry_id = self.db.create_journal_entry(
            company_id=candidate.company_id,
            number=candidate.number,
            date=candidate.date,
            description=candidate.description,
            status=candidate.status,
            movements=candidate.movements,
            reference=candidate.reference,
        )
        logger.info("Created %s entry %s (id %s)", status.value, number, entry_id)
        return entry_id

    def _check_accounts_exist(self, movements: Sequence[Movement]) -> None:
        """Drafts may be unbalanced, but every line must name a real account."""
        for movement in movements:
            account = self.account_service.get_account(movement.account_id)
            if account is None or account.company_id != self.config.company_id:
                raise UnknownAccount(movement.account_id)

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get entry by ID, or None if not found."""
        return self.db.get_journal_entry(entry_id)

    def require_entry(self, entry_id: int) -> JournalEntry:
        """Get entry by ID or raise NotFoundError."""
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def list_entries(
        self,
        status: Optional[EntryStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> list[JournalEntry]:
        """List entries ordered by date and number."""
        return self.db.list_journal_entries(
            self.config.company_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
        )

    def update_draft(
        self,
        entry_id: int,
        number: Optional[str] = None,
        date: Optional[date] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        lines: Optional[Sequence[Movement]] = None,
    ) -> None:
        """Edit a draft entry.

        Raises:
            NotFoundError: If the entry does not exist
            PostedEntryImmutable: If the entry is confirmed or void
            ConflictError: If the new number is already used
        """
        entry = self.require_entry(entry_id)
        if entry.status != EntryStatus.DRAFT:
            raise PostedEntryImmutable(entry_id, entry.status.value)

        if number is not None:
            number = number.strip()
            if not number:
                raise ValidationError("Entry number cannot be empty")
            if number != entry.number and self.db.entry_number_exists(
                self.config.company_id, number
            ):
                raise ConflictError(duplicate_entry_number(number, self.config.company_id))

        movements = normalize_lines(lines) if lines is not None else None
        if movements is not None:
            self._check_accounts_exist(movements)
        updated = self.db.update_draft_entry(
            entry_id,
            number=number,
            date=date,
            description=description,
            reference=reference,
            movements=movements,
        )
        if not updated:
            current = self.require_entry(entry_id)
            raise PostedEntryImmutable(entry_id, current.status.value)

    def confirm_entry(self, entry_id: int) -> JournalEntry:
        """Validate a draft and move it to CONFIRMED.

        Returns:
            The confirmed entry

        Raises:
            NotFoundError: If the entry does not exist
            ConflictError: If the entry is not a draft
            ValidationError: If validation fails (entry stays a draft)
        """
        entry = self.require_entry(entry_id)
        if entry.status != EntryStatus.DRAFT:
            raise ConflictError(
                f"Journal entry {entry_id} is {entry.status.value}; only drafts can be confirmed"
            )

        self.validator.validate(entry)

        if not self.db.transition_entry_status(
            entry_id, EntryStatus.DRAFT, EntryStatus.CONFIRMED, expected_version=entry.version
        ):
            current = self.require_entry(entry_id)
            if current.status == EntryStatus.DRAFT:
                raise ConflictError(
                    f"Journal entry {entry_id} was edited while being confirmed; "
                    "it is still a draft"
                )
            raise ConflictError(f"Journal entry {entry_id} changed while being confirmed")

        logger.info("Confirmed entry %s (id %s)", entry.number, entry_id)
        return self.require_entry(entry_id)

    def void_entry(self, entry_id: int) -> None:
        """Move a confirmed entry to VOID.

        Raises:
            NotFoundError: If the entry does not exist
            ConflictError: If the entry is not confirmed, or any of its
                movements is reconciled against a bank movement
        """
        entry = self.require_entry(entry_id)
        if entry.status == EntryStatus.DRAFT:
            raise ConflictError(
                f"Journal entry {entry_id} is a draft; delete it instead of voiding"
            )
        if entry.status == EntryStatus.VOID:
            raise ConflictError(f"Journal entry {entry_id} is already VOID")
        _check_nothing_reconciled(entry)

        if not self.db.transition_entry_status(
            entry_id, EntryStatus.CONFIRMED, EntryStatus.VOID
        ):
            # A match may have landed since the read above
            _check_nothing_reconciled(self.require_entry(entry_id))
            raise ConflictError(f"Journal entry {entry_id} changed while being voided")
        logger.info("Voided entry %s (id %s)", entry.number, entry_id)

    def delete_draft(self, entry_id: int) -> None:
        """Delete a draft entry.

        Raises:
            NotFoundError: If the entry does not exist
            PostedEntryImmutable: If the entry is confirmed or void
        """
        entry = self.require_entry(entry_id)
        if entry.status != EntryStatus.DRAFT or not self.db.delete_draft_entry(entry_id):
            raise PostedEntryImmutable(entry_id, entry.status.value, action="delete")
        logger.info("Deleted draft entry %s (id %s)", entry.number, entry_id)

    def reverse_entry(
        self,
        entry_id: int,
        number: str,
        date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> int:
        """Post a confirmed entry that undoes a confirmed entry.

        Every line is copied with debit and credit swapped.

        Args:
            entry_id: Entry to reverse
            number: Number for the reversing entry
            date: Date of the reversing entry (defaults to the original date)
            description: Description (defaults to "Reversal of <number>")

        Returns:
            ID of the reversing entry
        """
        original = self.require_entry(entry_id)
        if original.status != EntryStatus.CONFIRMED:
            raise ConflictError(
                f"Journal entry {entry_id} is {original.status.value}; "
                "only confirmed entries can be reversed"
            )

        lines = [
            Movement(
                id=None,
                account_id=m.account_id,
                debit=m.credit,
                credit=m.debit,
                description=m.description,
            )
            for m in original.movements
        ]
        return self.create_entry(
            number=number,
            date=date or original.date,
            description=description or f"Reversal of {original.number}",
            lines=lines,
            reference=original.number,
            confirm=True,
        )
