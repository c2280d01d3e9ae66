"""Bank reconciliation domain service."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from ledgerbook.config import LedgerConfig
from ledgerbook.database.base import Database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.entities import (
    ZERO,
    BankDirection,
    BankMovement,
    EntryStatus,
    JournalEntry,
    Movement,
    ReconciliationSummary,
)
from ledgerbook.domain.errors import (
    AccountNotFound,
    AlreadyReconciled,
    AmountMismatch,
    DomainError,
    NotFoundError,
    NotReconciled,
    ValidationError,
    bank_movement_not_found,
    movement_not_found,
)
from ledgerbook.domain.journal import to_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankStatementLine:
    """An already-parsed bank statement line waiting to be stored."""

    account_id: int
    date: date
    amount: Decimal
    direction: Optional[BankDirection] = None
    description: Optional[str] = None
    reference: Optional[str] = None


class ReconciliationService:
    """Service for pairing bank statement lines with accounting movements.

    Each side moves PENDING -> RECONCILED on match and back on revert. The
    store applies both sides of a pair in one transaction.
    """

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            config: Engine configuration (company, amount tolerance)
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.account_service = AccountService(db, self.config)

    def _require_bank_movement(self, bank_movement_id: int) -> BankMovement:
        bank_movement = self.db.get_bank_movement(bank_movement_id)
        if bank_movement is None or bank_movement.company_id != self.config.company_id:
            raise NotFoundError(bank_movement_not_found(bank_movement_id))
        return bank_movement

    def _require_movement(self, movement_id: int) -> Movement:
        movement = self.db.get_movement(movement_id)
        if movement is None:
            raise NotFoundError(movement_not_found(movement_id))
        return movement

    def _require_account(self, account_id: int):
        account = self.account_service.get_account(account_id)
        if account is None or account.company_id != self.config.company_id:
            raise AccountNotFound(account_id)
        return account

    def match(self, bank_movement_id: int, movement_id: int) -> None:
        """Reconcile a bank movement with an accounting movement.

        Args:
            bank_movement_id: Bank statement line ID
            movement_id: Accounting movement ID

        Raises:
            NotFoundError: If either id does not resolve
            ValidationError: If the movement is not part of a confirmed entry
                or is posted to another account than the bank line
            AlreadyReconciled: If either side is already reconciled
            AmountMismatch: If the signed amounts differ beyond the tolerance
        """
        bank_movement = self._require_bank_movement(bank_movement_id)
        movement = self._require_movement(movement_id)

        entry = self.db.get_journal_entry(movement.entry_id)
        if (
            entry is None
            or entry.company_id != self.config.company_id
            or entry.status != EntryStatus.CONFIRMED
        ):
            raise ValidationError(
                f"Movement {movement_id} is not part of a confirmed journal entry"
            )
        if movement.account_id != bank_movement.account_id:
            raise ValidationError(
                f"Movement {movement_id} is posted to account {movement.account_id}, "
                f"but bank movement {bank_movement_id} belongs to account "
                f"{bank_movement.account_id}"
            )

        if bank_movement.reconciled:
            raise AlreadyReconciled(
                bank_movement_id, movement_id, bank_movement.linked_movement_id, side="bank"
            )
        if movement.reconciled:
            raise AlreadyReconciled(
                bank_movement_id, movement_id, movement.bank_movement_id, side="book"
            )

        bank_amount = bank_movement.signed_amount
        book_amount = movement.debit - movement.credit
        tolerance = self.config.reconciliation_tolerance
        if tolerance is not None and abs(bank_amount - book_amount) > tolerance:
            raise AmountMismatch(bank_movement_id, movement_id, bank_amount, book_amount)

        if not self.db.link_movements(bank_movement_id, movement_id):
            # Lost a race: report what the other writer changed
            current = self.db.get_bank_movement(bank_movement_id)
            if current is not None and current.reconciled:
                raise AlreadyReconciled(
                    bank_movement_id, movement_id, current.linked_movement_id, side="bank"
                )
            current_movement = self.db.get_movement(movement_id)
            if current_movement is not None and current_movement.reconciled:
                raise AlreadyReconciled(
                    bank_movement_id, movement_id, current_movement.bank_movement_id, side="book"
                )
            raise ValidationError(
                f"Movement {movement_id} is not part of a confirmed journal entry"
            )

        logger.info("Matched bank movement %s with movement %s", bank_movement_id, movement_id)

    def revert(self, bank_movement_id: int, movement_id: int) -> None:
        """Undo a reconciliation, returning both sides to PENDING.

        Raises:
            NotFoundError: If either id does not resolve
            NotReconciled: If the two are not linked to each other
        """
        bank_movement = self._require_bank_movement(bank_movement_id)
        movement = self._require_movement(movement_id)

        linked = (
            bank_movement.reconciled
            and movement.reconciled
            and bank_movement.linked_movement_id == movement_id
            and movement.bank_movement_id == bank_movement_id
        )
        if not linked or not self.db.unlink_movements(bank_movement_id, movement_id):
            raise NotReconciled(bank_movement_id, movement_id)

        logger.info("Reverted bank movement %s from movement %s", bank_movement_id, movement_id)

    def record_bank_movement(
        self,
        account_id: int,
        date: date,
        amount: Union[Decimal, int, str],
        direction: Optional[BankDirection] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> int:
        """Store one bank statement line as PENDING.

        Args:
            account_id: Bank account the line belongs to
            date: Statement date
            amount: Positive amount when direction is given; otherwise a
                signed amount where deposits are positive
            direction: Optional explicit direction
            description: Optional statement text
            reference: Optional bank reference

        Returns:
            Bank movement ID

        Raises:
            AccountNotFound: If the account does not resolve
            ValidationError: If the amount is zero, or negative with an
                explicit direction
        """
        line = BankStatementLine(
            account_id=account_id,
            date=date,
            amount=amount,
            direction=direction,
            description=description,
            reference=reference,
        )
        return self._store_line(self._prepare_line(line))

    def import_bank_movements(self, lines: Iterable[BankStatementLine]) -> list[int]:
        """Store several parsed statement lines as PENDING.

        Every line is checked before any is stored, so a bad line leaves the
        store untouched.

        Returns:
            Bank movement IDs in input order
        """
        prepared = [self._prepare_line(line) for line in lines]
        ids = [self._store_line(line) for line in prepared]
        logger.info("Imported %d bank movements", len(ids))
        return ids

    def _prepare_line(self, line: BankStatementLine) -> BankStatementLine:
        self._require_account(line.account_id)
        amount = to_amount(line.amount)
        if amount == 0:
            raise ValidationError("Bank movement amount cannot be zero")

        direction = line.direction
        if direction is None:
            direction = (
                BankDirection.CREDIT_TO_ACCOUNT if amount > 0 else BankDirection.DEBIT_FROM_ACCOUNT
            )
            amount = abs(amount)
        elif amount < 0:
            raise ValidationError(
                "Bank movement amount must be positive when a direction is given"
            )
        return replace(line, amount=amount, direction=BankDirection(direction))

    def _store_line(self, line: BankStatementLine) -> int:
        return self.db.create_bank_movement(
            company_id=self.config.company_id,
            account_id=line.account_id,
            date=line.date,
            amount=line.amount,
            direction=line.direction,
            description=line.description,
            reference=line.reference,
        )

    def list_bank_movements(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        reconciled: Optional[bool] = None,
    ) -> list[BankMovement]:
        """List bank movements ordered by date."""
        return self.db.list_bank_movements(
            self.config.company_id,
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            reconciled=reconciled,
        )

    def list_book_movements(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        reconciled: Optional[bool] = None,
    ) -> list[tuple[JournalEntry, Movement]]:
        """List confirmed accounting movements on an account.

        Returns:
            (entry, movement) pairs in ledger order
        """
        self._require_account(account_id)
        entries = self.db.list_confirmed_entries(
            self.config.company_id,
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
        )
        pairs = []
        for entry in entries:
            for movement in entry.movements:
                if movement.account_id != account_id:
                    continue
                if reconciled is not None and movement.reconciled != reconciled:
                    continue
                pairs.append((entry, movement))
        return pairs

    def summary(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ReconciliationSummary:
        """Summarize reconciled and pending movements on both sides.

        Amounts are signed from the bank account's point of view (deposits
        positive). Without account_id, every account that has bank movements
        is included.

        Returns:
            ReconciliationSummary; unreconciled_difference is the pending bank
            net minus the pending book net
        """
        bank_movements = self.list_bank_movements(account_id, start_date, end_date)
        if account_id is not None:
            account_ids = [account_id]
        else:
            account_ids = sorted(
                {bm.account_id for bm in self.db.list_bank_movements(self.config.company_id)}
            )

        book_movements = []
        for bank_account_id in account_ids:
            book_movements.extend(
                movement
                for _, movement in self.list_book_movements(bank_account_id, start_date, end_date)
            )

        bank_reconciled = [bm for bm in bank_movements if bm.reconciled]
        bank_pending = [bm for bm in bank_movements if not bm.reconciled]
        book_reconciled = [m for m in book_movements if m.reconciled]
        book_pending = [m for m in book_movements if not m.reconciled]

        bank_pending_amount = sum((bm.signed_amount for bm in bank_pending), ZERO)
        book_pending_amount = sum((m.debit - m.credit for m in book_pending), ZERO)

        return ReconciliationSummary(
            account_id=account_id,
            bank_total=len(bank_movements),
            bank_reconciled=len(bank_reconciled),
            bank_reconciled_amount=sum((bm.signed_amount for bm in bank_reconciled), ZERO),
            bank_pending_amount=bank_pending_amount,
            book_total=len(book_movements),
            book_reconciled=len(book_reconciled),
            book_reconciled_amount=sum((m.debit - m.credit for m in book_reconciled), ZERO),
            book_pending_amount=book_pending_amount,
            pending_count=len(bank_pending) + len(book_pending),
            unreconciled_difference=bank_pending_amount - book_pending_amount,
        )


@dataclass(frozen=True)
class MatchCommand:
    """Pair a bank movement with an accounting movement."""

    bank_movement_id: int
    movement_id: int

    def apply_local(self, workspace: "ReconciliationWorkspace") -> None:
        bank_movement = workspace.bank_movements.get(self.bank_movement_id)
        if bank_movement is not None:
            workspace.bank_movements[self.bank_movement_id] = replace(
                bank_movement,
                reconciled=True,
                linked_movement_id=self.movement_id,
                reconciled_at=datetime.now(UTC),
            )
        movement = workspace.book_movements.get(self.movement_id)
        if movement is not None:
            workspace.book_movements[self.movement_id] = replace(
                movement, reconciled=True, bank_movement_id=self.bank_movement_id
            )

    def send(self, service: ReconciliationService) -> None:
        service.match(self.bank_movement_id, self.movement_id)


@dataclass(frozen=True)
class RevertCommand:
    """Undo the pairing of a bank movement and an accounting movement."""

    bank_movement_id: int
    movement_id: int

    def apply_local(self, workspace: "ReconciliationWorkspace") -> None:
        bank_movement = workspace.bank_movements.get(self.bank_movement_id)
        if bank_movement is not None:
            workspace.bank_movements[self.bank_movement_id] = replace(
                bank_movement, reconciled=False, linked_movement_id=None, reconciled_at=None
            )
        movement = workspace.book_movements.get(self.movement_id)
        if movement is not None:
            workspace.book_movements[self.movement_id] = replace(
                movement, reconciled=False, bank_movement_id=None
            )

    def send(self, service: ReconciliationService) -> None:
        service.revert(self.bank_movement_id, self.movement_id)


ReconciliationCommand = Union[MatchCommand, RevertCommand]


class ReconciliationWorkspace:
    """Local copy of one account's bank and book movements.

    Commands are applied to the local copy first and then sent to the
    service. If the service rejects a command, only the local copy is rolled
    back; the store is never patched from here.
    """

    def __init__(
        self,
        service: ReconciliationService,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ):
        self.service = service
        self.account_id = account_id
        self.start_date = start_date
        self.end_date = end_date
        self.bank_movements: dict[int, BankMovement] = {}
        self.book_movements: dict[int, Movement] = {}
        self.entries: dict[int, JournalEntry] = {}
        self.refresh()

    def refresh(self) -> None:
        """Reload both sides from the store."""
        self.bank_movements = {
            bm.id: bm
            for bm in self.service.list_bank_movements(
                self.account_id, self.start_date, self.end_date
            )
        }
        self.book_movements = {}
        self.entries = {}
        for entry, movement in self.service.list_book_movements(
            self.account_id, self.start_date, self.end_date
        ):
            self.book_movements[movement.id] = movement
            self.entries[entry.id] = entry

    def execute(self, command: ReconciliationCommand) -> None:
        """Apply a command locally, then send it to the service.

        Raises:
            DomainError: Whatever the service raised; the local copy is
                restored before it propagates
        """
        bank_snapshot = self.bank_movements.get(command.bank_movement_id)
        book_snapshot = self.book_movements.get(command.movement_id)
        command.apply_local(self)
        try:
            command.send(self.service)
        except DomainError:
            self._restore(command, bank_snapshot, book_snapshot)
            logger.debug("Rolled back local %s", command)
            raise

    def _restore(
        self,
        command: ReconciliationCommand,
        bank_snapshot: Optional[BankMovement],
        book_snapshot: Optional[Movement],
    ) -> None:
        if bank_snapshot is not None:
            self.bank_movements[command.bank_movement_id] = bank_snapshot
        if book_snapshot is not None:
            self.book_movements[command.movement_id] = book_snapshot

    def match(self, bank_movement_id: int, movement_id: int) -> None:
        self.execute(MatchCommand(bank_movement_id, movement_id))

    def revert(self, bank_movement_id: int, movement_id: int) -> None:
        self.execute(RevertCommand(bank_movement_id, movement_id))

    def pending_bank(self) -> list[BankMovement]:
        return [bm for bm in self.bank_movements.values() if not bm.reconciled]

    def pending_book(self) -> list[Movement]:
        return [m for m in self.book_movements.values() if not m.reconciled]
