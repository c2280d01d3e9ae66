"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or illegal transitions."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class ReportInvariantError(DomainError):
    """A derived report identity failed; the report is not emitted."""

    def __init__(self, message: str, delta: Decimal):
        super().__init__(message)
        self.delta = delta


# Journal entry validation


class InsufficientMovements(ValidationError):
    """Fewer than two movements carry an amount."""

    def __init__(self, count: int):
        super().__init__(insufficient_movements(count))
        self.count = count


class AmbiguousMovement(ValidationError):
    """A movement has both or neither of debit/credit set, or a negative side."""

    def __init__(self, position: int, debit: Decimal, credit: Decimal):
        super().__init__(ambiguous_movement(position, debit, credit))
        self.position = position
        self.debit = debit
        self.credit = credit


class UnknownAccount(ValidationError):
    """A movement references a missing or inactive account."""

    def __init__(self, account_id: int, inactive: bool = False):
        super().__init__(unknown_account(account_id, inactive))
        self.account_id = account_id
        self.inactive = inactive


class UnbalancedEntry(ValidationError):
    """Total debit and total credit of an entry differ beyond the epsilon."""

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.delta = abs(total_debit - total_credit)
        super().__init__(unbalanced_entry(total_debit, total_credit, self.delta))


# Lookups


class AccountNotFound(NotFoundError):
    """Account id does not resolve."""

    def __init__(self, account_id: int):
        super().__init__(account_not_found(account_id))
        self.account_id = account_id


# Lifecycle


class PostedEntryImmutable(ConflictError):
    """Attempt to edit or delete an entry that is no longer a draft."""

    def __init__(self, entry_id: int, status: str, action: str = "modify"):
        super().__init__(
            f"Cannot {action} journal entry {entry_id}: it is {status}. "
            "Post a reversing entry instead."
        )
        self.entry_id = entry_id
        self.status = status


# Reconciliation


class AlreadyReconciled(ConflictError):
    """One side of a requested match is already linked."""

    def __init__(
        self,
        bank_movement_id: int,
        movement_id: int,
        linked_to: Optional[int] = None,
        side: str = "bank",
    ):
        super().__init__(already_reconciled(side, bank_movement_id, movement_id, linked_to))
        self.bank_movement_id = bank_movement_id
        self.movement_id = movement_id
        self.linked_to = linked_to
        self.side = side


class NotReconciled(ConflictError):
    """The pair is not currently linked to each other."""

    def __init__(self, bank_movement_id: int, movement_id: int):
        super().__init__(
            f"Bank movement {bank_movement_id} and movement {movement_id} "
            "are not reconciled with each other"
        )
        self.bank_movement_id = bank_movement_id
        self.movement_id = movement_id


class AmountMismatch(ConflictError):
    """Bank and book amounts differ beyond the configured tolerance."""

    def __init__(
        self,
        bank_movement_id: int,
        movement_id: int,
        bank_amount: Decimal,
        book_amount: Decimal,
    ):
        super().__init__(
            f"Bank movement {bank_movement_id} amount {bank_amount:.2f} does not match "
            f"movement {movement_id} amount {book_amount:.2f}"
        )
        self.bank_movement_id = bank_movement_id
        self.movement_id = movement_id
        self.bank_amount = bank_amount
        self.book_amount = book_amount


# Report invariants


class TrialBalanceImbalance(ReportInvariantError):
    """Debit and credit columns of a trial balance do not agree."""

    def __init__(self, column: str, total_debit: Decimal, total_credit: Decimal):
        delta = total_debit - total_credit
        super().__init__(
            f"Trial balance {column} columns do not balance: "
            f"debit {total_debit:.2f}, credit {total_credit:.2f}, difference {delta:.2f}",
            delta,
        )
        self.column = column


class BalanceSheetImbalance(ReportInvariantError):
    """Assets differ from liabilities plus equity."""

    def __init__(self, total_assets: Decimal, total_liabilities: Decimal, total_equity: Decimal):
        delta = total_assets - (total_liabilities + total_equity)
        super().__init__(
            f"Balance sheet does not balance: assets {total_assets:.2f}, "
            f"liabilities {total_liabilities:.2f}, equity {total_equity:.2f}, "
            f"difference {delta:.2f}",
            delta,
        )


class CashFlowMismatch(ReportInvariantError):
    """Classified cash flows do not explain the change in cash."""

    def __init__(self, opening_cash: Decimal, closing_cash: Decimal, classified: Decimal):
        delta = closing_cash - (opening_cash + classified)
        super().__init__(
            f"Cash flow does not reconcile: opening {opening_cash:.2f} + flows "
            f"{classified:.2f} != closing {closing_cash:.2f} (difference {delta:.2f})",
            delta,
        )


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    """Return message for missing account by code."""
    return f"Account with code '{code}' not found"


def duplicate_account_code(code: str, company_id: str) -> str:
    """Return message for duplicate account code within a company."""
    return f"Account with code '{code}' already exists for company '{company_id}'"


def duplicate_entry_number(number: str, company_id: str) -> str:
    """Return message for duplicate journal entry number within a company."""
    return f"Journal entry '{number}' already exists for company '{company_id}'"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def movement_not_found(movement_id: int) -> str:
    """Return message for missing accounting movement."""
    return f"Movement {movement_id} not found"


def bank_movement_not_found(bank_movement_id: int) -> str:
    """Return message for missing bank movement."""
    return f"Bank movement {bank_movement_id} not found"


def insufficient_movements(count: int) -> str:
    """Return message when an entry has fewer than two non-zero movements."""
    return (
        f"A journal entry needs at least 2 movements with an amount, "
        f"found {count}"
    )


def ambiguous_movement(position: int, debit: Decimal, credit: Decimal) -> str:
    """Return message for a movement without exactly one positive side."""
    return (
        f"Movement {position} must have exactly one of debit or credit greater "
        f"than zero (debit {debit:.2f}, credit {credit:.2f})"
    )


def unknown_account(account_id: int, inactive: bool) -> str:
    """Return message for a movement against a missing or inactive account."""
    if inactive:
        return f"Account {account_id} is inactive"
    return f"Account {account_id} not found"


def unbalanced_entry(total_debit: Decimal, total_credit: Decimal, delta: Decimal) -> str:
    """Return message for an entry whose sides do not balance."""
    return (
        f"Entry is not balanced. Debit: {total_debit:.2f}, "
        f"Credit: {total_credit:.2f}, Difference: {delta:.2f}"
    )


def already_reconciled(
    side: str, bank_movement_id: int, movement_id: int, linked_to: Optional[int]
) -> str:
    """Return message when either side of a match is already reconciled."""
    if side == "bank":
        subject = f"Bank movement {bank_movement_id}"
    else:
        subject = f"Movement {movement_id}"
    if linked_to is not None:
        return f"{subject} is already reconciled (linked to {linked_to})"
    return f"{subject} is already reconciled"


def account_delete_blocked(account_id: int, movement_count: int) -> str:
    """Return message when an account has posted movements."""
    return (
        f"Cannot delete account {account_id}: it has {movement_count} "
        f"movement{'s' if movement_count != 1 else ''}. Deactivate it instead."
    )
