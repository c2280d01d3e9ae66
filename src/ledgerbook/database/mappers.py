"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so the ORM schema can evolve
without the domain services noticing.
"""

from decimal import Decimal

from ledgerbook.domain import entities as domain
from ledgerbook.database.models import (
    Account as ORMAccount,
    JournalEntry as ORMJournalEntry,
    Movement as ORMMovement,
    BankMovement as ORMBankMovement,
)


def _amount(value) -> Decimal:
    """Normalize a stored numeric value to a two-place Decimal."""
    if value is None:
        return Decimal("0.00")
    return Decimal(value).quantize(Decimal("0.01"))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        company_id=orm_account.company_id,
        code=orm_account.code,
        name=orm_account.name,
        type=domain.AccountType(orm_account.account_type),
        level=orm_account.level,
        parent_code=orm_account.parent_code,
        active=orm_account.active,
        description=orm_account.description,
        created_at=orm_account.created_at,
    )


def movement_to_domain(orm_movement: ORMMovement) -> domain.Movement:
    """Convert SQLAlchemy Movement model to domain Movement entity."""
    return domain.Movement(
        id=orm_movement.id,
        entry_id=orm_movement.entry_id,
        account_id=orm_movement.account_id,
        position=orm_movement.position,
        debit=_amount(orm_movement.debit),
        credit=_amount(orm_movement.credit),
        description=orm_movement.description,
        reconciled=orm_movement.reconciled,
        bank_movement_id=orm_movement.bank_movement_id,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model (with its lines) to a domain entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        company_id=orm_entry.company_id,
        number=orm_entry.number,
        date=orm_entry.date,
        description=orm_entry.description,
        reference=orm_entry.reference,
        status=domain.EntryStatus(orm_entry.status),
        movements=tuple(movement_to_domain(m) for m in orm_entry.movements),
        created_at=orm_entry.created_at,
        version=orm_entry.version,
    )


def bank_movement_to_domain(orm_bank: ORMBankMovement) -> domain.BankMovement:
    """Convert SQLAlchemy BankMovement model to domain BankMovement entity."""
    return domain.BankMovement(
        id=orm_bank.id,
        company_id=orm_bank.company_id,
        account_id=orm_bank.account_id,
        date=orm_bank.date,
        amount=_amount(orm_bank.amount),
        direction=domain.BankDirection(orm_bank.direction),
        description=orm_bank.description,
        reference=orm_bank.reference,
        reconciled=orm_bank.reconciled,
        linked_movement_id=orm_bank.linked_movement_id,
        reconciled_at=orm_bank.reconciled_at,
    )
