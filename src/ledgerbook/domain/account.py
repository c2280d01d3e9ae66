"""Account directory: chart of accounts, hierarchy and sign convention."""

import logging
from decimal import Decimal
from typing import Mapping, Optional

from ledgerbook.config import DEFAULT_NATURE_TABLE, LedgerConfig
from ledgerbook.database.base import Database
from ledgerbook.domain.entities import Account, AccountNature, AccountType
from ledgerbook.domain.errors import (
    AccountNotFound,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_code_not_found,
    account_delete_blocked,
    duplicate_account_code,
)

logger = logging.getLogger(__name__)


def resolve_nature(
    account_type: AccountType,
    nature_table: Mapping[AccountType, AccountNature] = DEFAULT_NATURE_TABLE,
) -> AccountNature:
    """Return the sign convention for an account type.

    ASSET and EXPENSE accounts increase on debit; LIABILITY, EQUITY and INCOME
    accounts increase on credit. Every balance computation goes through here.
    """
    return nature_table[AccountType(account_type)]


def signed_amount(
    account_type: AccountType,
    debit: Decimal,
    credit: Decimal,
    nature_table: Mapping[AccountType, AccountNature] = DEFAULT_NATURE_TABLE,
) -> Decimal:
    """Return a movement's effect on the balance of an account of this type."""
    if resolve_nature(account_type, nature_table).increases_on_debit:
        return debit - credit
    return credit - debit


class AccountService:
    """Service for the chart of accounts."""

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize account service.

        Args:
            db: Database instance
            config: Engine configuration (company, nature table)
        """
        self.db = db
        self.config = config or LedgerConfig()

    @property
    def company_id(self) -> str:
        return self.config.company_id

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        parent_code: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a new account.

        The level is derived from the parent chain: root accounts are level 1
        and every child sits one level below its parent.

        Args:
            code: Hierarchical account code, unique within the company
            name: Account name
            account_type: Account type
            parent_code: Optional code of the parent account
            description: Optional description

        Returns:
            Account ID

        Raises:
            ValidationError: If code or name is empty, or the parent has a
                different type
            ConflictError: If the code already exists
            NotFoundError: If the parent code does not exist
        """
        code = code.strip()
        name = name.strip()
        if not code:
            raise ValidationError("Account code cannot be empty")
        if not name:
            raise ValidationError("Account name cannot be empty")
        account_type = AccountType(account_type)

        if self.db.get_account_by_code(self.company_id, code) is not None:
            raise ConflictError(duplicate_account_code(code, self.company_id))

        level = 1
        if parent_code is not None:
            parent_code = parent_code.strip()
            if parent_code == code:
                raise ValidationError(f"Account '{code}' cannot be its own parent")
            parent = self.db.get_account_by_code(self.company_id, parent_code)
            if parent is None:
                raise NotFoundError(account_code_not_found(parent_code))
            if parent.type != account_type:
                raise ValidationError(
                    f"Account '{code}' is {account_type.value} but parent "
                    f"'{parent_code}' is {parent.type.value}"
                )
            level = parent.level + 1

        account_id = self.db.create_account(
            company_id=self.company_id,
            code=code,
            name=name,
            account_type=account_type,
            level=level,
            parent_code=parent_code,
            description=description,
        )
        logger.info("Created account %s '%s' (id %s)", code, name, account_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> Account:
        """Get account by ID or raise AccountNotFound."""
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by code within the configured company."""
        return self.db.get_account_by_code(self.company_id, code)

    def list_accounts(self, include_inactive: bool = True) -> list[Account]:
        """List the chart of accounts ordered by code."""
        return self.db.list_accounts(self.company_id, active_only=not include_inactive)

    def list_active(self, type_filter: Optional[AccountType] = None) -> list[Account]:
        """List active accounts, optionally of one type, ordered by code."""
        return self.db.list_accounts(
            self.company_id, account_type=type_filter, active_only=True
        )

    def resolve_nature(self, account_type: AccountType) -> AccountNature:
        """Return the sign convention for an account type."""
        return resolve_nature(account_type, self.config.nature_table)

    def signed_amount(self, account: Account, debit: Decimal, credit: Decimal) -> Decimal:
        """Return a movement's effect on the balance of the given account."""
        return signed_amount(account.type, debit, credit, self.config.nature_table)

    def rename_account(self, account_id: int, name: str, description: Optional[str] = None) -> None:
        """Rename an account.

        Raises:
            AccountNotFound: If the account does not exist
            ValidationError: If the name is empty
        """
        self.require_account(account_id)
        if not name.strip():
            raise ValidationError("Account name cannot be empty")
        self.db.update_account(account_id, name=name.strip(), description=description)

    def deactivate_account(self, account_id: int) -> None:
        """Mark an account inactive; it then rejects new postings."""
        account = self.require_account(account_id)
        self.db.update_account(account_id, active=False)
        logger.info("Deactivated account %s", account.code)

    def activate_account(self, account_id: int) -> None:
        """Mark an account active again."""
        account = self.require_account(account_id)
        self.db.update_account(account_id, active=True)
        logger.info("Activated account %s", account.code)

    def delete_account(self, account_id: int) -> None:
        """Delete an account that has no movements and no children.

        Raises:
            AccountNotFound: If the account does not exist
            DependencyError: If it has movements or child accounts
        """
        account = self.require_account(account_id)

        movement_count = self.db.get_account_movement_count(account_id)
        if movement_count > 0:
            raise DependencyError(account_delete_blocked(account_id, movement_count))

        children = self.get_children(account.code)
        if children:
            raise DependencyError(
                f"Cannot delete account {account_id}: it has "
                f"{len(children)} child account{'s' if len(children) != 1 else ''}"
            )

        self.db.delete_account(account_id)
        logger.info("Deleted account %s", account.code)

    def get_children(self, code: str) -> list[Account]:
        """List the direct children of an account code."""
        return [acc for acc in self.list_accounts() if acc.parent_code == code]

    def get_ancestors(self, account: Account) -> list[Account]:
        """Return the parent chain of an account, nearest first."""
        by_code = {acc.code: acc for acc in self.list_accounts()}
        return self.ancestors_from_index(account, by_code)

    @staticmethod
    def ancestors_from_index(account: Account, by_code: Mapping[str, Account]) -> list[Account]:
        """Walk the parent chain using a prebuilt code index."""
        ancestors = []
        seen = {account.code}
        current = account
        while current.parent_code is not None:
            parent = by_code.get(current.parent_code)
            if parent is None or parent.code in seen:
                break
            ancestors.append(parent)
            seen.add(parent.code)
            current = parent
        return ancestors

    @classmethod
    def rollup_account(
        cls, account: Account, level: int, by_code: Mapping[str, Account]
    ) -> Account:
        """Return the ancestor of an account at the given level.

        Accounts already at or above the level are returned unchanged.
        """
        if account.level <= level:
            return account
        for ancestor in cls.ancestors_from_index(account, by_code):
            if ancestor.level <= level:
                return ancestor
        return account
