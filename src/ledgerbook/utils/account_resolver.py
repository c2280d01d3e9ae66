"""Utility for resolving account codes to IDs."""

from ledgerbook.domain.account import AccountService
from ledgerbook.domain.errors import AccountNotFound, NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account code, ID or name to an account ID.

    Account codes are themselves numeric ("1011"), so a string is first
    looked up as a code. "#<id>" always means an ID. Plain integers are IDs.
    Names are the last resort.

    Args:
        account_service: AccountService instance
        account: Account code, "#<id>", ID, or exact account name

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    if isinstance(account, int):
        return account_service.require_account(account).id

    account = account.strip()
    if account.startswith("#"):
        try:
            account_id = int(account[1:])
        except ValueError:
            raise NotFoundError(f"Account '{account}' not found")
        return account_service.require_account(account_id).id

    by_code = account_service.get_account_by_code(account)
    if by_code is not None:
        return by_code.id

    try:
        account_id = int(account)
    except ValueError:
        account_id = None
    if account_id is not None:
        acc = account_service.get_account(account_id)
        if acc is not None and acc.company_id == account_service.company_id:
            return acc.id
        raise AccountNotFound(account_id)

    for acc in account_service.list_accounts():
        if acc.name == account:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
