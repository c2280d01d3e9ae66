"""Account lookup for CLI arguments."""

from __future__ import annotations

from typing import Iterable

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.entities import Account
from ledgerbook.domain.errors import DomainError
from ledgerbook.utils.account_resolver import resolve_account


def require_cli_account(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> Account:
    """Look up an account given as code, "#ID" or name, exiting on failure."""
    try:
        return account_service.require_account(resolve_account(account_service, account))
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def require_cli_accounts(
    ctx: click.Context, account_service: AccountService, accounts: Iterable[str]
) -> list[Account]:
    return [require_cli_account(ctx, account_service, value) for value in accounts]
