"""Chart of accounts commands."""

import click
from ledgerbook.cli.account_resolution import require_cli_account
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.entities import AccountType


ACCOUNT_TYPES = [t.value for t in AccountType]


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="NAME")
@click.option(
    "--type",
    "account_type",
    required=True,
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    help="Account type",
)
@click.option("--parent", help="Parent account code")
@click.option("--description", help="Account description")
@click.pass_context
def create_account(
    ctx, code: str, name: str, account_type: str, parent: str | None, description: str | None
):
    """Create a new account.

    The account level follows from the parent: root accounts are level 1.

    Examples:
        ledgerbook account create 10 "Cash and equivalents" --type ASSET
        ledgerbook account create 1011 "Bank - checking" --type ASSET --parent 10
    """
    service = AccountService(ctx.obj["db"], ctx.obj["config"])

    try:
        account_id = service.create_account(
            code=code,
            name=name,
            account_type=AccountType(account_type.upper()),
            parent_code=parent,
            description=description,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    account = service.get_account(account_id)
    click.echo(f"Created account {account.code} '{account.name}' (ID: {account_id})")
    click.echo(f"  Type: {account.type.value}, level {account.level}")


@account_group.command("list")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    help="Only accounts of this type",
)
@click.option("--active-only", is_flag=True, help="Hide inactive accounts")
@click.pass_context
def list_accounts(ctx, account_type: str | None, active_only: bool):
    """List the chart of accounts."""
    service = AccountService(ctx.obj["db"], ctx.obj["config"])

    accounts = service.list_accounts(include_inactive=not active_only)
    if account_type:
        accounts = [acc for acc in accounts if acc.type.value == account_type.upper()]

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    click.echo(f"{'ID':<5} {'Code':<12} {'Name':<36} {'Type':<10} {'Status':<8}")
    click.echo("-" * 80)
    for acc in accounts:
        indent = "  " * (acc.level - 1)
        name = f"{indent}{acc.name}"[:36]
        status = "active" if acc.active else "inactive"
        click.echo(f"{acc.id:<5} {acc.code:<12} {name:<36} {acc.type.value:<10} {status:<8}")


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show one account.

    ACCOUNT can be an account code, "#ID", or name.
    """
    service = AccountService(ctx.obj["db"], ctx.obj["config"])
    acc = require_cli_account(ctx, service, account)

    click.echo(f"Account {acc.code} - {acc.name}")
    click.echo(f"  ID: {acc.id}")
    click.echo(f"  Type: {acc.type.value}")
    nature = "debit" if service.resolve_nature(acc.type).increases_on_debit else "credit"
    click.echo(f"  Nature: increases on {nature}")
    click.echo(f"  Level: {acc.level}")
    if acc.parent_code:
        click.echo(f"  Parent: {acc.parent_code}")
    click.echo(f"  Status: {'active' if acc.active else 'inactive'}")
    if acc.description:
        click.echo(f"  Description: {acc.description}")
    children = service.get_children(acc.code)
    if children:
        click.echo(f"  Children: {', '.join(child.code for child in children)}")


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--description", help="New description (optional)")
@click.pass_context
def rename_account(ctx, account: str, new_name: str, description: str | None) -> None:
    """Rename an account.

    Examples:
        ledgerbook account rename 1011 "Bank - main checking"
    """
    service = AccountService(ctx.obj["db"], ctx.obj["config"])
    account_id = require_cli_account(ctx, service, account).id

    try:
        service.rename_account(account_id, new_name, description=description)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed account to '{new_name}'")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Deactivate an account so it rejects new postings."""
    service = AccountService(ctx.obj["db"], ctx.obj["config"])
    acc = require_cli_account(ctx, service, account)

    service.deactivate_account(acc.id)
    click.echo(f"Deactivated account {acc.code}")


@account_group.command("activate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def activate_account(ctx, account: str) -> None:
    """Reactivate an account."""
    service = AccountService(ctx.obj["db"], ctx.obj["config"])
    acc = require_cli_account(ctx, service, account)

    service.activate_account(acc.id)
    click.echo(f"Activated account {acc.code}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    The account can only be deleted if it has no movements, bank movements
    or child accounts. Deactivate it instead to keep its history.
    """
    service = AccountService(ctx.obj["db"], ctx.obj["config"])
    acc = require_cli_account(ctx, service, account)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account {acc.code} '{acc.name}'?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(acc.id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account {acc.code} '{acc.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
