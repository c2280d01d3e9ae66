"""Bank reconciliation commands."""

import click
from ledgerbook.cli.account_resolution import require_cli_account
from ledgerbook.cli.date_filters import period_options, resolve_cli_date_range
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.entities import BankDirection
from ledgerbook.domain.reconciliation import ReconciliationService
from ledgerbook.utils.amount_parser import parse_amount
from ledgerbook.utils.date_parser import parse_date


def _reconciled_filter(ctx, pending: bool, reconciled: bool) -> bool | None:
    if pending and reconciled:
        click.echo("Error: --pending and --reconciled cannot be combined.", err=True)
        ctx.exit(1)
    if pending:
        return False
    if reconciled:
        return True
    return None


@click.group()
def bank_group():
    """Record bank statement lines and reconcile them."""
    pass


@bank_group.command("add")
@click.argument("account", metavar="ACCOUNT")
@click.option("--date", "line_date", required=True, help="Statement date (YYYY-MM-DD)")
@click.option(
    "--amount",
    required=True,
    help="Amount; deposits positive, withdrawals negative unless --direction is given",
)
@click.option(
    "--direction",
    type=click.Choice([d.value for d in BankDirection], case_sensitive=False),
    help="Explicit direction (amount must then be positive)",
)
@click.option("--description", help="Statement text")
@click.option("--reference", help="Bank reference")
@click.pass_context
def add_bank_movement(
    ctx,
    account: str,
    line_date: str,
    amount: str,
    direction: str | None,
    description: str | None,
    reference: str | None,
):
    """Record one bank statement line for ACCOUNT as pending.

    Examples:
        ledgerbook bank add 1011 --date 2024-03-20 --amount 1500 --description "Deposit"
        ledgerbook bank add 1011 --date 2024-03-21 --amount -250.00
    """
    service = ReconciliationService(ctx.obj["db"], ctx.obj["config"])
    account_id = require_cli_account(ctx, service.account_service, account).id

    try:
        when = parse_date(line_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        value = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        bank_movement_id = service.record_bank_movement(
            account_id=account_id,
            date=when,
            amount=value,
            direction=BankDirection(direction.upper()) if direction else None,
            description=description,
            reference=reference,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded bank movement {bank_movement_id}")


@bank_group.command("list")
@click.option("--account", help="Bank account (code, #ID or name)")
@click.option("--pending", is_flag=True, help="Only pending movements")
@click.option("--reconciled", is_flag=True, help="Only reconciled movements")
@click.option("--book", is_flag=True, help="List accounting movements instead (needs --account)")
@period_options
@click.pass_context
def list_bank_movements(
    ctx,
    account: str | None,
    pending: bool,
    reconciled: bool,
    book: bool,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    period_flags: dict[str, bool],
):
    """List bank movements, or with --book the accounting side."""
    service = ReconciliationService(ctx.obj["db"], ctx.obj["config"])
    state = _reconciled_filter(ctx, pending, reconciled)
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags, period=period
    )
    account_id = None
    if account:
        account_id = require_cli_account(ctx, service.account_service, account).id

    if book:
        if account_id is None:
            click.echo("Error: --book requires --account.", err=True)
            ctx.exit(1)
        pairs = service.list_book_movements(account_id, start, end, reconciled=state)
        if not pairs:
            click.echo("No movements found.")
            return
        click.echo(f"\n{'ID':<6} {'Date':<12} {'Entry':<10} {'Amount':>14}  {'State':<11} {'Description':<30}")
        click.echo("-" * 90)
        for entry, movement in pairs:
            amount = movement.debit - movement.credit
            description = (movement.description or entry.description)[:30]
            click.echo(
                f"{movement.id:<6} {str(entry.date):<12} {entry.number[:10]:<10} {amount:>14,.2f}  "
                f"{movement.state.value:<11} {description:<30}"
            )
        return

    movements = service.list_bank_movements(account_id, start, end, reconciled=state)
    if not movements:
        click.echo("No bank movements found.")
        return
    click.echo(f"\n{'ID':<6} {'Date':<12} {'Amount':>14}  {'State':<11} {'Linked':<7} {'Description':<30}")
    click.echo("-" * 90)
    for bm in movements:
        linked = str(bm.linked_movement_id) if bm.linked_movement_id else ""
        click.echo(
            f"{bm.id:<6} {str(bm.date):<12} {bm.signed_amount:>14,.2f}  {bm.state.value:<11} "
            f"{linked:<7} {(bm.description or '')[:30]:<30}"
        )


@bank_group.command("match")
@click.argument("bank_movement_id", type=int)
@click.argument("movement_id", type=int)
@click.pass_context
def match(ctx, bank_movement_id: int, movement_id: int):
    """Reconcile bank movement BANK_MOVEMENT_ID with accounting movement MOVEMENT_ID."""
    service = ReconciliationService(ctx.obj["db"], ctx.obj["config"])
    try:
        service.match(bank_movement_id, movement_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Matched bank movement {bank_movement_id} with movement {movement_id}")


@bank_group.command("revert")
@click.argument("bank_movement_id", type=int)
@click.argument("movement_id", type=int)
@click.pass_context
def revert(ctx, bank_movement_id: int, movement_id: int):
    """Undo the reconciliation of a bank movement and an accounting movement."""
    service = ReconciliationService(ctx.obj["db"], ctx.obj["config"])
    try:
        service.revert(bank_movement_id, movement_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reverted bank movement {bank_movement_id} from movement {movement_id}")


@bank_group.command("summary")
@click.option("--account", help="Bank account (code, #ID or name)")
@period_options
@click.pass_context
def summary(
    ctx,
    account: str | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    period_flags: dict[str, bool],
):
    """Summarize reconciled and pending movements on both sides."""
    service = ReconciliationService(ctx.obj["db"], ctx.obj["config"])
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags, period=period
    )
    account_id = None
    if account:
        account_id = require_cli_account(ctx, service.account_service, account).id

    try:
        result = service.summary(account_id, start, end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo("\nReconciliation summary")
    click.echo("-" * 60)
    click.echo(f"{'':<14} {'Count':>8} {'Reconciled':>12} {'Amount':>14}")
    click.echo(
        f"{'Bank':<14} {result.bank_total:>8} {result.bank_reconciled:>12} "
        f"{result.bank_reconciled_amount:>14,.2f}"
    )
    click.echo(
        f"{'Books':<14} {result.book_total:>8} {result.book_reconciled:>12} "
        f"{result.book_reconciled_amount:>14,.2f}"
    )
    click.echo("-" * 60)
    click.echo(f"Pending movements: {result.pending_count}")
    click.echo(f"  Bank pending:  {result.bank_pending_amount:>14,.2f}")
    click.echo(f"  Books pending: {result.book_pending_amount:>14,.2f}")
    click.echo(f"Unreconciled difference: {result.unreconciled_difference:,.2f}")


def register_commands(cli):
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")
