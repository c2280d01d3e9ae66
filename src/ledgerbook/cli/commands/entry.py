"""Journal entry commands."""

import click
from ledgerbook.cli.account_resolution import require_cli_account
from ledgerbook.cli.date_filters import period_options, resolve_cli_date_range
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.entities import EntryStatus, JournalEntry, Movement
from ledgerbook.domain.journal import JournalEntryService
from ledgerbook.utils.amount_parser import parse_positive_amount
from ledgerbook.utils.date_parser import parse_date


def _parse_lines(ctx, service: JournalEntryService, values, side: str) -> list[Movement]:
    """Parse ACCOUNT=AMOUNT option values into movements on one side."""
    lines = []
    for value in values:
        account, sep, amount_str = value.rpartition("=")
        if not sep or not account:
            click.echo(f"Error: Invalid --{side} '{value}': expected ACCOUNT=AMOUNT", err=True)
            ctx.exit(1)
        account_id = require_cli_account(ctx, service.account_service, account).id
        try:
            amount = parse_positive_amount(amount_str)
        except ValueError as e:
            click.echo(f"Error: Invalid --{side} amount: {e}", err=True)
            ctx.exit(1)
        if side == "debit":
            lines.append(Movement(id=None, account_id=account_id, debit=amount))
        else:
            lines.append(Movement(id=None, account_id=account_id, credit=amount))
    return lines


def _echo_entry(service: JournalEntryService, entry: JournalEntry) -> None:
    accounts = {acc.id: acc for acc in service.account_service.list_accounts()}
    click.echo(f"\nEntry {entry.number} (ID: {entry.id}) - {entry.status.value}")
    click.echo(f"  Date: {entry.date}")
    click.echo(f"  Description: {entry.description}")
    if entry.reference:
        click.echo(f"  Reference: {entry.reference}")
    click.echo("-" * 78)
    click.echo(f"{'#':<3} {'Account':<40} {'Debit':>15} {'Credit':>15}")
    click.echo("-" * 78)
    for movement in entry.movements:
        acc = accounts.get(movement.account_id)
        label = f"{acc.code} {acc.name}" if acc else f"#{movement.account_id}"
        marker = " *" if movement.reconciled else ""
        click.echo(
            f"{movement.position:<3} {label[:40]:<40} "
            f"{movement.debit:>15,.2f} {movement.credit:>15,.2f}{marker}"
        )
    click.echo("-" * 78)
    click.echo(f"{'':<3} {'Total':<40} {entry.total_debit:>15,.2f} {entry.total_credit:>15,.2f}")


@click.group()
def entry_group():
    """Manage journal entries."""
    pass


@entry_group.command("add")
@click.argument("number", metavar="NUMBER")
@click.option(
    "--date",
    "entry_date",
    required=True,
    help="Entry date (YYYY-MM-DD or relative like 'today')",
)
@click.option("--description", required=True, help="Entry description")
@click.option("--debit", multiple=True, help="Debit line as ACCOUNT=AMOUNT (repeatable)")
@click.option("--credit", multiple=True, help="Credit line as ACCOUNT=AMOUNT (repeatable)")
@click.option("--reference", help="External reference")
@click.option("--confirm", is_flag=True, help="Validate and confirm immediately")
@click.pass_context
def add_entry(
    ctx,
    number: str,
    entry_date: str,
    description: str,
    debit: tuple[str, ...],
    credit: tuple[str, ...],
    reference: str | None,
    confirm: bool,
):
    """Add a journal entry as a draft (or confirmed with --confirm).

    Debit lines come first, then credit lines.

    Examples:
        ledgerbook entry add A-001 --date 2024-03-15 --description "Sale" \\
            --debit 1011=1180 --credit 7011=1000 --credit 40111=180 --confirm
    """
    service = JournalEntryService(ctx.obj["db"], ctx.obj["config"])

    try:
        when = parse_date(entry_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    lines = _parse_lines(ctx, service, debit, "debit") + _parse_lines(
        ctx, service, credit, "credit"
    )

    try:
        entry_id = service.create_entry(
            number=number,
            date=when,
            description=description,
            lines=lines,
            reference=reference,
            confirm=confirm,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    entry = service.require_entry(entry_id)
    click.echo(f"Created entry {entry.number} (ID: {entry_id}) as {entry.status.value}")
    if not confirm and not service.validator.is_balanced(entry):
        delta = abs(entry.total_debit - entry.total_credit)
        click.echo(f"Warning: entry is not balanced (difference {delta:,.2f})")


@entry_group.command("confirm")
@click.argument("entry_id", type=int)
@click.pass_context
def confirm_entry(ctx, entry_id: int):
    """Validate a draft entry and confirm it."""
    service = JournalEntryService(ctx.obj["db"], ctx.obj["config"])
    try:
        entry = service.confirm_entry(entry_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Confirmed entry {entry.number} (ID: {entry_id})")


@entry_group.command("void")
@click.argument("entry_id", type=int)
@click.pass_context
def void_entry(ctx, entry_id: int):
    """Void a confirmed entry; it no longer counts in any report."""
    service = JournalEntryService(ctx.obj["db"], ctx.obj["config"])
    try:
        service.void_entry(entry_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Voided entry {entry_id}")


@entry_group.command("reverse")
@click.argument("entry_id", type=int)
@click.option("--number", required=True, help="Number for the reversing entry")
@click.option("--date", "entry_date", help="Date of the reversing entry (default: original date)")
@click.option("--description", help="Description (default: 'Reversal of <number>')")
@click.pass_context
def reverse_entry(
    ctx, entry_id: int, number: str, entry_date: str | None, description: str | None
):
    """Post a confirmed entry that undoes ENTRY_ID."""
    service = JournalEntryService(ctx.obj["db"], ctx.obj["config"])

    when = None
    if entry_date:
        try:
            when = parse_date(entry_date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        new_id = service.reverse_entry(entry_id, number, date=when, description=description)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created reversing entry {number} (ID: {new_id})")


@entry_group.command("delete")
@click.argument("entry_id", type=int)
@click.pass_context
def delete_entry(ctx, entry_id: int):
    """Delete a draft entry."""
    service = JournalEntryService(ctx.obj["db"], ctx.obj["config"])
    try:
        service.delete_draft(entry_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted draft entry {entry_id}")


@entry_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in EntryStatus], case_sensitive=False),
    help="Only entries with this status",
)
@click.option("--account", help="Only entries touching this account (code, #ID or name)")
@period_options
@click.pass_context
def list_entries(
    ctx,
    status: str | None,
    account: str | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    period_flags: dict[str, bool],
):
    """List journal entries."""
    service = JournalEntryService(ctx.obj["db"], ctx.obj["config"])
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags,
        period=period,
    )
    account_id = None
    if account:
        account_id = require_cli_account(ctx, service.account_service, account).id

    entries = service.list_entries(
        status=EntryStatus(status.upper()) if status else None,
        start_date=start,
        end_date=end,
        account_id=account_id,
    )
    if not entries:
        click.echo("No entries found.")
        return

    click.echo(f"\nFound {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}:")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Number':<12} {'Date':<12} {'Status':<10} {'Amount':>15}  {'Description':<40}"
    )
    click.echo("-" * 100)
    for entry in entries:
        click.echo(
            f"{entry.id:<6} {entry.number:<12} {str(entry.date):<12} {entry.status.value:<10} "
            f"{entry.total_debit:>15,.2f}  {entry.description[:40]:<40}"
        )


@entry_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show one entry with its movements (* marks reconciled movements)."""
    service = JournalEntryService(ctx.obj["db"], ctx.obj["config"])
    try:
        entry = service.require_entry(entry_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    _echo_entry(service, entry)


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
