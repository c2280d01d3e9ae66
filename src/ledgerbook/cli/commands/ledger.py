"""General ledger command."""

import click
from ledgerbook.cli.account_resolution import require_cli_account
from ledgerbook.cli.date_filters import period_options, resolve_cli_date_range
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.ledger import LedgerService


@click.command("ledger")
@click.argument("account", metavar="ACCOUNT")
@period_options
@click.pass_context
def show_ledger(
    ctx,
    account: str,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    period_flags: dict[str, bool],
):
    """Show the ledger of ACCOUNT with a running balance.

    ACCOUNT can be an account code, "#ID", or name. Only confirmed entries
    are included.

    Examples:
        ledgerbook ledger 1011 --period 2024-03
        ledgerbook ledger 1011 --start-date 2024-01-01 --end-date 2024-06-30
    """
    service = LedgerService(ctx.obj["db"], ctx.obj["config"])
    account_id = require_cli_account(ctx, service.account_service, account).id
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags,
        period=period,
    )

    try:
        report = service.get_ledger(account_id, start, end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    acc = report.account
    span = f"{start or 'beginning'} to {end or 'today'}"
    click.echo(f"\nLedger {acc.code} - {acc.name} ({span})")
    click.echo("-" * 112)
    click.echo(
        f"{'Date':<12} {'Entry':<10} {'Description':<34} {'Reference':<12} "
        f"{'Debit':>13} {'Credit':>13} {'Balance':>14}"
    )
    click.echo("-" * 112)
    click.echo(f"{'':<12} {'':<10} {'Opening balance':<34} {'':<12} {'':>13} {'':>13} "
               f"{report.opening_balance:>14,.2f}")
    for line in report.lines:
        click.echo(
            f"{str(line.date):<12} {line.entry_number[:10]:<10} {line.description[:34]:<34} "
            f"{(line.reference or '')[:12]:<12} {line.debit:>13,.2f} {line.credit:>13,.2f} "
            f"{line.running_balance:>14,.2f}"
        )
    click.echo("-" * 112)
    click.echo(
        f"{'':<12} {'':<10} {'Totals':<34} {'':<12} {report.total_debit:>13,.2f} "
        f"{report.total_credit:>13,.2f} {report.closing_balance:>14,.2f}"
    )


def register_commands(cli):
    """Register ledger command with main CLI."""
    cli.add_command(show_ledger)
