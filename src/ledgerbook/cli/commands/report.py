"""Financial statement commands."""

import click
from ledgerbook.cli.account_resolution import require_cli_accounts
from ledgerbook.cli.date_filters import period_options, resolve_cli_date_range
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.classification import (
    CashFlowByCounterpart,
    PrefixClassifier,
    default_income_band,
    group_by_parent,
    group_by_type,
)
from ledgerbook.domain.entities import CashFlowBucket, IncomeBand, StatementGroup
from ledgerbook.domain.statements import StatementService
from ledgerbook.utils.date_parser import parse_date


def _prefix_table(ctx, values, enum_type, option: str) -> dict:
    """Parse PREFIX=VALUE option values into a prefix table."""
    table = {}
    for value in values:
        prefix, sep, label = value.partition("=")
        if not sep or not prefix:
            click.echo(f"Error: Invalid {option} '{value}': expected PREFIX=VALUE", err=True)
            ctx.exit(1)
        try:
            table[prefix.strip()] = enum_type(label.strip().upper())
        except ValueError:
            choices = ", ".join(item.value for item in enum_type)
            click.echo(f"Error: Invalid {option} value '{label}' (choose from {choices})", err=True)
            ctx.exit(1)
    return table


def _group_rule(service: StatementService, group_by: str):
    if group_by == "type":
        return group_by_type
    return group_by_parent(service.account_service.list_accounts())


def _echo_groups(title: str, groups: tuple[StatementGroup, ...], total) -> None:
    click.echo(f"\n{title}")
    for group in groups:
        click.echo(f"  {group.name}")
        for row in group.rows:
            label = f"{row.code} {row.name}".strip()
            click.echo(f"    {label[:50]:<50} {row.balance:>15,.2f}")
        click.echo(f"    {'Total ' + group.name[:44]:<50} {group.total:>15,.2f}")
    click.echo(f"  {'TOTAL ' + title.upper():<52} {total:>15,.2f}")


@click.group()
def report_group():
    """Produce financial statements."""
    pass


@report_group.command("trial-balance")
@click.option("--max-level", type=int, help="Roll accounts up to this hierarchy level")
@period_options
@click.pass_context
def trial_balance(
    ctx,
    max_level: int | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    period_flags: dict[str, bool],
):
    """Show the trial balance for a period."""
    service = StatementService(ctx.obj["db"], ctx.obj["config"])
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags, period=period
    )

    try:
        report = service.trial_balance(start, end, max_level=max_level)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not report.rows:
        click.echo("No activity found.")
        return

    width = 132
    click.echo(f"\nTrial balance ({start or 'beginning'} to {end or 'today'})")
    click.echo("-" * width)
    click.echo(
        f"{'Code':<10} {'Name':<30} {'Open Dr':>14} {'Open Cr':>14} {'Debit':>14} "
        f"{'Credit':>14} {'Close Dr':>14} {'Close Cr':>14}"
    )
    click.echo("-" * width)
    for row in report.rows:
        click.echo(
            f"{row.code:<10} {row.name[:30]:<30} {row.opening_debit:>14,.2f} "
            f"{row.opening_credit:>14,.2f} {row.period_debit:>14,.2f} {row.period_credit:>14,.2f} "
            f"{row.closing_debit:>14,.2f} {row.closing_credit:>14,.2f}"
        )
    click.echo("-" * width)
    click.echo(
        f"{'':<10} {'Totals':<30} {report.total_opening_debit:>14,.2f} "
        f"{report.total_opening_credit:>14,.2f} {report.total_period_debit:>14,.2f} "
        f"{report.total_period_credit:>14,.2f} {report.total_closing_debit:>14,.2f} "
        f"{report.total_closing_credit:>14,.2f}"
    )


@report_group.command("balance-sheet")
@click.option("--as-of", help="Last day included (default: all entries)")
@click.option(
    "--group-by",
    type=click.Choice(["parent", "type"]),
    default="parent",
    show_default=True,
    help="How accounts are grouped",
)
@click.pass_context
def balance_sheet(ctx, as_of: str | None, group_by: str):
    """Show the balance sheet."""
    service = StatementService(ctx.obj["db"], ctx.obj["config"])

    as_of_date = None
    if as_of:
        try:
            as_of_date = parse_date(as_of)
        except ValueError as e:
            click.echo(f"Error: Invalid date: {e}", err=True)
            ctx.exit(1)

    try:
        sheet = service.balance_sheet(as_of_date, _group_rule(service, group_by))
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nBalance sheet as of {as_of_date or 'today'}")
    _echo_groups("Assets", sheet.assets, sheet.total_assets)
    _echo_groups("Liabilities", sheet.liabilities, sheet.total_liabilities)
    _echo_groups("Equity", sheet.equity, sheet.total_equity)
    click.echo(
        f"\n  {'LIABILITIES + EQUITY':<52} "
        f"{sheet.total_liabilities + sheet.total_equity:>15,.2f}"
    )


@report_group.command("income-statement")
@click.option(
    "--group-by",
    type=click.Choice(["parent", "type"]),
    default="parent",
    show_default=True,
    help="How accounts are grouped",
)
@click.option(
    "--band",
    multiple=True,
    help="Income band by code prefix, e.g. 69=COST_OF_SALES (repeatable)",
)
@period_options
@click.pass_context
def income_statement(
    ctx,
    group_by: str,
    band: tuple[str, ...],
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    period_flags: dict[str, bool],
):
    """Show the income statement for a period.

    With --band, also show gross profit and operating income. Unlisted
    income accounts count as revenue, unlisted expenses as operating.
    """
    service = StatementService(ctx.obj["db"], ctx.obj["config"])
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags, period=period
    )
    band_of = None
    if band:
        band_of = PrefixClassifier(
            _prefix_table(ctx, band, IncomeBand, "--band"), default_income_band
        )

    try:
        statement = service.income_statement(
            start, end, _group_rule(service, group_by), band_of=band_of
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nIncome statement ({start or 'beginning'} to {end or 'today'})")
    _echo_groups("Income", statement.income, statement.total_income)
    _echo_groups("Expenses", statement.expenses, statement.total_expense)

    breakdown = statement.breakdown
    if breakdown is not None:
        click.echo("")
        for label, amount in (
            ("Revenue", breakdown.revenue),
            ("Cost of sales", -breakdown.cost_of_sales),
            ("Gross profit", breakdown.gross_profit),
            ("Operating expenses", -breakdown.operating_expenses),
            ("Operating income", breakdown.operating_income),
            ("Other income", breakdown.other_income),
            ("Other expenses", -breakdown.other_expenses),
        ):
            click.echo(f"  {label:<52} {amount:>15,.2f}")
    click.echo(f"\n  {'NET INCOME':<52} {statement.net_income:>15,.2f}")


@report_group.command("cash-flow")
@click.option(
    "--cash",
    "cash_accounts",
    multiple=True,
    required=True,
    help="Cash account (code, #ID or name; repeatable)",
)
@click.option(
    "--bucket",
    multiple=True,
    help="Activity by counterpart code prefix, e.g. 33=INVESTING (repeatable)",
)
@period_options
@click.pass_context
def cash_flow(
    ctx,
    cash_accounts: tuple[str, ...],
    bucket: tuple[str, ...],
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    period_flags: dict[str, bool],
):
    """Show the cash-flow statement for a period.

    Each cash movement is classified by the account on the other side of its
    entry: --bucket prefixes first, then the account type.
    """
    service = StatementService(ctx.obj["db"], ctx.obj["config"])
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags, period=period
    )
    cash = require_cli_accounts(ctx, service.account_service, cash_accounts)
    cash_ids = [acc.id for acc in cash]
    bucket_of = CashFlowByCounterpart(
        service.account_service.list_accounts(),
        cash_ids,
        prefix_table=_prefix_table(ctx, bucket, CashFlowBucket, "--bucket"),
    )

    try:
        statement = service.cash_flow(start, end, cash_ids, bucket_of)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCash flow ({start or 'beginning'} to {end or 'today'})")
    _echo_groups("Operating activities", statement.operating, statement.total_operating)
    _echo_groups("Investing activities", statement.investing, statement.total_investing)
    _echo_groups("Financing activities", statement.financing, statement.total_financing)
    click.echo("")
    click.echo(f"  {'Opening cash':<52} {statement.opening_cash:>15,.2f}")
    click.echo(f"  {'Net change':<52} {statement.net_change:>15,.2f}")
    click.echo(f"  {'Closing cash':<52} {statement.closing_cash:>15,.2f}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
