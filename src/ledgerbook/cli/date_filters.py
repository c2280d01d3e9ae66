"""CLI helpers for date range resolution."""

from datetime import date
import functools

import click

from ledgerbook.utils.date_parser import get_date_range, parse_date


PERIOD_FLAGS = (
    "this-month",
    "last-month",
    "this-quarter",
    "last-quarter",
    "this-year",
    "last-year",
)


def period_options(func):
    """Add --start-date/--end-date, --period and the named period flags.

    The decorated command receives the raw values as ``start_date``,
    ``end_date``, ``period`` and ``period_flags`` (a dict keyed by flag name).
    """
    flag_params = {flag: flag.replace("-", "_") for flag in PERIOD_FLAGS}

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        kwargs["period_flags"] = {
            flag: kwargs.pop(param) for flag, param in flag_params.items()
        }
        return func(*args, **kwargs)

    for flag in reversed(PERIOD_FLAGS):
        wrapper = click.option(f"--{flag}", is_flag=True, help=f"Use {flag.replace('-', ' ')}")(
            wrapper
        )
    wrapper = click.option(
        "--period", help="Explicit period: YYYY, YYYY-MM or YYYY-Qn (e.g. 2024-03)"
    )(wrapper)
    wrapper = click.option("--end-date", help="End date, inclusive (YYYY-MM-DD)")(wrapper)
    wrapper = click.option("--start-date", help="Start date, inclusive (YYYY-MM-DD)")(wrapper)
    return wrapper


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    period: str | None = None,
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags, --period or explicit dates."""
    selected = [name for name, is_set in period_flags.items() if is_set]
    if period:
        selected.append(period)

    if len(selected) > 1:
        click.echo(
            "Error: Only one period option (--period, --this-month, --last-month, "
            "--this-quarter, --last-quarter, --this-year, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if selected and (start_date or end_date):
        click.echo(
            "Error: Period options (--period, --this-month, etc.) cannot be combined with "
            "--start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if selected:
        try:
            start, end = get_date_range(selected[0])
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
    else:
        if start_date:
            try:
                start = parse_date(start_date)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

        if start is None and end is None and default_range is not None:
            start, end = default_range

    return start, end
