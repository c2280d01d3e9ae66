"""Main CLI entry point."""

import logging

import click
from ledgerbook.config import load_config
from ledgerbook.database.factories import create_sqlite_database
from ledgerbook.logging_config import configure_logging

# Import and register all commands at module level
from ledgerbook.cli.commands import (
    account,
    entry,
    ledger,
    report,
    bank,
)

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERBOOK_DB_PATH environment variable)",
    envvar="LEDGERBOOK_DB_PATH",
)
@click.option(
    "--company",
    help="Company to operate on (overrides LEDGERBOOK_COMPANY environment variable)",
    envvar="LEDGERBOOK_COMPANY",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, company: str | None, log_level: str | None):
    """Ledgerbook - double-entry bookkeeping.

    Keep a chart of accounts and a journal, read account ledgers, produce
    financial statements and reconcile bank statements against the books.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        configure_logging(level=log_level)
        try:
            config = load_config(company_id=company)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["config"] = config
        logger.debug("Using company '%s'", config.company_id)


# Register all commands
account.register_commands(cli)
entry.register_commands(cli)
ledger.register_commands(cli)
report.register_commands(cli)
bank.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
