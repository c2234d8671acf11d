"""Main CLI entry point."""

import click
from timebill.database.factories import create_sqlite_database
from timebill.domain.session import DashboardSession
from timebill.observability import setup_logging

# Import and register all commands at module level
from timebill.cli.commands import (
    init_data,
    client,
    category,
    entry,
    timer,
    invoice,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TIMEBILL_DB_PATH environment variable)",
    envvar="TIMEBILL_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
@click.option("--log-json", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str, log_json: bool):
    """Timebill - Time tracking and invoicing for freelancers.

    Track time against clients with a stopwatch or manual entries, then turn
    unbilled time into numbered draft invoices.
    """
    ctx.ensure_object(dict)
    setup_logging(level=log_level, fmt="json" if log_json else "text")

    # Open the session only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        session = DashboardSession(db).open()
        ctx.obj["db"] = db
        ctx.obj["session"] = session
        ctx.call_on_close(session.close)


# Register all commands
init_data.register_commands(cli)
client.register_commands(cli)
category.register_commands(cli)
entry.register_commands(cli)
timer.register_commands(cli)
invoice.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
