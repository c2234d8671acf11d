"""Stopwatch commands.

The running timer is stored in the database, so ``timer start`` and
``timer stop`` can run in separate invocations.
"""

import click
from timebill import config
from timebill.domain.errors import DomainError
from timebill.cli.client_resolution import resolve_category_or_exit, resolve_client_or_exit
from timebill.cli.error_handling import handle_domain_error
from timebill.utils.amount_parser import parse_amount
from timebill.utils.time_parser import format_elapsed


@click.group()
def timer_group():
    """Track time with a stopwatch."""
    pass


@timer_group.command("start")
@click.option("--client", help="Client name or ID")
@click.option("--description", default="", help="What you are working on")
@click.option("--project", type=int, help="Project ID")
@click.option(
    "--category",
    default=config.DEFAULT_CATEGORY_ID,
    show_default=True,
    help="Category ID or name",
)
@click.pass_context
def start_timer(ctx, client: str | None, description: str, project: int | None, category: str):
    """Start the timer. Only one timer can run at a time."""
    session = ctx.obj["session"]

    client_id = resolve_client_or_exit(ctx, session.clients, client) if client else None
    category_id = resolve_category_or_exit(ctx, session.categories, category)

    try:
        timer = session.timer.start(
            client_id=client_id,
            project_id=project,
            description=description,
            category_id=category_id,
        )
        click.echo(f"Timer started at {timer.started_at:%H:%M:%S}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@timer_group.command("stop")
@click.option("--rate", help="Hourly rate (defaults to TIMEBILL_DEFAULT_RATE or 85)")
@click.option("--non-billable", is_flag=True, help="Record the session as not chargeable")
@click.pass_context
def stop_timer(ctx, rate: str | None, non_billable: bool):
    """Stop the timer and record the session as a time entry."""
    session = ctx.obj["session"]

    hourly_rate = None
    if rate is not None:
        try:
            hourly_rate = parse_amount(rate)
        except ValueError as e:
            click.echo(f"Error: Invalid rate: {e}", err=True)
            ctx.exit(1)

    try:
        entry = session.timer.stop(rate=hourly_rate, billable=not non_billable)
        click.echo(
            f"Timer stopped. Created time entry {entry.id}: {entry.duration}h "
            f"({entry.start_time}-{entry.end_time})"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@timer_group.command("cancel")
@click.pass_context
def cancel_timer(ctx):
    """Discard the running timer without creating an entry."""
    session = ctx.obj["session"]

    try:
        session.timer.cancel()
        click.echo("Timer cancelled.")
    except DomainError as e:
        handle_domain_error(ctx, e)


@timer_group.command("status")
@click.option("--watch", is_flag=True, help="Refresh the elapsed time every second")
@click.pass_context
def timer_status(ctx, watch: bool):
    """Show the running timer."""
    session = ctx.obj["session"]
    timer = session.timer

    if not timer.is_running:
        click.echo("No timer running.")
        return

    active = timer.active
    client = session.clients.get_client(active.client_id) if active.client_id is not None else None
    click.echo(f"Started:     {active.started_at:%Y-%m-%d %H:%M:%S}")
    click.echo(f"Client:      {client.name if client else '-'}")
    click.echo(f"Description: {active.description or '-'}")
    click.echo(f"Category:    {active.category_id}")

    if not watch:
        click.echo(f"Elapsed:     {format_elapsed(timer.elapsed())}")
        return

    try:
        for elapsed in timer.ticks():
            click.echo(f"\rElapsed:     {format_elapsed(elapsed)}", nl=False)
    except KeyboardInterrupt:
        click.echo()


def register_commands(cli):
    """Register timer commands with main CLI."""
    cli.add_command(timer_group, name="timer")
