"""Time entry commands."""

import click
from timebill import config
from timebill.domain.entities import BillableFilter, EntryFilter
from timebill.domain.errors import DomainError, time_entry_not_found
from timebill.cli.client_resolution import resolve_category_or_exit, resolve_client_or_exit
from timebill.cli.error_handling import handle_domain_error
from timebill.utils.amount_parser import parse_amount
from timebill.utils.date_parser import parse_date


@click.group()
def entry_group():
    """Record and review time entries."""
    pass


def _parse_date_or_exit(ctx, value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def _parse_rate_or_exit(ctx, value: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid rate: {e}", err=True)
        ctx.exit(1)


@entry_group.command("add")
@click.option("--client", required=True, help="Client name or ID")
@click.option("--description", required=True, help="What the time was spent on")
@click.option("--start", "start_time", required=True, help="Start time (HH:MM)")
@click.option("--end", "end_time", required=True, help="End time (HH:MM)")
@click.option(
    "--date",
    "entry_date",
    default="today",
    show_default=True,
    help="Entry date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--project", type=int, help="Project ID")
@click.option(
    "--category",
    default=config.DEFAULT_CATEGORY_ID,
    show_default=True,
    help="Category ID or name",
)
@click.option("--rate", help="Hourly rate (defaults to TIMEBILL_DEFAULT_RATE or 85)")
@click.option("--non-billable", is_flag=True, help="Mark the time as not chargeable")
@click.pass_context
def add_entry(
    ctx,
    client: str,
    description: str,
    start_time: str,
    end_time: str,
    entry_date: str,
    project: int | None,
    category: str,
    rate: str | None,
    non_billable: bool,
):
    """Add a time entry manually.

    An end time earlier than the start time is read as the next day.

    Examples:
        timebill entry add --client Acme --description "API work" --start 09:00 --end 11:30
        timebill entry add --client 2 --description "Sync" --start 14:00 --end 14:45 --category meeting
    """
    session = ctx.obj["session"]

    client_id = resolve_client_or_exit(ctx, session.clients, client)
    category_id = resolve_category_or_exit(ctx, session.categories, category)
    day = _parse_date_or_exit(ctx, entry_date)
    hourly_rate = _parse_rate_or_exit(ctx, rate) if rate is not None else None

    try:
        entry = session.time_entries.add(
            client_id=client_id,
            description=description,
            date=day,
            start_time=start_time,
            end_time=end_time,
            project_id=project,
            category_id=category_id,
            rate=hourly_rate,
            billable=not non_billable,
        )
        click.echo(
            f"Added time entry {entry.id}: {entry.duration}h on {entry.date} "
            f"({entry.start_time}-{entry.end_time})"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@entry_group.command("update")
@click.argument("entry_id", type=int)
@click.option("--client", help="Client name or ID")
@click.option("--description", help="New description")
@click.option("--start", "start_time", help="Start time (HH:MM)")
@click.option("--end", "end_time", help="End time (HH:MM)")
@click.option("--date", "entry_date", help="Entry date")
@click.option("--project", type=int, help="Project ID")
@click.option("--category", help="Category ID or name")
@click.option("--rate", help="Hourly rate")
@click.option("--billable/--non-billable", default=None, help="Change chargeability")
@click.pass_context
def update_entry(
    ctx,
    entry_id: int,
    client: str | None,
    description: str | None,
    start_time: str | None,
    end_time: str | None,
    entry_date: str | None,
    project: int | None,
    category: str | None,
    rate: str | None,
    billable: bool | None,
):
    """Update fields of a time entry.

    Changing the start or end time recomputes the duration.
    """
    session = ctx.obj["session"]

    fields = {}
    if client is not None:
        fields["client_id"] = resolve_client_or_exit(ctx, session.clients, client)
    if description is not None:
        fields["description"] = description
    if start_time is not None:
        fields["start_time"] = start_time
    if end_time is not None:
        fields["end_time"] = end_time
    if entry_date is not None:
        fields["date"] = _parse_date_or_exit(ctx, entry_date)
    if project is not None:
        fields["project_id"] = project
    if category is not None:
        fields["category_id"] = resolve_category_or_exit(ctx, session.categories, category)
    if rate is not None:
        fields["rate"] = _parse_rate_or_exit(ctx, rate)
    if billable is not None:
        fields["billable"] = billable

    if not fields:
        click.echo("Nothing to update.")
        return

    try:
        entry = session.time_entries.update(entry_id, **fields)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if entry is None:
        click.echo(f"Error: {time_entry_not_found(entry_id)}", err=True)
        ctx.exit(1)
    click.echo(f"Updated time entry {entry.id}: {entry.duration}h at {entry.rate}/h")


@entry_group.command("list")
@click.option("--client", help="Client name or ID")
@click.option("--category", help="Category ID or name")
@click.option(
    "--billable",
    type=click.Choice([f.value for f in BillableFilter]),
    default=BillableFilter.ALL.value,
    show_default=True,
    help="Filter by chargeability",
)
@click.option("--date", "entry_date", help="Only entries on this date")
@click.pass_context
def list_entries(ctx, client: str | None, category: str | None, billable: str, entry_date: str | None):
    """List time entries, newest day first, with totals."""
    session = ctx.obj["session"]

    entry_filter = EntryFilter(
        client_id=resolve_client_or_exit(ctx, session.clients, client) if client else None,
        category_id=resolve_category_or_exit(ctx, session.categories, category) if category else None,
        billable=BillableFilter(billable),
        date=_parse_date_or_exit(ctx, entry_date) if entry_date else None,
    )

    entries = session.time_entries.sorted_entries(entry_filter)
    if not entries:
        click.echo("No time entries found.")
        return

    clients = {c.id: c.name for c in session.clients.list_clients()}

    click.echo(
        f"{'ID':>4s}  {'Date':10s}  {'Time':11s}  {'Hours':>6s}  {'Client':20s}  "
        f"{'Category':10s}  {'Description':30s}  {'Status':8s}"
    )
    click.echo("-" * 115)
    for e in entries:
        client_name = clients.get(e.client_id, "")[:20]
        description = e.description[:30]
        if e.invoiced:
            status = "invoiced"
        elif e.billable:
            status = "billable"
        else:
            status = "-"
        click.echo(
            f"{e.id:4d}  {e.date.isoformat():10s}  {e.start_time}-{e.end_time}  {e.duration:6.2f}  "
            f"{client_name:20s}  {(e.category_id or '')[:10]:10s}  {description:30s}  {status:8s}"
        )

    stats = session.time_entries.aggregate(entries)
    click.echo("-" * 115)
    click.echo(
        f"Total: {stats.total_hours}h | Billable: ${stats.billable_amount:,.2f} | "
        f"Projects: {stats.project_count} | Days: {stats.day_count}"
    )


@entry_group.command("delete")
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_entry(ctx, entry_id: int, yes: bool):
    """Delete a time entry. Entries billed on an invoice cannot be deleted."""
    session = ctx.obj["session"]

    entry = session.time_entries.get(entry_id)
    if entry is None:
        click.echo(f"Error: {time_entry_not_found(entry_id)}", err=True)
        ctx.exit(1)

    if not yes:
        click.confirm(f"Delete time entry {entry_id} ({entry.description})?", abort=True)

    try:
        session.time_entries.delete(entry_id)
        click.echo(f"Deleted time entry {entry_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register time entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
