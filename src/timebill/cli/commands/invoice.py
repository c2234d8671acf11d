"""Invoice commands."""

from decimal import Decimal

import click
from timebill import config
from timebill.domain.entities import Invoice, InvoiceStatus
from timebill.domain.errors import DomainError, invoice_not_found
from timebill.cli.client_resolution import resolve_client_or_exit
from timebill.cli.error_handling import handle_domain_error
from timebill.utils.amount_parser import parse_amount
from timebill.utils.date_parser import parse_date


@click.group()
def invoice_group():
    """Generate and manage invoices."""
    pass


def _parse_entry_ids(ctx, value: str) -> list[int]:
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        click.echo(f"Error: Invalid entry list '{value}': expected comma-separated IDs", err=True)
        ctx.exit(1)


def _require_invoice(ctx, session, invoice_id: int) -> Invoice:
    invoice = session.invoices.get(invoice_id)
    if invoice is None:
        click.echo(f"Error: {invoice_not_found(invoice_id)}", err=True)
        ctx.exit(1)
    return invoice


@invoice_group.command("candidates")
@click.option("--client", required=True, help="Client name or ID")
@click.pass_context
def list_candidates(ctx, client: str):
    """List billable, uninvoiced time entries of a client."""
    session = ctx.obj["session"]
    client_id = resolve_client_or_exit(ctx, session.clients, client)

    entries = session.time_entries.uninvoiced_for_client(client_id)
    if not entries:
        click.echo("No uninvoiced billable time entries.")
        return

    for e in entries:
        click.echo(
            f"{e.id:4d}  {e.date.isoformat()}  {e.duration:6.2f}h  x {e.rate:>7.2f}  "
            f"= {e.amount:>9.2f}  {e.description}"
        )
    stats = session.time_entries.aggregate(entries)
    click.echo(f"{len(entries)} entries, {stats.total_hours}h, ${stats.billable_amount:,.2f}")


@invoice_group.command("generate")
@click.option("--client", required=True, help="Client name or ID")
@click.option("--entries", "entry_list", help="Comma-separated time entry IDs (e.g., 3,4,7)")
@click.option("--all", "all_entries", is_flag=True, help="Bill every uninvoiced billable entry")
@click.option("--tax", default="0", show_default=True, help="Tax rate in percent (0-100)")
@click.option("--issue-date", help="Issue date (defaults to today)")
@click.option("--due-date", help="Due date (defaults to issue date plus payment terms)")
@click.option("--notes", help="Notes printed on the invoice")
@click.option(
    "--terms",
    type=click.Choice(list(config.PAYMENT_TERMS_DAYS)),
    default=config.DEFAULT_PAYMENT_TERMS,
    show_default=True,
    help="Payment terms",
)
@click.pass_context
def generate_invoice(
    ctx,
    client: str,
    entry_list: str | None,
    all_entries: bool,
    tax: str,
    issue_date: str | None,
    due_date: str | None,
    notes: str | None,
    terms: str,
):
    """Generate a draft invoice from time entries.

    Entries are grouped into one line item per project and description.

    Examples:
        timebill invoice generate --client Acme --all --tax 8.5
        timebill invoice generate --client 1 --entries 3,4,7 --terms "Net 30"
    """
    session = ctx.obj["session"]

    if bool(entry_list) == all_entries:
        click.echo("Error: Specify exactly one of --entries or --all", err=True)
        ctx.exit(1)

    client_id = resolve_client_or_exit(ctx, session.clients, client)
    if all_entries:
        entry_ids = [e.id for e in session.time_entries.uninvoiced_for_client(client_id)]
    else:
        entry_ids = _parse_entry_ids(ctx, entry_list)

    try:
        tax_rate = parse_amount(tax)
        issue = parse_date(issue_date) if issue_date else None
        due = parse_date(due_date) if due_date else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        result = session.composer.generate(
            client_id,
            entry_ids,
            tax_rate=tax_rate,
            issue_date=issue,
            due_date=due,
            notes=notes,
            payment_terms=terms,
        )
        if result.partial:
            click.echo(
                f"Warning: could not mark entries {list(result.failed_entry_ids)} as invoiced; retrying",
                err=True,
            )
            result = session.composer.resume(result)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    invoice = result.invoice
    click.echo(
        f"Created invoice {invoice.invoice_number} (ID: {invoice.id}): "
        f"{len(invoice.items)} item(s), total ${invoice.total:,.2f}, due {invoice.due_date}"
    )
    if result.partial:
        click.echo(
            f"Error: time entries {list(result.failed_entry_ids)} are still not marked as invoiced",
            err=True,
        )
        ctx.exit(1)


@invoice_group.command("list")
@click.option("--client", help="Client name or ID")
@click.option("--status", type=click.Choice([s.value for s in InvoiceStatus]), help="Filter by status")
@click.pass_context
def list_invoices(ctx, client: str | None, status: str | None):
    """List invoices, newest first."""
    session = ctx.obj["session"]

    client_id = resolve_client_or_exit(ctx, session.clients, client) if client else None
    invoices = session.invoices.list_invoices(
        client_id=client_id, status=InvoiceStatus(status) if status else None
    )
    if not invoices:
        click.echo("No invoices found.")
        return

    clients = {c.id: c.name for c in session.clients.list_clients()}
    click.echo(f"{'ID':>4s}  {'Number':14s}  {'Issued':10s}  {'Due':10s}  {'Client':20s}  {'Total':>10s}  Status")
    click.echo("-" * 85)
    for inv in invoices:
        click.echo(
            f"{inv.id:4d}  {inv.invoice_number:14s}  {inv.issue_date.isoformat():10s}  "
            f"{inv.due_date.isoformat():10s}  {clients.get(inv.client_id, '')[:20]:20s}  "
            f"{inv.total:>10.2f}  {inv.status.value}"
        )


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.pass_context
def show_invoice(ctx, invoice_id: int):
    """Preview an invoice."""
    session = ctx.obj["session"]
    invoice = session.invoices.set_current(invoice_id)
    if invoice is None:
        click.echo(f"Error: {invoice_not_found(invoice_id)}", err=True)
        ctx.exit(1)

    client = session.clients.get_client(invoice.client_id)
    click.echo(f"Invoice {invoice.invoice_number}  [{invoice.status.value}]")
    click.echo(f"Issued: {invoice.issue_date}   Due: {invoice.due_date}   Terms: {invoice.payment_terms}")
    if client is not None:
        click.echo(f"\nBill to: {client.name}")
        for line in (client.contact_name, client.email, client.address):
            if line:
                click.echo(f"         {line}")

    click.echo(f"\n{'Description':45s}  {'Hours':>7s}  {'Rate':>8s}  {'Amount':>10s}")
    click.echo("-" * 76)
    for item in invoice.items:
        click.echo(
            f"{item.description[:45]:45s}  {item.quantity:>7.2f}  {item.rate:>8.2f}  {item.amount:>10.2f}"
        )
    click.echo("-" * 76)
    click.echo(f"{'Subtotal':>64s}  {invoice.subtotal:>10.2f}")
    if invoice.tax_rate != Decimal("0"):
        click.echo(f"{f'Tax ({invoice.tax_rate}%)':>64s}  {invoice.tax:>10.2f}")
    else:
        click.echo(f"{'Tax':>64s}  {invoice.tax:>10.2f}")
    click.echo(f"{'Total':>64s}  {invoice.total:>10.2f}")
    if invoice.notes:
        click.echo(f"\n{invoice.notes}")


@invoice_group.command("status")
@click.argument("invoice_id", type=int)
@click.argument("status", type=click.Choice([s.value for s in InvoiceStatus]))
@click.pass_context
def set_status(ctx, invoice_id: int, status: str):
    """Change the status of an invoice."""
    session = ctx.obj["session"]
    invoice = _require_invoice(ctx, session, invoice_id)

    try:
        session.invoices.update(invoice_id, status=status)
        click.echo(f"Invoice {invoice.invoice_number} is now {status}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("delete")
@click.argument("invoice_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_invoice(ctx, invoice_id: int, yes: bool):
    """Delete an invoice and release its time entries for billing again."""
    session = ctx.obj["session"]
    invoice = _require_invoice(ctx, session, invoice_id)

    if not yes:
        click.confirm(
            f"Delete invoice {invoice.invoice_number} ({len(invoice.time_entry_ids)} time entries)?",
            abort=True,
        )

    try:
        session.invoices.delete(invoice_id)
        click.echo(f"Deleted invoice {invoice.invoice_number}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
