"""Client directory commands."""

import click
from timebill.domain.client import CLIENT_STATUSES
from timebill.domain.errors import DomainError
from timebill.cli.client_resolution import resolve_client_or_exit
from timebill.cli.error_handling import handle_domain_error


@click.group()
def client_group():
    """Manage clients."""
    pass


@client_group.command("list")
@click.option(
    "--status",
    type=click.Choice(CLIENT_STATUSES),
    help="Only show clients with this status",
)
@click.pass_context
def list_clients(ctx, status: str | None):
    """List clients."""
    session = ctx.obj["session"]

    clients = session.clients.list_clients(status=status)
    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\nClients:")
    click.echo("-" * 80)
    for c in clients:
        contact = c.contact_name or ""
        click.echo(f"ID: {c.id:3d} | {c.name:25s} | {contact:18s} | {c.status}")


@client_group.command("add")
@click.argument("name", metavar="CLIENT_NAME")
@click.option("--contact", help="Contact person (required)")
@click.option("--email", help="Billing email address (required)")
@click.option("--phone", help="Phone number (required)")
@click.option("--address", help="Postal address")
@click.option("--inactive", is_flag=True, help="Create the client as inactive")
@click.pass_context
def add_client(
    ctx,
    name: str,
    contact: str | None,
    email: str | None,
    phone: str | None,
    address: str | None,
    inactive: bool,
):
    """Add a client.

    Examples:
        timebill client add "Acme Corporation" --contact "John Smith" --email john@acme.com --phone "(555) 123-4567"
        timebill client add "Old Customer" --contact "Ann Lee" --email ann@old.com --phone 555-0100 --inactive
    """
    session = ctx.obj["session"]

    try:
        client = session.clients.create_client(
            name=name,
            contact_name=contact,
            email=email,
            phone=phone,
            status="inactive" if inactive else "active",
            address=address,
        )
        click.echo(f"Created client '{client.name}' (ID: {client.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("status")
@click.argument("client", metavar="CLIENT")
@click.argument("status", type=click.Choice(CLIENT_STATUSES))
@click.pass_context
def set_client_status(ctx, client: str, status: str):
    """Set the status of a client (by name or ID)."""
    session = ctx.obj["session"]
    client_id = resolve_client_or_exit(ctx, session.clients, client)

    try:
        updated = session.clients.update_client_status(client_id, status)
        click.echo(f"Updated {updated.name}'s status to {updated.status}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register client commands with main CLI."""
    cli.add_command(client_group, name="client")
