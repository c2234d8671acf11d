"""Initialize default categories and clients."""

import click
from timebill.domain.errors import DomainError


# (id, name, color)
INITIAL_CATEGORIES = [
    ("dev", "Development", "#3b82f6"),
    ("design", "Design", "#8b5cf6"),
    ("meeting", "Meeting", "#f43f5e"),
    ("research", "Research", "#10b981"),
    ("admin", "Administrative", "#f59e0b"),
]

INITIAL_CLIENTS = [
    {
        "name": "Acme Corporation",
        "contact_name": "John Smith",
        "email": "john@acme.com",
        "phone": "(555) 123-4567",
        "status": "active",
        "address": "123 Main St, Suite 100, San Francisco, CA 94105",
    },
    {
        "name": "Globex Industries",
        "contact_name": "Jane Brown",
        "email": "jane@globex.com",
        "phone": "(555) 987-6543",
        "status": "active",
        "address": "456 Market St, Chicago, IL 60601",
    },
    {
        "name": "Stark Enterprises",
        "contact_name": "Tony Rogers",
        "email": "tony@stark.com",
        "phone": "(555) 111-2222",
        "status": "inactive",
        "address": "789 Broadway, New York, NY 10003",
    },
]


@click.command("init")
@click.option("--force", is_flag=True, help="Add any missing defaults even if data exists")
@click.option("--no-clients", is_flag=True, help="Only create the default categories")
@click.pass_context
def init_data(ctx, force: bool, no_clients: bool):
    """Initialize database with default categories and sample clients."""
    session = ctx.obj["session"]

    if session.categories.list_categories() and not force:
        click.echo("Categories already exist. Use --force to add missing defaults.")
        return

    created = 0
    errors = 0

    for category_id, name, color in INITIAL_CATEGORIES:
        if session.categories.get_category(category_id) is not None:
            continue
        try:
            session.categories.add_category(name=name, color=color, category_id=category_id)
            created += 1
        except DomainError as e:
            click.echo(f"Error creating category '{name}': {e}", err=True)
            errors += 1

    if not no_clients:
        existing = {c.name for c in session.clients.list_clients()}
        for client in INITIAL_CLIENTS:
            if client["name"] in existing:
                continue
            try:
                session.clients.create_client(**client)
                created += 1
            except DomainError as e:
                click.echo(f"Error creating client '{client['name']}': {e}", err=True)
                errors += 1

    click.echo(f"Created {created} record(s).")
    if errors > 0:
        click.echo(f"Encountered {errors} error(s).", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register init command with main CLI."""
    cli.add_command(init_data)
