"""Category management commands."""

import click
from timebill.domain.errors import DomainError
from timebill.cli.error_handling import handle_domain_error


@click.group()
def category_group():
    """Manage time tracking categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories."""
    session = ctx.obj["session"]

    categories = session.categories.list_categories()
    if not categories:
        click.echo("No categories found. Run 'timebill init' to create the defaults.")
        return

    click.echo("\nCategories:")
    click.echo("-" * 50)
    for cat in categories:
        click.echo(f"{cat.id:12s} | {cat.name:20s} | {cat.color}")


@category_group.command("add")
@click.argument("name")
@click.option("--color", required=True, help="Display color as #rrggbb")
@click.option("--id", "category_id", help="Category ID (generated if omitted)")
@click.pass_context
def add_category(ctx, name: str, color: str, category_id: str | None):
    """Add a category.

    Examples:
        timebill category add "Support" --color "#22c55e"
        timebill category add "Writing" --color "#eab308" --id writing
    """
    session = ctx.obj["session"]

    try:
        category = session.categories.add_category(name=name, color=color, category_id=category_id)
        click.echo(f"Created category '{category.name}' (ID: {category.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
