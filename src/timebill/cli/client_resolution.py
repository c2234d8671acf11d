"""CLI helpers for client and category resolution."""

from __future__ import annotations

import click
from timebill.domain.category import CategoryService
from timebill.domain.client import ClientService
from timebill.domain.errors import NotFoundError


def resolve_client_or_exit(ctx: click.Context, clients: ClientService, client: str | int) -> int:
    """Resolve client name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return clients.resolve_client(client)
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_category_or_exit(ctx: click.Context, categories: CategoryService, category: str) -> str:
    """Resolve category ID or name, or exit with a CLI error."""
    found = categories.find_category(category)
    if found is None:
        click.echo(f"Error: Category '{category}' not found", err=True)
        ctx.exit(1)
    return found.id
