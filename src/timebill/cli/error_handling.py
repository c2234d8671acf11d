"""CLI error handling helpers."""

import click

from timebill.domain.errors import DomainError, PartialFailureError, RemoteError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, RemoteError):
        click.echo("The database could not be reached. Please try again.", err=True)
    elif isinstance(error, PartialFailureError) and error.completed:
        click.echo(
            f"Already applied to: {', '.join(str(i) for i in error.completed)}",
            err=True,
        )
    ctx.exit(1)
