"""Shared domain error messages and error types."""

from typing import Iterable


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as a second running timer or a duplicate submission."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class RemoteError(DomainError):
    """A record store call failed. The operation may be retried."""


class PartialFailureError(DomainError):
    """A multi-step operation was applied to some records but not all.

    Attributes:
        completed: IDs of records the operation was applied to
        failed: IDs of records it could not be applied to
    """

    def __init__(self, message: str, completed: Iterable[int] = (), failed: Iterable[int] = ()):
        super().__init__(message)
        self.completed = tuple(completed)
        self.failed = tuple(failed)


def client_not_found(client: int | str) -> str:
    """Return message for missing client."""
    if isinstance(client, int):
        return f"Client {client} not found"
    return f"Client '{client}' not found"


def time_entry_not_found(entry_id: int) -> str:
    """Return message for missing time entry."""
    return f"Time entry {entry_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def time_entry_delete_blocked(entry_id: int, invoice_id: int) -> str:
    """Return message when an entry is still billed on an invoice."""
    return (
        f"Cannot delete time entry {entry_id}: it is billed on invoice {invoice_id}. "
        "Delete the invoice first."
    )


def time_entry_update_blocked(entry_id: int, invoice_id: int) -> str:
    """Return message when an edit would change a billed entry."""
    return (
        f"Cannot change time entry {entry_id}: it is billed on invoice {invoice_id}. "
        "Delete the invoice first."
    )


def action_in_progress(action: str) -> str:
    """Return message for a re-entrant submission."""
    return f"'{action}' is already in progress"


def invoice_delete_incomplete(invoice_id: int, failed: Iterable[int]) -> str:
    """Return message when some billed entries could not be detached."""
    failed = list(failed)
    noun = "entry" if len(failed) == 1 else "entries"
    return (
        f"Invoice {invoice_id} was kept: {len(failed)} time {noun} could not be detached "
        f"({', '.join(str(i) for i in failed)}). Retry the delete."
    )


def invoice_items_replace_incomplete(invoice_id: int, failed: Iterable[int]) -> str:
    """Return message when old items of an invoice could not be removed."""
    return (
        f"New items of invoice {invoice_id} were stored but old item(s) "
        f"{', '.join(str(i) for i in failed)} could not be removed. Reload and retry."
    )
