"""Invoice generation from unbilled time entries."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from timebill import config
from timebill.domain.client import ClientService
from timebill.domain.entities import (
    Invoice,
    InvoiceGenerationResult,
    InvoiceItem,
    InvoiceStatus,
    TimeEntry,
)
from timebill.domain.errors import ValidationError, client_not_found, time_entry_not_found
from timebill.domain.invoice import InvoiceStore, sum_items
from timebill.domain.invoice_number import next_invoice_number
from timebill.domain.loading import LoadingState
from timebill.domain.time_entry import TimeEntryStore
from timebill.utils.amount_parser import round_amount

logger = logging.getLogger(__name__)


def calculate_due_date(payment_terms: str, issue_date: date) -> date:
    """Calculate due date from payment terms. Unknown terms fall back to Net 15."""
    days = config.PAYMENT_TERMS_DAYS.get(payment_terms, config.PAYMENT_TERMS_DAYS[config.DEFAULT_PAYMENT_TERMS])
    return issue_date + timedelta(days=days)


def describe_item(description: str, project_id: Optional[int]) -> str:
    """Line item description annotated with its project."""
    if project_id is None:
        return description
    return f"{description} (Project #{project_id})"


def build_items(entries: Iterable[TimeEntry]) -> tuple[InvoiceItem, ...]:
    """Group entries by (project, description) into line items.

    Items appear in the order their first entry appears. Quantity is the sum
    of durations, amount the sum of duration times rate, both rounded to two
    decimals after summing. The item rate is the rate of the group's first
    entry.
    """
    groups: dict[tuple[Optional[int], str], list[TimeEntry]] = {}
    for entry in entries:
        groups.setdefault((entry.project_id, entry.description), []).append(entry)

    items = []
    for (project_id, description), members in groups.items():
        quantity = sum((e.duration for e in members), Decimal("0"))
        amount = sum((e.amount for e in members), Decimal("0"))
        items.append(
            InvoiceItem(
                id=None,
                description=describe_item(description, project_id),
                quantity=round_amount(quantity),
                rate=members[0].rate,
                amount=round_amount(amount),
                time_entry_ids=tuple(e.id for e in members),
            )
        )
    return tuple(items)


class InvoiceComposer:
    """Turns a client's selected time entries into a stored draft invoice."""

    def __init__(
        self,
        time_entries: TimeEntryStore,
        invoices: InvoiceStore,
        clients: Optional[ClientService] = None,
        loading: Optional[LoadingState] = None,
    ):
        """Initialize invoice composer.

        Args:
            time_entries: Store holding the entries to bill
            invoices: Store receiving the new invoice
            clients: Optional client directory used to reject unknown clients
            loading: Shared loading state; a private one is created if omitted
        """
        self.time_entries = time_entries
        self.invoices = invoices
        self.clients = clients
        self.loading = loading or LoadingState()

    def _selected_entries(self, client_id: int, entry_ids: Sequence[int]) -> list[TimeEntry]:
        entries = []
        for entry_id in entry_ids:
            entry = self.time_entries.get(entry_id)
            if entry is None:
                raise ValidationError(time_entry_not_found(entry_id))
            if entry.client_id != client_id:
                raise ValidationError(f"Time entry {entry_id} does not belong to client {client_id}")
            if not entry.billable:
                raise ValidationError(f"Time entry {entry_id} is not billable")
            if entry.invoiced:
                raise ValidationError(
                    f"Time entry {entry_id} is already billed on invoice {entry.invoice_id}"
                )
            entries.append(entry)
        return entries

    def compose(
        self,
        client_id: Optional[int],
        entry_ids: Sequence[int],
        tax_rate: Decimal = Decimal("0"),
        issue_date: Optional[date] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        payment_terms: Optional[str] = None,
    ) -> Invoice:
        """Build a draft invoice without storing anything.

        Args:
            client_id: Client to bill
            entry_ids: Selected time entry IDs; each must be billable, uninvoiced
                and belong to the client
            tax_rate: Tax percentage between 0 and 100, rounded to 2 places
            issue_date: Defaults to today
            due_date: Defaults to the issue date plus the payment terms
            notes: Defaults to config.DEFAULT_INVOICE_NOTES
            payment_terms: Defaults to config.DEFAULT_PAYMENT_TERMS

        Returns:
            Invoice without an ID

        Raises:
            ValidationError: If the client or selection is missing or invalid
        """
        if client_id is None:
            raise ValidationError("Please select a client")
        if self.clients is not None and self.clients.get_client(client_id) is None:
            raise ValidationError(client_not_found(client_id))
        entry_ids = list(dict.fromkeys(entry_ids))
        if not entry_ids:
            raise ValidationError("Please select at least one time entry")
        tax_rate = round_amount(Decimal(str(tax_rate)))
        if not Decimal("0") <= tax_rate <= Decimal("100"):
            raise ValidationError(f"Tax rate must be between 0 and 100, got {tax_rate}")

        entries = self._selected_entries(client_id, entry_ids)
        items = build_items(entries)
        subtotal = sum_items(items)
        tax = round_amount(subtotal * tax_rate / Decimal("100"))

        issue_date = issue_date or date.today()
        payment_terms = payment_terms or config.DEFAULT_PAYMENT_TERMS
        due_date = due_date or calculate_due_date(payment_terms, issue_date)

        return Invoice(
            id=None,
            invoice_number=next_invoice_number(self.invoices.all_invoices()),
            client_id=client_id,
            issue_date=issue_date,
            due_date=due_date,
            status=InvoiceStatus.DRAFT,
            items=items,
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
            notes=config.DEFAULT_INVOICE_NOTES if notes is None else notes,
            payment_terms=payment_terms,
            time_entry_ids=tuple(entry_ids),
            tax_rate=tax_rate,
        )

    def generate(
        self,
        client_id: Optional[int],
        entry_ids: Sequence[int],
        tax_rate: Decimal = Decimal("0"),
        issue_date: Optional[date] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        payment_terms: Optional[str] = None,
    ) -> InvoiceGenerationResult:
        """Compose, store and link a draft invoice.

        Validation happens before anything is stored. The invoice is stored
        before any entry is marked; entries are then marked one at a time and
        failures are reported in the result rather than rolled back (see
        ``resume``).

        Raises:
            ValidationError: If the client or selection is missing or invalid
            RemoteError: If the invoice itself cannot be stored
        """
        with self.loading.track("invoice.generate"):
            invoice = self.compose(
                client_id,
                entry_ids,
                tax_rate=tax_rate,
                issue_date=issue_date,
                due_date=due_date,
                notes=notes,
                payment_terms=payment_terms,
            )
            created = self.invoices.create(invoice)
            outcome = self.time_entries.mark_invoiced(created.time_entry_ids, created.id)

        if not outcome.complete:
            logger.warning(
                f"Invoice {created.invoice_number} created but {len(outcome.failed)} "
                f"time entries could not be marked as invoiced: {list(outcome.failed)}"
            )
        return InvoiceGenerationResult(
            invoice=created,
            marked_entry_ids=outcome.updated,
            failed_entry_ids=outcome.failed,
        )

    def resume(self, result: InvoiceGenerationResult) -> InvoiceGenerationResult:
        """Retry marking the entries a previous generation could not mark."""
        if not result.partial:
            return result
        with self.loading.track("invoice.generate"):
            outcome = self.time_entries.mark_invoiced(result.failed_entry_ids, result.invoice.id)
        return InvoiceGenerationResult(
            invoice=result.invoice,
            marked_entry_ids=result.marked_entry_ids + outcome.updated,
            failed_entry_ids=outcome.failed,
        )
