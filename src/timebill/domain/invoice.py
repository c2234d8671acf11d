"""Invoice store."""

import logging
from collections import defaultdict
from dataclasses import replace
from decimal import Decimal
from typing import Any, Iterable, Optional

from timebill.database.base import Database
from timebill.database.mappers import (
    invoice_item_to_domain,
    invoice_item_to_record,
    invoice_to_domain,
    invoice_to_record,
)
from timebill.domain.entities import Invoice, InvoiceItem, InvoiceStatus
from timebill.domain.errors import (
    DomainError,
    PartialFailureError,
    ValidationError,
    invoice_delete_incomplete,
    invoice_items_replace_incomplete,
)
from timebill.domain.loading import LoadingState
from timebill.domain.time_entry import TimeEntryStore
from timebill.utils.amount_parser import round_amount

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"status", "issue_date", "due_date", "notes", "payment_terms", "items", "tax", "tax_rate"}
)


def sum_items(items: Iterable[InvoiceItem]) -> Decimal:
    """Subtotal of a set of invoice items."""
    return round_amount(sum((item.amount for item in items), Decimal("0")))


def coerce_status(status: Any) -> InvoiceStatus:
    """Convert a status name to InvoiceStatus.

    Raises:
        ValidationError: If status is not a known status
    """
    try:
        return InvoiceStatus(status)
    except ValueError:
        valid = ", ".join(s.value for s in InvoiceStatus)
        raise ValidationError(f"Unknown invoice status '{status}'. Valid statuses: {valid}")


class InvoiceStore:
    """Owns the invoices of a session.

    Deleting an invoice detaches the time entries it billed before the invoice
    itself is removed.
    """

    def __init__(self, db: Database, time_entries: TimeEntryStore, loading: Optional[LoadingState] = None):
        """Initialize invoice store.

        Args:
            db: Database instance
            time_entries: Store holding the entries invoices refer to
            loading: Shared loading state; a private one is created if omitted
        """
        self.db = db
        self.time_entries = time_entries
        self.loading = loading or LoadingState()
        self._invoices: list[Invoice] = []
        self._current_id: Optional[int] = None

    def load(self) -> None:
        """Replace in-memory invoices with the contents of the record store."""
        with self.loading.track("invoice.load"):
            invoice_records = self.db.invoices.fetch_all()
            item_records = self.db.invoice_items.fetch_all()

        items_by_invoice = defaultdict(list)
        for item in item_records:
            items_by_invoice[item["invoice_id"]].append(item)

        self._invoices = [invoice_to_domain(r, items_by_invoice[r["id"]]) for r in invoice_records]
        self._current_id = None
        logger.debug(f"Loaded {len(self._invoices)} invoices")

    @property
    def current(self) -> Optional[Invoice]:
        """Invoice selected for preview, if any."""
        if self._current_id is None:
            return None
        return self.get(self._current_id)

    def set_current(self, invoice_id: int) -> Optional[Invoice]:
        """Select an invoice for preview. Selects nothing if the ID is unknown."""
        invoice = self.get(invoice_id)
        self._current_id = invoice.id if invoice is not None else None
        return invoice

    def clear_current(self) -> None:
        """Deselect the preview invoice."""
        self._current_id = None

    def get(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID, or None if not found."""
        for invoice in self._invoices:
            if invoice.id == invoice_id:
                return invoice
        return None

    def list_invoices(
        self, client_id: Optional[int] = None, status: Optional[InvoiceStatus] = None
    ) -> list[Invoice]:
        """List invoices, newest issue date first."""
        invoices = [
            inv
            for inv in self._invoices
            if (client_id is None or inv.client_id == client_id)
            and (status is None or inv.status == status)
        ]
        return sorted(invoices, key=lambda inv: (inv.issue_date, inv.invoice_number), reverse=True)

    def all_invoices(self) -> tuple[Invoice, ...]:
        """Every invoice in insertion order."""
        return tuple(self._invoices)

    def _create_items(self, invoice_id: int, items: Iterable[InvoiceItem]) -> tuple[InvoiceItem, ...]:
        """Store items for an invoice, all or none."""
        created = []
        try:
            for item in items:
                record = self.db.invoice_items.create(invoice_item_to_record(item, invoice_id))
                created.append(invoice_item_to_domain(record))
        except DomainError:
            for item in created:
                self.db.invoice_items.delete(item.id)
            raise
        return tuple(created)

    def _replace_items(self, invoice: Invoice, items: Iterable[InvoiceItem]) -> tuple[InvoiceItem, ...]:
        """Store items for an invoice, then remove its old ones.

        If a new item cannot be stored, the ones already stored are removed
        again and the old set is left in place.

        Raises:
            PartialFailureError: If some old items could not be removed
        """
        try:
            created = self._create_items(invoice.id, items)
        except DomainError:
            logger.error(f"Failed to store new items of invoice {invoice.id}; keeping the old ones")
            raise

        removed, failed = [], []
        for old_item in invoice.items:
            if old_item.id is None:
                continue
            try:
                self.db.invoice_items.delete(old_item.id)
            except DomainError as e:
                logger.warning(f"Failed to remove item {old_item.id} of invoice {invoice.id}: {e}")
                failed.append(old_item.id)
            else:
                removed.append(old_item.id)
        if failed:
            raise PartialFailureError(
                invoice_items_replace_incomplete(invoice.id, failed),
                completed=removed,
                failed=failed,
            )
        return created

    def create(self, invoice: Invoice) -> Invoice:
        """Persist a new invoice with its items and select it as current.

        If an item cannot be stored, the invoice record is removed again so
        the record store never holds an invoice without its items.

        Returns:
            The stored Invoice with invoice and item IDs assigned

        Raises:
            ValidationError: If the invoice already has an ID or its dates are inverted
            RemoteError: If the record store fails
        """
        if invoice.id is not None:
            raise ValidationError(f"Invoice {invoice.id} already exists")
        if invoice.due_date < invoice.issue_date:
            raise ValidationError("Due date cannot be before issue date")

        with self.loading.track("invoice.create"):
            record = self.db.invoices.create(invoice_to_record(invoice))
            invoice_id = record["id"]
            try:
                items = self._create_items(invoice_id, invoice.items)
            except DomainError:
                logger.error(f"Failed to store items of invoice {invoice_id}; removing invoice record")
                self.db.invoices.delete(invoice_id)
                raise

        created = replace(invoice, id=invoice_id, items=items)
        self._invoices.append(created)
        self._current_id = invoice_id
        logger.info(f"Created invoice {created.invoice_number} (ID {invoice_id}, total {created.total})")
        return created

    def update(self, invoice_id: int, **fields: Any) -> Optional[Invoice]:
        """Merge fields into an invoice.

        Replacing ``items`` recomputes subtotal and total, keeping the current
        tax amount unless ``tax`` is supplied too. Supplying only ``tax``
        recomputes the total. New items are stored before the old ones are
        removed and before the invoice record is updated.

        Returns:
            The updated Invoice, or None if no invoice has this ID

        Raises:
            ValidationError: If a field is unknown or invalid
            PartialFailureError: If new items were stored but old ones remain
            RemoteError: If the record store fails
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update invoice field(s): {', '.join(sorted(unknown))}")

        invoice = self.get(invoice_id)
        if invoice is None:
            logger.debug(f"Ignoring update of missing invoice {invoice_id}")
            return None

        if "status" in fields:
            fields["status"] = coerce_status(fields["status"])
        if "tax_rate" in fields:
            fields["tax_rate"] = round_amount(Decimal(str(fields["tax_rate"])))
        if "tax" in fields:
            fields["tax"] = round_amount(Decimal(str(fields["tax"])))
            if fields["tax"] < 0:
                raise ValidationError("Tax cannot be negative")
        if "items" in fields:
            fields["items"] = tuple(fields["items"])
            fields["subtotal"] = sum_items(fields["items"])
        if "items" in fields or "tax" in fields:
            fields["total"] = fields.get("subtotal", invoice.subtotal) + fields.get("tax", invoice.tax)

        updated = replace(invoice, **fields)
        if updated.due_date < updated.issue_date:
            raise ValidationError("Due date cannot be before issue date")

        record_fields = {k: v for k, v in invoice_to_record(updated).items() if k in fields}
        with self.loading.track("invoice.update"):
            # Items first, so the stored totals never describe items that are not there
            if "items" in fields:
                updated = replace(updated, items=self._replace_items(invoice, updated.items))
            self.db.invoices.update(invoice_id, record_fields)

        self._invoices[self._invoices.index(invoice)] = updated
        return updated

    def delete(self, invoice_id: int) -> bool:
        """Detach billed time entries, then delete the invoice.

        Returns:
            True if deleted, False if no invoice has this ID

        Raises:
            PartialFailureError: If some entries could not be detached; the
                invoice is kept so the delete can be retried
            RemoteError: If the invoice record cannot be deleted
        """
        invoice = self.get(invoice_id)
        if invoice is None:
            return False

        with self.loading.track("invoice.delete"):
            outcome = self.time_entries.clear_invoiced(invoice_id)
            if not outcome.complete:
                raise PartialFailureError(
                    invoice_delete_incomplete(invoice_id, outcome.failed),
                    completed=outcome.updated,
                    failed=outcome.failed,
                )
            self.db.invoices.delete(invoice_id)

        self._invoices.remove(invoice)
        if self._current_id == invoice_id:
            self._current_id = None
        logger.info(f"Deleted invoice {invoice.invoice_number}; detached {len(outcome.updated)} time entries")
        return True
