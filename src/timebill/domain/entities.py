"""Domain model entities for timebill.

These are pure data classes representing business concepts, independent of
the record store schema. Stores replace entities wholesale (see
``dataclasses.replace``) rather than mutating them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from timebill.domain.errors import ValidationError


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class BillableFilter(str, Enum):
    """Billable-state filter for time entry views."""

    ALL = "all"
    BILLABLE = "billable"
    NON_BILLABLE = "non-billable"


@dataclass(frozen=True)
class Client:
    """Client domain entity."""

    id: int
    name: str
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str = "active"
    address: Optional[str] = None


@dataclass(frozen=True)
class Category:
    """Time tracking category."""

    id: str
    name: str
    color: str


@dataclass(frozen=True)
class TimeEntry:
    """Time entry domain entity.

    An entry is invoiced exactly when it carries an invoice ID.
    """

    id: int
    client_id: Optional[int]
    project_id: Optional[int]
    description: str
    category_id: Optional[str]
    date: date
    start_time: str
    end_time: str
    duration: Decimal
    rate: Decimal
    billable: bool = True
    invoiced: bool = False
    invoice_id: Optional[int] = None

    def __post_init__(self):
        if self.invoiced != (self.invoice_id is not None):
            raise ValidationError(
                f"Time entry {self.id}: invoiced={self.invoiced} "
                f"does not match invoice_id={self.invoice_id}"
            )
        if self.duration < 0:
            raise ValidationError(f"Time entry {self.id}: duration cannot be negative")
        if self.rate < 0:
            raise ValidationError(f"Time entry {self.id}: rate cannot be negative")

    @property
    def amount(self) -> Decimal:
        """Duration multiplied by rate, unrounded."""
        return self.duration * self.rate


@dataclass(frozen=True)
class ActiveTimer:
    """The single in-flight timer of a session."""

    client_id: Optional[int]
    project_id: Optional[int]
    description: str
    category_id: Optional[str]
    started_at: datetime


@dataclass(frozen=True)
class InvoiceItem:
    """Invoice line item built from one group of time entries."""

    id: Optional[int]
    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal
    time_entry_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class Invoice:
    """Invoice snapshot."""

    id: Optional[int]
    invoice_number: str
    client_id: int
    issue_date: date
    due_date: date
    status: InvoiceStatus
    items: tuple[InvoiceItem, ...]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    notes: str
    payment_terms: str
    time_entry_ids: tuple[int, ...] = ()
    tax_rate: Decimal = Decimal("0")


@dataclass(frozen=True)
class EntryFilter:
    """Criteria for time entry views. Unset fields match everything."""

    client_id: Optional[int] = None
    category_id: Optional[str] = None
    billable: BillableFilter = BillableFilter.ALL
    date: Optional[date] = None

    def matches(self, entry: TimeEntry) -> bool:
        """Return True if the entry satisfies every set criterion."""
        if self.client_id is not None and entry.client_id != self.client_id:
            return False
        if self.category_id is not None and entry.category_id != self.category_id:
            return False
        if self.billable != BillableFilter.ALL and entry.billable != (
            self.billable == BillableFilter.BILLABLE
        ):
            return False
        if self.date is not None and entry.date != self.date:
            return False
        return True


@dataclass(frozen=True)
class TimeEntryStats:
    """Aggregate figures over a set of time entries."""

    total_hours: Decimal
    billable_amount: Decimal
    project_count: int
    day_count: int


@dataclass(frozen=True)
class EntryOutcome:
    """Result of synchronizing invoice state onto a batch of time entries."""

    updated: tuple[int, ...] = ()
    failed: tuple[int, ...] = ()
    errors: dict[int, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class InvoiceGenerationResult:
    """Outcome of invoice generation.

    The invoice always exists when a result is returned. ``failed_entry_ids``
    lists entries that could not be marked as invoiced.
    """

    invoice: Invoice
    marked_entry_ids: tuple[int, ...]
    failed_entry_ids: tuple[int, ...] = ()

    @property
    def partial(self) -> bool:
        return bool(self.failed_entry_ids)
