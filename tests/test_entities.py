"""Tests for domain entities."""

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from timebill.domain.entities import (
    BillableFilter,
    EntryFilter,
    EntryOutcome,
    Invoice,
    InvoiceGenerationResult,
    InvoiceStatus,
    TimeEntry,
)
from timebill.domain.errors import DomainError, ValidationError


def _entry(**overrides) -> TimeEntry:
    fields = {
        "id": 1,
        "client_id": 1,
        "project_id": None,
        "description": "Development",
        "category_id": "dev",
        "date": date(2024, 3, 1),
        "start_time": "09:00",
        "end_time": "10:30",
        "duration": Decimal("1.50"),
        "rate": Decimal("100"),
    }
    fields.update(overrides)
    return TimeEntry(**fields)


class TestTimeEntry:
    """Tests for TimeEntry entity."""

    def test_defaults(self):
        entry = _entry()
        assert entry.billable is True
        assert entry.invoiced is False
        assert entry.invoice_id is None

    def test_amount(self):
        assert _entry(duration=Decimal("2.25"), rate=Decimal("80")).amount == Decimal("180.00")

    def test_immutability(self):
        """Test that TimeEntry entities are immutable."""
        entry = _entry()
        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.description = "Other"

    def test_invoiced_requires_invoice_id(self):
        with pytest.raises(ValidationError):
            _entry(invoiced=True)

    def test_invoice_id_requires_invoiced(self):
        with pytest.raises(ValidationError):
            _entry(invoice_id=7)

    def test_invoiced_with_invoice_id(self):
        entry = _entry(invoiced=True, invoice_id=7)
        assert entry.invoice_id == 7

    def test_replace_rechecks_invariant(self):
        entry = _entry(invoiced=True, invoice_id=7)
        with pytest.raises(ValidationError):
            dataclasses.replace(entry, invoice_id=None)

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            _entry(duration=Decimal("-1"))

    def test_negative_rate_rejected(self):
        with pytest.raises(ValidationError):
            _entry(rate=Decimal("-5"))

    def test_validation_error_is_value_error(self):
        """Domain errors stay catchable as ValueError."""
        with pytest.raises(ValueError):
            _entry(duration=Decimal("-1"))
        assert issubclass(ValidationError, DomainError)


class TestEntryFilter:
    """Tests for EntryFilter matching."""

    def test_empty_filter_matches_everything(self):
        assert EntryFilter().matches(_entry())
        assert EntryFilter().matches(_entry(billable=False))

    def test_client(self):
        assert EntryFilter(client_id=1).matches(_entry())
        assert not EntryFilter(client_id=2).matches(_entry())

    def test_category(self):
        assert EntryFilter(category_id="dev").matches(_entry())
        assert not EntryFilter(category_id="design").matches(_entry())

    def test_billable_states(self):
        billable = _entry()
        internal = _entry(billable=False)
        assert EntryFilter(billable=BillableFilter.BILLABLE).matches(billable)
        assert not EntryFilter(billable=BillableFilter.BILLABLE).matches(internal)
        assert EntryFilter(billable=BillableFilter.NON_BILLABLE).matches(internal)
        assert not EntryFilter(billable=BillableFilter.NON_BILLABLE).matches(billable)

    def test_date(self):
        assert EntryFilter(date=date(2024, 3, 1)).matches(_entry())
        assert not EntryFilter(date=date(2024, 3, 2)).matches(_entry())

    def test_criteria_are_combined(self):
        entry_filter = EntryFilter(client_id=1, category_id="design")
        assert not entry_filter.matches(_entry())
        assert entry_filter.matches(_entry(category_id="design"))


class TestResults:
    """Tests for outcome value objects."""

    def test_entry_outcome_complete(self):
        assert EntryOutcome(updated=(1, 2)).complete
        assert not EntryOutcome(updated=(1,), failed=(2,)).complete

    def test_generation_result_partial(self):
        invoice = Invoice(
            id=1,
            invoice_number="INV-2024-0001",
            client_id=1,
            issue_date=date(2024, 3, 1),
            due_date=date(2024, 3, 16),
            status=InvoiceStatus.DRAFT,
            items=(),
            subtotal=Decimal("0"),
            tax=Decimal("0"),
            total=Decimal("0"),
            notes="",
            payment_terms="Net 15",
        )
        assert not InvoiceGenerationResult(invoice=invoice, marked_entry_ids=(1,)).partial
        assert InvoiceGenerationResult(invoice=invoice, marked_entry_ids=(1,), failed_entry_ids=(2,)).partial

    def test_invoice_status_values(self):
        assert InvoiceStatus("draft") is InvoiceStatus.DRAFT
        assert [s.value for s in InvoiceStatus] == ["draft", "sent", "paid", "overdue"]
