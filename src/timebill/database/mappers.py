"""Mapper functions between SQLAlchemy rows, store records and domain entities.

Record stores speak plain dicts keyed by column name. This layer isolates the
conversion so domain entities stay independent of the schema.
"""

from decimal import Decimal
from typing import Any, Iterable

from timebill.domain import entities as domain
from timebill.database.base import Record


def orm_to_record(orm_obj: Any) -> Record:
    """Convert any SQLAlchemy model instance to a record dict."""
    record = {}
    for column in orm_obj.__table__.columns:
        value = getattr(orm_obj, column.name)
        if isinstance(value, list):
            value = list(value)
        record[column.name] = value
    return record


def _decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _ids(values: Iterable[Any] | None) -> tuple[int, ...]:
    return tuple(int(v) for v in (values or ()))


def client_to_domain(record: Record) -> domain.Client:
    """Convert a client record to a domain Client entity."""
    return domain.Client(
        id=record["id"],
        name=record["name"],
        contact_name=record.get("contact_name"),
        email=record.get("email"),
        phone=record.get("phone"),
        status=record.get("status") or "active",
        address=record.get("address"),
    )


def category_to_domain(record: Record) -> domain.Category:
    """Convert a category record to a domain Category entity."""
    return domain.Category(id=record["id"], name=record["name"], color=record["color"])


def time_entry_to_domain(record: Record) -> domain.TimeEntry:
    """Convert a time entry record to a domain TimeEntry entity."""
    return domain.TimeEntry(
        id=record["id"],
        client_id=record.get("client_id"),
        project_id=record.get("project_id"),
        description=record.get("description") or "",
        category_id=record.get("category_id"),
        date=record["date"],
        start_time=record["start_time"],
        end_time=record["end_time"],
        duration=_decimal(record["duration"]),
        rate=_decimal(record["rate"]),
        billable=bool(record.get("billable", True)),
        invoiced=bool(record.get("invoiced", False)),
        invoice_id=record.get("invoice_id"),
    )


def time_entry_to_record(entry: domain.TimeEntry) -> Record:
    """Convert a TimeEntry to a record. The ID is assigned by the store."""
    return {
        "client_id": entry.client_id,
        "project_id": entry.project_id,
        "description": entry.description,
        "category_id": entry.category_id,
        "date": entry.date,
        "start_time": entry.start_time,
        "end_time": entry.end_time,
        "duration": entry.duration,
        "rate": entry.rate,
        "billable": entry.billable,
        "invoiced": entry.invoiced,
        "invoice_id": entry.invoice_id,
    }


def invoice_item_to_domain(record: Record) -> domain.InvoiceItem:
    """Convert an invoice item record to a domain InvoiceItem entity."""
    return domain.InvoiceItem(
        id=record["id"],
        description=record["description"],
        quantity=_decimal(record["quantity"]),
        rate=_decimal(record["rate"]),
        amount=_decimal(record["amount"]),
        time_entry_ids=_ids(record.get("time_entry_ids")),
    )


def invoice_item_to_record(item: domain.InvoiceItem, invoice_id: int) -> Record:
    """Convert an InvoiceItem belonging to invoice_id to a record."""
    return {
        "invoice_id": invoice_id,
        "description": item.description,
        "quantity": item.quantity,
        "rate": item.rate,
        "amount": item.amount,
        "time_entry_ids": list(item.time_entry_ids),
    }


def invoice_to_domain(record: Record, item_records: Iterable[Record] = ()) -> domain.Invoice:
    """Convert an invoice record and its item records to a domain Invoice entity."""
    return domain.Invoice(
        id=record["id"],
        invoice_number=record["invoice_number"],
        client_id=record["client_id"],
        issue_date=record["issue_date"],
        due_date=record["due_date"],
        status=domain.InvoiceStatus(record.get("status") or "draft"),
        items=tuple(invoice_item_to_domain(item) for item in item_records),
        subtotal=_decimal(record["subtotal"]),
        tax=_decimal(record.get("tax") or 0),
        total=_decimal(record["total"]),
        notes=record.get("notes") or "",
        payment_terms=record.get("payment_terms") or "",
        time_entry_ids=_ids(record.get("time_entry_ids")),
        tax_rate=_decimal(record.get("tax_rate") or 0),
    )


def invoice_to_record(invoice: domain.Invoice) -> Record:
    """Convert an Invoice to a record. Items are stored separately."""
    return {
        "invoice_number": invoice.invoice_number,
        "client_id": invoice.client_id,
        "issue_date": invoice.issue_date,
        "due_date": invoice.due_date,
        "status": invoice.status.value,
        "subtotal": invoice.subtotal,
        "tax_rate": invoice.tax_rate,
        "tax": invoice.tax,
        "total": invoice.total,
        "notes": invoice.notes,
        "payment_terms": invoice.payment_terms,
        "time_entry_ids": list(invoice.time_entry_ids),
    }


def active_timer_to_domain(record: Record) -> domain.ActiveTimer:
    """Convert an active timer record to a domain ActiveTimer entity."""
    return domain.ActiveTimer(
        client_id=record.get("client_id"),
        project_id=record.get("project_id"),
        description=record.get("description") or "",
        category_id=record.get("category_id"),
        started_at=record["started_at"],
    )


def active_timer_to_record(timer: domain.ActiveTimer) -> Record:
    """Convert an ActiveTimer to a record."""
    return {
        "client_id": timer.client_id,
        "project_id": timer.project_id,
        "description": timer.description,
        "category_id": timer.category_id,
        "started_at": timer.started_at,
    }
