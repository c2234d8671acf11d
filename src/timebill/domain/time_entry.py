"""Time entry store."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Iterator, Optional

from timebill import config
from timebill.database.base import Database
from timebill.database.mappers import time_entry_to_domain, time_entry_to_record
from timebill.domain.entities import EntryFilter, EntryOutcome, TimeEntry, TimeEntryStats
from timebill.domain.errors import (
    DependencyError,
    DomainError,
    ValidationError,
    time_entry_delete_blocked,
    time_entry_not_found,
    time_entry_update_blocked,
)
from timebill.domain.loading import LoadingState
from timebill.utils.amount_parser import round_amount
from timebill.utils.time_parser import calculate_duration, parse_clock_time

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "client_id",
        "project_id",
        "description",
        "category_id",
        "date",
        "start_time",
        "end_time",
        "duration",
        "rate",
        "billable",
        "invoiced",
        "invoice_id",
    }
)

# The only fields an invoiced entry still accepts
INVOICE_LINK_FIELDS = frozenset({"invoiced", "invoice_id"})


class TimeEntryView:
    """Lazy view over the entries of a store that match a filter.

    Each iteration reads the store's current contents, so a view can be
    iterated again after the store changes.
    """

    def __init__(self, store: "TimeEntryStore", entry_filter: EntryFilter):
        self._store = store
        self.entry_filter = entry_filter

    def __iter__(self) -> Iterator[TimeEntry]:
        for entry in tuple(self._store._entries):
            if self.entry_filter.matches(entry):
                yield entry


class TimeEntryStore:
    """Owns the time entries of a session and keeps the record store in step."""

    def __init__(self, db: Database, loading: Optional[LoadingState] = None):
        """Initialize time entry store.

        Args:
            db: Database instance
            loading: Shared loading state; a private one is created if omitted
        """
        self.db = db
        self.loading = loading or LoadingState()
        self._entries: list[TimeEntry] = []

    def load(self) -> None:
        """Replace in-memory entries with the contents of the record store."""
        with self.loading.track("time_entry.load"):
            records = self.db.time_entries.fetch_all()
        self._entries = [time_entry_to_domain(r) for r in records]
        logger.debug(f"Loaded {len(self._entries)} time entries")

    def get(self, entry_id: int) -> Optional[TimeEntry]:
        """Get time entry by ID, or None if not found."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def add(
        self,
        client_id: Optional[int],
        description: str,
        date: Optional[date],
        start_time: str,
        end_time: str,
        project_id: Optional[int] = None,
        category_id: Optional[str] = config.DEFAULT_CATEGORY_ID,
        duration: Optional[Decimal] = None,
        rate: Optional[Decimal] = None,
        billable: bool = True,
        strict: bool = True,
    ) -> TimeEntry:
        """Validate, persist and append a new time entry.

        Args:
            client_id: Client ID
            description: What the time was spent on
            date: Calendar day of the entry
            start_time: Start time "HH:MM"
            end_time: End time "HH:MM" (earlier than start means next day)
            project_id: Optional project ID
            category_id: Category ID
            duration: Hours; derived from start/end if omitted
            rate: Hourly rate, rounded to cents; defaults to config.default_hourly_rate()
            billable: Whether the time is chargeable
            strict: Apply manual entry rules (client and description required,
                positive duration). Timer sessions pass False.

        Returns:
            The stored TimeEntry, never invoiced

        Raises:
            ValidationError: If a field is missing or invalid
            RemoteError: If the record store fails
        """
        if date is None:
            raise ValidationError("Date is required")
        try:
            start_time = parse_clock_time(start_time)
            end_time = parse_clock_time(end_time)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        description = (description or "").strip()
        if strict:
            if client_id is None:
                raise ValidationError("Client is required")
            if not description:
                raise ValidationError("Description is required")

        if duration is None:
            duration = calculate_duration(start_time, end_time)
        duration = round_amount(Decimal(str(duration)))
        if duration < 0 or (strict and duration == 0):
            raise ValidationError(f"Duration must be positive, got {duration}")

        if rate is None:
            try:
                rate = config.default_hourly_rate()
            except ValueError as e:
                raise ValidationError(str(e)) from e
        rate = round_amount(Decimal(str(rate)))

        # ID 0 is a placeholder; the record store assigns the real one
        draft = TimeEntry(
            id=0,
            client_id=client_id,
            project_id=project_id,
            description=description,
            category_id=category_id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            rate=rate,
            billable=billable,
        )

        with self.loading.track("time_entry.add"):
            record = self.db.time_entries.create(time_entry_to_record(draft))
        entry = replace(draft, id=record["id"])
        self._entries.append(entry)
        logger.info(f"Added time entry {entry.id} ({entry.duration}h on {entry.date})")
        return entry

    def update(self, entry_id: int, **fields: Any) -> Optional[TimeEntry]:
        """Merge fields into an entry.

        Duration is recomputed from start/end times when either changes and no
        duration is supplied. An entry billed on an invoice only accepts
        changes to its invoice link.

        Returns:
            The updated TimeEntry, or None if no entry has this ID

        Raises:
            ValidationError: If a field is unknown or the result is invalid
            DependencyError: If the entry is invoiced and a billed field would change
            RemoteError: If the record store fails
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update time entry field(s): {', '.join(sorted(unknown))}")

        entry = self.get(entry_id)
        if entry is None:
            logger.debug(f"Ignoring update of missing time entry {entry_id}")
            return None
        if entry.invoiced and set(fields) - INVOICE_LINK_FIELDS:
            raise DependencyError(time_entry_update_blocked(entry_id, entry.invoice_id))

        if "description" in fields:
            fields["description"] = (fields["description"] or "").strip()
            if not fields["description"]:
                raise ValidationError("Description is required")
        if "client_id" in fields and fields["client_id"] is None:
            raise ValidationError("Client is required")
        if "date" in fields and fields["date"] is None:
            raise ValidationError("Date is required")
        try:
            for key in ("start_time", "end_time"):
                if key in fields:
                    fields[key] = parse_clock_time(fields[key])
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if ("start_time" in fields or "end_time" in fields) and "duration" not in fields:
            fields["duration"] = calculate_duration(
                fields.get("start_time", entry.start_time), fields.get("end_time", entry.end_time)
            )
        if "duration" in fields:
            fields["duration"] = round_amount(Decimal(str(fields["duration"])))
        if "rate" in fields:
            fields["rate"] = round_amount(Decimal(str(fields["rate"])))

        # Building the replacement first checks the invoiced/invoice_id invariant
        updated = replace(entry, **fields)

        with self.loading.track("time_entry.update"):
            self.db.time_entries.update(entry_id, fields)
        self._entries[self._entries.index(entry)] = updated
        return updated

    def delete(self, entry_id: int) -> bool:
        """Delete an entry.

        Returns:
            True if deleted, False if no entry has this ID

        Raises:
            DependencyError: If the entry is billed on an invoice
            RemoteError: If the record store fails
        """
        entry = self.get(entry_id)
        if entry is None:
            return False
        if entry.invoiced:
            raise DependencyError(time_entry_delete_blocked(entry_id, entry.invoice_id))

        with self.loading.track("time_entry.delete"):
            self.db.time_entries.delete(entry_id)
        self._entries.remove(entry)
        logger.info(f"Deleted time entry {entry_id}")
        return True

    def list_entries(self, entry_filter: Optional[EntryFilter] = None) -> TimeEntryView:
        """Entries matching every set criterion of entry_filter."""
        return TimeEntryView(self, entry_filter or EntryFilter())

    def sorted_entries(self, entry_filter: Optional[EntryFilter] = None) -> list[TimeEntry]:
        """Matching entries, newest day first and earliest start first within a day."""
        entries = sorted(self.list_entries(entry_filter), key=lambda e: e.start_time)
        return sorted(entries, key=lambda e: e.date, reverse=True)

    def uninvoiced_for_client(self, client_id: int) -> list[TimeEntry]:
        """Billable, uninvoiced entries of a client: the candidates for a new invoice."""
        return [
            e for e in self._entries if e.client_id == client_id and e.billable and not e.invoiced
        ]

    @staticmethod
    def aggregate(entries: Iterable[TimeEntry]) -> TimeEntryStats:
        """Total hours, billable amount, distinct projects and distinct days."""
        total_hours = Decimal("0")
        billable_amount = Decimal("0")
        projects = set()
        days = set()
        for entry in entries:
            total_hours += entry.duration
            if entry.billable:
                billable_amount += entry.amount
            if entry.project_id is not None:
                projects.add(entry.project_id)
            days.add(entry.date)
        return TimeEntryStats(
            total_hours=total_hours,
            billable_amount=round_amount(billable_amount),
            project_count=len(projects),
            day_count=len(days),
        )

    def mark_invoiced(self, entry_ids: Iterable[int], invoice_id: int) -> EntryOutcome:
        """Attach entries to an invoice, one record at a time.

        Failures are collected rather than raised; entries already updated stay
        updated.
        """
        updated, failed, errors = [], [], {}
        for entry_id in entry_ids:
            entry = self.get(entry_id)
            try:
                if entry is None:
                    raise ValidationError(time_entry_not_found(entry_id))
                if entry.invoiced and entry.invoice_id != invoice_id:
                    raise ValidationError(
                        f"Time entry {entry_id} is already billed on invoice {entry.invoice_id}"
                    )
                self.update(entry_id, invoiced=True, invoice_id=invoice_id)
            except DomainError as e:
                logger.warning(f"Failed to mark time entry {entry_id} as invoiced: {e}")
                failed.append(entry_id)
                errors[entry_id] = str(e)
            else:
                updated.append(entry_id)
        return EntryOutcome(updated=tuple(updated), failed=tuple(failed), errors=errors)

    def clear_invoiced(self, invoice_id: int) -> EntryOutcome:
        """Detach every entry billed on invoice_id.

        Failures are collected rather than raised.
        """
        updated, failed, errors = [], [], {}
        for entry in [e for e in self._entries if e.invoice_id == invoice_id]:
            try:
                self.update(entry.id, invoiced=False, invoice_id=None)
            except DomainError as e:
                logger.warning(f"Failed to detach time entry {entry.id} from invoice {invoice_id}: {e}")
                failed.append(entry.id)
                errors[entry.id] = str(e)
            else:
                updated.append(entry.id)
        return EntryOutcome(updated=tuple(updated), failed=tuple(failed), errors=errors)
