"""Tests for the time entry store."""

import pytest
from datetime import date
from decimal import Decimal

from timebill import config
from timebill.domain.entities import BillableFilter, EntryFilter
from timebill.domain.errors import ConflictError, DependencyError, RemoteError, ValidationError
from timebill.domain.session import DashboardSession
from timebill.domain.time_entry import TimeEntryStore


class TestAdd:
    """Tests for adding entries."""

    def test_add_derives_duration(self, make_entry):
        entry = make_entry(start_time="09:00", end_time="11:30")
        assert entry.duration == Decimal("2.50")
        assert entry.invoiced is False
        assert entry.invoice_id is None
        assert entry.id > 0

    def test_add_persists(self, temp_db, make_entry):
        entry = make_entry()
        records = temp_db.time_entries.fetch_all()
        assert [r["id"] for r in records] == [entry.id]

    def test_ids_are_unique(self, make_entry):
        ids = {make_entry().id for _ in range(3)}
        assert len(ids) == 3

    def test_default_rate(self, time_entries, sample_client):
        entry = time_entries.add(
            client_id=sample_client.id,
            description="Work",
            date=date(2024, 3, 1),
            start_time="09:00",
            end_time="10:00",
        )
        assert entry.rate == config.DEFAULT_HOURLY_RATE
        assert entry.category_id == config.DEFAULT_CATEGORY_ID

    def test_default_rate_from_environment(self, make_entry, monkeypatch):
        monkeypatch.setenv("TIMEBILL_DEFAULT_RATE", "$92.50")
        assert make_entry(rate=None).rate == Decimal("92.50")

    def test_malformed_default_rate(self, make_entry, time_entries, monkeypatch):
        monkeypatch.setenv("TIMEBILL_DEFAULT_RATE", "lots")
        with pytest.raises(ValidationError, match="TIMEBILL_DEFAULT_RATE"):
            make_entry(rate=None)
        assert list(time_entries.list_entries()) == []

    def test_rate_rounded_to_cents_survives_reload(self, temp_db, make_entry):
        entry = make_entry(rate=Decimal("85.555"))
        assert entry.rate == Decimal("85.56")

        with DashboardSession(temp_db) as reopened:
            reloaded = reopened.time_entries.get(entry.id)
            assert reloaded.rate == entry.rate
            assert reloaded.amount == entry.amount

    def test_normalizes_times(self, make_entry):
        entry = make_entry(start_time="9:00", end_time="9:45")
        assert entry.start_time == "09:00"
        assert entry.duration == Decimal("0.75")

    def test_explicit_duration_wins(self, make_entry):
        assert make_entry(duration=Decimal("3")).duration == Decimal("3.00")

    def test_requires_client(self, make_entry):
        with pytest.raises(ValidationError):
            make_entry(client_id=None)

    def test_requires_description(self, make_entry):
        with pytest.raises(ValidationError):
            make_entry(description="   ")

    def test_requires_date(self, make_entry):
        with pytest.raises(ValidationError):
            make_entry(date=None)

    def test_rejects_bad_time(self, make_entry):
        with pytest.raises(ValidationError):
            make_entry(start_time="25:00")

    def test_rejects_zero_duration(self, make_entry, time_entries):
        with pytest.raises(ValidationError):
            make_entry(start_time="10:00", end_time="10:00")
        assert list(time_entries.list_entries()) == []

    def test_non_strict_allows_zero_duration_and_no_client(self, time_entries):
        entry = time_entries.add(
            client_id=None,
            description="",
            date=date(2024, 3, 1),
            start_time="10:00",
            end_time="10:00",
            strict=False,
        )
        assert entry.duration == Decimal("0.00")

    def test_remote_failure_leaves_store_unchanged(self, temp_db, make_entry, time_entries, monkeypatch):
        def fail(record):
            raise RemoteError("database is locked")

        monkeypatch.setattr(temp_db.time_entries, "create", fail)
        with pytest.raises(RemoteError):
            make_entry()
        assert list(time_entries.list_entries()) == []
        assert not time_entries.loading.loading

    def test_double_submit_rejected(self, make_entry, time_entries):
        with time_entries.loading.track("time_entry.add"):
            with pytest.raises(ConflictError):
                make_entry()


class TestUpdate:
    """Tests for updating entries."""

    def test_update_merges(self, make_entry, time_entries):
        entry = make_entry()
        updated = time_entries.update(entry.id, description="Code review")
        assert updated.description == "Code review"
        assert updated.duration == entry.duration
        assert time_entries.get(entry.id) == updated

    def test_update_recomputes_duration(self, make_entry, time_entries):
        entry = make_entry(start_time="09:00", end_time="10:00")
        updated = time_entries.update(entry.id, end_time="12:15")
        assert updated.duration == Decimal("3.25")

    def test_update_keeps_supplied_duration(self, make_entry, time_entries):
        entry = make_entry()
        updated = time_entries.update(entry.id, end_time="12:00", duration=Decimal("1.5"))
        assert updated.duration == Decimal("1.50")

    def test_update_persists(self, temp_db, make_entry, time_entries):
        entry = make_entry()
        time_entries.update(entry.id, rate=Decimal("120"))

        reloaded = TimeEntryStore(temp_db)
        reloaded.load()
        assert reloaded.get(entry.id).rate == Decimal("120")

    def test_update_missing_is_noop(self, time_entries):
        assert time_entries.update(999, description="Nothing") is None

    def test_update_unknown_field(self, make_entry, time_entries):
        entry = make_entry()
        with pytest.raises(ValidationError):
            time_entries.update(entry.id, colour="red")

    def test_update_rechecks_invoice_invariant(self, make_entry, time_entries):
        entry = make_entry()
        with pytest.raises(ValidationError):
            time_entries.update(entry.id, invoiced=True)
        assert time_entries.get(entry.id).invoiced is False

    def test_update_rounds_rate(self, make_entry, time_entries):
        entry = make_entry()
        assert time_entries.update(entry.id, rate=Decimal("99.999")).rate == Decimal("100.00")

    def test_invoiced_entry_is_frozen(self, make_entry, time_entries):
        entry = make_entry()
        time_entries.mark_invoiced([entry.id], invoice_id=7)
        billed = time_entries.get(entry.id)

        for fields in (
            {"rate": Decimal("150")},
            {"end_time": "12:00"},
            {"billable": False},
            {"description": "Something else"},
        ):
            with pytest.raises(DependencyError):
                time_entries.update(entry.id, **fields)
        assert time_entries.get(entry.id) == billed

    def test_invoiced_entry_cannot_move_client(self, make_entry, other_client, time_entries):
        entry = make_entry()
        time_entries.mark_invoiced([entry.id], invoice_id=7)
        with pytest.raises(DependencyError):
            time_entries.update(entry.id, client_id=other_client.id)

    def test_invoiced_entry_can_be_detached(self, make_entry, time_entries):
        entry = make_entry()
        time_entries.mark_invoiced([entry.id], invoice_id=7)
        updated = time_entries.update(entry.id, invoiced=False, invoice_id=None)
        assert updated.invoiced is False
        assert time_entries.update(entry.id, rate=Decimal("150")).rate == Decimal("150.00")
        assert time_entries.get(entry.id).invoiced is False


class TestDelete:
    """Tests for deleting entries."""

    def test_delete(self, make_entry, time_entries):
        entry = make_entry()
        assert time_entries.delete(entry.id) is True
        assert time_entries.get(entry.id) is None

    def test_delete_missing(self, time_entries):
        assert time_entries.delete(999) is False

    def test_delete_invoiced_refused(self, make_entry, time_entries):
        entry = make_entry()
        time_entries.mark_invoiced([entry.id], invoice_id=7)
        with pytest.raises(DependencyError):
            time_entries.delete(entry.id)
        assert time_entries.get(entry.id) is not None


class TestViews:
    """Tests for filtered views, ordering and aggregation."""

    @pytest.fixture
    def entries(self, make_entry, other_client, session):
        return [
            make_entry(date=date(2024, 3, 1), start_time="13:00", end_time="14:00"),
            make_entry(date=date(2024, 3, 2), start_time="09:00", end_time="10:30", category_id="design"),
            make_entry(date=date(2024, 3, 1), start_time="08:00", end_time="09:00", billable=False),
            make_entry(
                client_id=other_client.id,
                date=date(2024, 3, 2),
                start_time="08:00",
                end_time="08:30",
                project_id=4,
            ),
        ]

    def test_filter_by_client(self, entries, time_entries, sample_client):
        view = time_entries.list_entries(EntryFilter(client_id=sample_client.id))
        assert [e.id for e in view] == [e.id for e in entries[:3]]

    def test_filter_by_billable(self, entries, time_entries):
        view = time_entries.list_entries(EntryFilter(billable=BillableFilter.NON_BILLABLE))
        assert [e.id for e in view] == [entries[2].id]

    def test_filter_by_client_and_billable(self, entries, time_entries, sample_client):
        view = time_entries.list_entries(
            EntryFilter(client_id=sample_client.id, billable=BillableFilter.BILLABLE)
        )
        assert [e.id for e in view] == [entries[0].id, entries[1].id]

    def test_filter_by_category_and_date(self, entries, time_entries):
        view = time_entries.list_entries(EntryFilter(category_id="design", date=date(2024, 3, 2)))
        assert [e.id for e in view] == [entries[1].id]

    def test_view_is_restartable_and_live(self, entries, time_entries, make_entry):
        view = time_entries.list_entries()
        assert len(list(view)) == 4
        make_entry()
        assert len(list(view)) == 5

    def test_sorted_newest_day_first(self, entries, time_entries):
        ordered = time_entries.sorted_entries()
        assert [(e.date.day, e.start_time) for e in ordered] == [
            (2, "08:00"),
            (2, "09:00"),
            (1, "08:00"),
            (1, "13:00"),
        ]

    def test_aggregate(self, entries, time_entries):
        stats = time_entries.aggregate(time_entries.list_entries())
        assert stats.total_hours == Decimal("4.00")
        # 1h + 1.5h + 0.5h billable at 100/h; the non-billable hour is excluded
        assert stats.billable_amount == Decimal("300.00")
        assert stats.project_count == 1
        assert stats.day_count == 2

    def test_aggregate_empty(self, time_entries):
        stats = time_entries.aggregate([])
        assert stats.total_hours == 0
        assert stats.project_count == 0
        assert stats.day_count == 0

    def test_uninvoiced_for_client(self, entries, time_entries, sample_client):
        time_entries.mark_invoiced([entries[0].id], invoice_id=1)
        candidates = time_entries.uninvoiced_for_client(sample_client.id)
        assert [e.id for e in candidates] == [entries[1].id]


class TestInvoiceLinks:
    """Tests for attaching and detaching entries."""

    def test_mark_and_clear(self, make_entry, time_entries):
        first, second = make_entry(), make_entry()
        outcome = time_entries.mark_invoiced([first.id, second.id], invoice_id=3)
        assert outcome.complete
        assert outcome.updated == (first.id, second.id)
        assert time_entries.get(first.id).invoice_id == 3

        outcome = time_entries.clear_invoiced(3)
        assert outcome.complete
        assert set(outcome.updated) == {first.id, second.id}
        assert time_entries.get(first.id).invoiced is False

    def test_mark_collects_failures(self, make_entry, time_entries):
        entry = make_entry()
        outcome = time_entries.mark_invoiced([entry.id, 999], invoice_id=3)
        assert outcome.updated == (entry.id,)
        assert outcome.failed == (999,)
        assert "999" in outcome.errors[999]

    def test_mark_refuses_entry_billed_elsewhere(self, make_entry, time_entries):
        entry = make_entry()
        time_entries.mark_invoiced([entry.id], invoice_id=3)
        outcome = time_entries.mark_invoiced([entry.id], invoice_id=4)
        assert outcome.failed == (entry.id,)
        assert time_entries.get(entry.id).invoice_id == 3

    def test_clear_only_touches_that_invoice(self, make_entry, time_entries):
        first, second = make_entry(), make_entry()
        time_entries.mark_invoiced([first.id], invoice_id=3)
        time_entries.mark_invoiced([second.id], invoice_id=4)
        time_entries.clear_invoiced(3)
        assert time_entries.get(second.id).invoice_id == 4
