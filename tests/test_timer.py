"""Tests for the stopwatch timer."""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from timebill import config
from timebill.domain.errors import ConflictError, RemoteError, ValidationError
from timebill.domain.session import DashboardSession


class TestTimer:
    """Tests for the timer state machine."""

    def test_idle_by_default(self, timer):
        assert not timer.is_running
        assert timer.active is None
        assert timer.elapsed() == timedelta(0)

    def test_start(self, timer, sample_client, clock):
        active = timer.start(client_id=sample_client.id, description="Design review")
        assert timer.is_running
        assert active.started_at == clock.now
        assert active.category_id == config.DEFAULT_CATEGORY_ID

    def test_second_start_conflicts(self, timer, sample_client):
        timer.start(client_id=sample_client.id, description="First")
        with pytest.raises(ConflictError):
            timer.start(client_id=sample_client.id, description="Second")
        assert timer.active.description == "First"

    def test_stop_creates_entry(self, timer, time_entries, sample_client, clock):
        timer.start(client_id=sample_client.id, description="Design review", category_id="design")
        clock.advance(hours=2, minutes=15)
        entry = timer.stop()

        assert entry.duration == Decimal("2.25")
        assert entry.date == date(2024, 3, 4)
        assert entry.start_time == "09:00"
        assert entry.end_time == "11:15"
        assert entry.rate == config.DEFAULT_HOURLY_RATE
        assert entry.billable is True
        assert entry.invoiced is False
        assert entry.category_id == "design"
        assert time_entries.get(entry.id) == entry
        assert not timer.is_running

    def test_stop_with_rate(self, timer, sample_client, clock):
        timer.start(client_id=sample_client.id, description="Support")
        clock.advance(minutes=30)
        entry = timer.stop(rate=Decimal("120"))
        assert entry.rate == Decimal("120")
        assert entry.amount == Decimal("60.00")

    def test_malformed_default_rate_keeps_timer_running(self, timer, time_entries, sample_client, clock, monkeypatch):
        monkeypatch.setenv("TIMEBILL_DEFAULT_RATE", "abc")
        timer.start(client_id=sample_client.id, description="Support")
        clock.advance(minutes=30)
        with pytest.raises(ValidationError):
            timer.stop()
        assert timer.is_running
        assert list(time_entries.list_entries()) == []

    def test_stop_without_description_or_client(self, timer, clock):
        timer.start()
        clock.advance(minutes=6)
        entry = timer.stop()
        assert entry.client_id is None
        assert entry.duration == Decimal("0.10")

    def test_stop_immediately_records_zero(self, timer):
        timer.start(description="Oops")
        entry = timer.stop()
        assert entry.duration == Decimal("0.00")

    def test_start_of_day_crossing_midnight(self, timer, clock):
        clock.now = datetime(2024, 3, 4, 23, 30)
        timer.start(description="Late fix")
        clock.advance(hours=1)
        entry = timer.stop()
        # The entry belongs to the day the timer started
        assert entry.date == date(2024, 3, 4)
        assert entry.start_time == "23:30"
        assert entry.end_time == "00:30"
        assert entry.duration == Decimal("1.00")

    def test_stop_when_idle(self, timer):
        with pytest.raises(ConflictError):
            timer.stop()

    def test_cancel(self, timer, time_entries, clock):
        timer.start(description="Never mind")
        clock.advance(hours=1)
        timer.cancel()
        assert not timer.is_running
        assert list(time_entries.list_entries()) == []

    def test_cancel_when_idle(self, timer):
        with pytest.raises(ConflictError):
            timer.cancel()

    def test_failed_stop_keeps_timer(self, timer, temp_db, clock, monkeypatch):
        timer.start(description="Support")
        clock.advance(minutes=30)

        def fail(record):
            raise RemoteError("database is locked")

        monkeypatch.setattr(temp_db.time_entries, "create", fail)
        with pytest.raises(RemoteError):
            timer.stop()
        assert timer.is_running

    def test_elapsed(self, timer, clock):
        timer.start(description="Support")
        clock.advance(minutes=90, seconds=5)
        assert timer.elapsed() == timedelta(minutes=90, seconds=5)
        assert timer.is_running

    def test_ticks(self, timer, clock):
        timer.start(description="Support")
        sleeps = []

        def sleep(interval):
            sleeps.append(interval)
            clock.advance(seconds=1)
            if len(sleeps) == 3:
                timer.cancel()

        elapsed = list(timer.ticks(interval=1.0, sleep=sleep))
        assert elapsed == [timedelta(0), timedelta(seconds=1), timedelta(seconds=2)]
        assert sleeps == [1.0, 1.0, 1.0]

    def test_ticks_when_idle(self, timer):
        assert list(timer.ticks(sleep=lambda interval: None)) == []


class TestTimerPersistence:
    """A running timer survives the end of a session."""

    def test_restore_in_new_session(self, temp_db, session, sample_client, clock):
        session.timer.start(client_id=sample_client.id, description="Long task")
        session.close()

        clock.advance(hours=3)
        with DashboardSession(temp_db, clock=clock) as second:
            assert second.timer.is_running
            assert second.timer.active.description == "Long task"
            entry = second.timer.stop()
            assert entry.duration == Decimal("3.00")
            assert temp_db.active_timers.fetch_all() == []

    def test_cancel_removes_record(self, temp_db, timer):
        timer.start(description="Support")
        assert len(temp_db.active_timers.fetch_all()) == 1
        timer.cancel()
        assert temp_db.active_timers.fetch_all() == []
