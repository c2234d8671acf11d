"""Stopwatch that turns a timed session into a time entry."""

import logging
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterator, Optional

from timebill import config
from timebill.database.base import Database
from timebill.database.mappers import active_timer_to_domain, active_timer_to_record
from timebill.domain.entities import ActiveTimer, TimeEntry
from timebill.domain.errors import ConflictError
from timebill.domain.time_entry import TimeEntryStore
from timebill.utils.time_parser import format_clock_time, hours_between

logger = logging.getLogger(__name__)


class Timer:
    """Single-timer state machine: idle, or running one ActiveTimer.

    start moves idle to running; stop (creates an entry) and cancel (creates
    nothing) move back to idle. The running timer is mirrored to the
    ``active_timers`` record store so a new session can pick it up again.
    """

    def __init__(
        self,
        time_entries: TimeEntryStore,
        db: Optional[Database] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize timer.

        Args:
            time_entries: Store that receives stopped sessions
            db: Database used to persist the running timer; optional
            clock: Returns the current local time
        """
        self.time_entries = time_entries
        self.db = db
        self.clock = clock
        self._active: Optional[ActiveTimer] = None
        self._record_id: Optional[int] = None

    @property
    def active(self) -> Optional[ActiveTimer]:
        return self._active

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def restore(self) -> Optional[ActiveTimer]:
        """Resume a timer left running by an earlier session."""
        if self.db is None:
            return None
        records = self.db.active_timers.fetch_all()
        if not records:
            return None
        record = records[-1]
        self._active = active_timer_to_domain(record)
        self._record_id = record["id"]
        logger.info(f"Restored timer started at {self._active.started_at:%Y-%m-%d %H:%M}")
        return self._active

    def start(
        self,
        client_id: Optional[int] = None,
        project_id: Optional[int] = None,
        description: str = "",
        category_id: Optional[str] = None,
    ) -> ActiveTimer:
        """Start the timer.

        Raises:
            ConflictError: If a timer is already running
        """
        if self._active is not None:
            raise ConflictError("A timer is already running. Stop or cancel it first.")

        timer = ActiveTimer(
            client_id=client_id,
            project_id=project_id,
            description=description or "",
            category_id=category_id or config.DEFAULT_CATEGORY_ID,
            started_at=self.clock(),
        )
        if self.db is not None:
            self._record_id = self.db.active_timers.create(active_timer_to_record(timer))["id"]
        self._active = timer
        logger.info(f"Timer started at {timer.started_at:%H:%M}")
        return timer

    def stop(self, rate: Optional[Decimal] = None, billable: bool = True) -> TimeEntry:
        """Stop the timer and record the session as a time entry.

        Duration is measured against the clock at the moment of stopping. The
        timer keeps running if the entry cannot be stored.

        Args:
            rate: Hourly rate; defaults to config.default_hourly_rate()
            billable: Whether the entry is chargeable

        Raises:
            ConflictError: If no timer is running
            ValidationError: If the default rate override is malformed
            RemoteError: If the entry cannot be stored
        """
        timer = self._require_active()
        stopped_at = self.clock()
        entry = self.time_entries.add(
            client_id=timer.client_id,
            project_id=timer.project_id,
            description=timer.description,
            category_id=timer.category_id,
            date=timer.started_at.date(),
            start_time=format_clock_time(timer.started_at),
            end_time=format_clock_time(stopped_at),
            duration=hours_between(timer.started_at, stopped_at),
            rate=rate,
            billable=billable,
            strict=False,
        )
        self._clear()
        logger.info(f"Timer stopped after {entry.duration}h; created time entry {entry.id}")
        return entry

    def cancel(self) -> None:
        """Discard the running timer without creating an entry.

        Raises:
            ConflictError: If no timer is running
        """
        self._require_active()
        self._clear()
        logger.info("Timer cancelled")

    def elapsed(self, now: Optional[datetime] = None) -> timedelta:
        """Time since the timer started; zero when idle. Never changes state."""
        if self._active is None:
            return timedelta(0)
        return max((now or self.clock()) - self._active.started_at, timedelta(0))

    def ticks(
        self,
        interval: float = config.TIMER_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Iterator[timedelta]:
        """Yield the elapsed time every interval seconds while the timer runs."""
        while self._active is not None:
            yield self.elapsed()
            sleep(interval)

    def _require_active(self) -> ActiveTimer:
        if self._active is None:
            raise ConflictError("No timer is running")
        return self._active

    def _clear(self) -> None:
        if self.db is not None and self._record_id is not None:
            self.db.active_timers.delete(self._record_id)
        self._active = None
        self._record_id = None
