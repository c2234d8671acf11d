"""Time-of-day and duration utilities."""

import re
from datetime import datetime, timedelta
from decimal import Decimal

from timebill.utils.amount_parser import round_amount

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_SECONDS_PER_HOUR = Decimal(3600)
_MINUTES_PER_DAY = 24 * 60


def parse_clock_time(time_str: str) -> str:
    """Normalize a time of day to zero-padded "HH:MM".

    Zero padding keeps lexicographic order equal to chronological order.

    Raises:
        ValueError: If time_str is not a valid 24-hour time
    """
    match = _CLOCK_RE.match((time_str or "").strip())
    if match is None:
        raise ValueError(f"Could not parse time '{time_str}': expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time out of range: '{time_str}'")
    return f"{hours:02d}:{minutes:02d}"


def format_clock_time(moment: datetime) -> str:
    """Format the local time of day of moment as "HH:MM"."""
    return f"{moment.hour:02d}:{moment.minute:02d}"


def calculate_duration(start_time: str, end_time: str) -> Decimal:
    """Hours between two times of day, rounded to two decimals.

    An end time earlier than the start time is taken to fall on the next day.
    """
    start = parse_clock_time(start_time)
    end = parse_clock_time(end_time)
    start_minutes = int(start[:2]) * 60 + int(start[3:])
    end_minutes = int(end[:2]) * 60 + int(end[3:])
    minutes = (end_minutes - start_minutes) % _MINUTES_PER_DAY
    return round_amount(Decimal(minutes) / 60)


def hours_between(start: datetime, end: datetime) -> Decimal:
    """Elapsed hours from start to end, rounded to two decimals."""
    seconds = Decimal(str((end - start).total_seconds()))
    return round_amount(seconds / _SECONDS_PER_HOUR)


def format_elapsed(elapsed: timedelta) -> str:
    """Format an elapsed time as "HH:MM:SS" (hours may exceed 24)."""
    total = max(int(elapsed.total_seconds()), 0)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
