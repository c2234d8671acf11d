"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last friday", "in 2 weeks"

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    weekdays = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    if date_str.startswith("last ") and date_str[5:] in weekdays:
        target_day = weekdays.index(date_str[5:])
        days_ago = (today.weekday() - target_day) % 7
        if days_ago == 0:
            days_ago = 7
        return today - timedelta(days=days_ago)

    # "in 2 weeks", "in 30 days", "in 1 month" (used for due dates)
    if date_str.startswith("in "):
        parts = date_str[3:].split()
        if len(parts) == 2 and parts[0].isdigit():
            count, unit = int(parts[0]), parts[1].rstrip("s")
            if unit == "day":
                return today + timedelta(days=count)
            if unit == "week":
                return today + timedelta(weeks=count)
            if unit == "month":
                return today + relativedelta(months=count)

    # Try parsing as absolute date
    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
