"""Utility functions for timebill."""

from timebill.utils.date_parser import parse_date
from timebill.utils.amount_parser import parse_amount, round_amount
from timebill.utils.time_parser import calculate_duration, parse_clock_time, format_elapsed

__all__ = [
    "parse_date",
    "parse_amount",
    "round_amount",
    "calculate_duration",
    "parse_clock_time",
    "format_elapsed",
]
