"""Tests for amount and time-of-day parsing."""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from timebill.utils.amount_parser import parse_amount, round_amount
from timebill.utils.time_parser import (
    calculate_duration,
    format_clock_time,
    format_elapsed,
    hours_between,
    parse_clock_time,
)


class TestParseAmount:
    """Tests for parse_amount."""

    def test_plain_number(self):
        assert parse_amount("85") == Decimal("85")

    def test_currency_symbol_and_separators(self):
        assert parse_amount("$1,250.50") == Decimal("1250.50")

    def test_percent(self):
        assert parse_amount("7.5%") == Decimal("7.5")

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            parse_amount("-10")

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            parse_amount("  ")

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            parse_amount("ten dollars")

    def test_infinity_rejected(self):
        with pytest.raises(ValueError):
            parse_amount("Infinity")


class TestRoundAmount:
    """Tests for round_amount."""

    def test_half_up(self):
        assert round_amount(Decimal("0.125")) == Decimal("0.13")
        assert round_amount(Decimal("2.345")) == Decimal("2.35")

    def test_two_places(self):
        assert str(round_amount(Decimal("3"))) == "3.00"


class TestClockTime:
    """Tests for clock time parsing and formatting."""

    def test_zero_pads(self):
        assert parse_clock_time("9:05") == "09:05"

    def test_keeps_valid(self):
        assert parse_clock_time("23:59") == "23:59"

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "9", "", "9:5"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            parse_clock_time(value)

    def test_format_clock_time(self):
        assert format_clock_time(datetime(2024, 3, 4, 7, 3, 59)) == "07:03"


class TestDurations:
    """Tests for duration calculations."""

    def test_calculate_duration(self):
        assert calculate_duration("09:00", "11:30") == Decimal("2.50")

    def test_calculate_duration_rounds(self):
        # 20 minutes
        assert calculate_duration("10:00", "10:20") == Decimal("0.33")

    def test_calculate_duration_past_midnight(self):
        assert calculate_duration("23:00", "01:15") == Decimal("2.25")

    def test_calculate_duration_same_time(self):
        assert calculate_duration("10:00", "10:00") == Decimal("0.00")

    def test_hours_between(self):
        start = datetime(2024, 3, 4, 9, 0, 0)
        assert hours_between(start, start + timedelta(hours=2, minutes=15)) == Decimal("2.25")

    def test_hours_between_seconds(self):
        start = datetime(2024, 3, 4, 9, 0, 0)
        # 1h 0m 18s = 1.005h, rounds half up
        assert hours_between(start, start + timedelta(hours=1, seconds=18)) == Decimal("1.01")

    def test_format_elapsed(self):
        assert format_elapsed(timedelta(hours=1, minutes=2, seconds=3)) == "01:02:03"

    def test_format_elapsed_beyond_a_day(self):
        assert format_elapsed(timedelta(hours=26, seconds=5)) == "26:00:05"

    def test_format_elapsed_negative_is_zero(self):
        assert format_elapsed(timedelta(seconds=-5)) == "00:00:00"
