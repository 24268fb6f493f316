"""
Tests for calendar arithmetic helpers.
"""

from datetime import date, datetime, timezone

from schedule_engine.utils.calendar_math import (
    add_days,
    add_months,
    clamp_day,
    date_key,
    days_in_month,
    is_holiday,
    is_weekend,
    shift_month,
)

UTC = timezone.utc


class TestAddMonths:
    """Month arithmetic clamps the day into the target month."""

    def test_jan_31_to_leap_february(self):
        result = add_months(datetime(2024, 1, 31, tzinfo=UTC), 1)
        assert result == datetime(2024, 2, 29, tzinfo=UTC)

    def test_jan_31_to_common_february(self):
        result = add_months(datetime(2023, 1, 31, tzinfo=UTC), 1)
        assert result == datetime(2023, 2, 28, tzinfo=UTC)

    def test_preserves_time_of_day(self):
        result = add_months(datetime(2024, 3, 31, 9, 30, tzinfo=UTC), 1)
        assert result == datetime(2024, 4, 30, 9, 30, tzinfo=UTC)

    def test_year_boundary(self):
        result = add_months(datetime(2024, 11, 15, tzinfo=UTC), 3)
        assert result == datetime(2025, 2, 15, tzinfo=UTC)

    def test_negative_months(self):
        result = add_months(datetime(2024, 3, 31, tzinfo=UTC), -1)
        assert result == datetime(2024, 2, 29, tzinfo=UTC)


class TestAddDays:
    def test_crosses_year(self):
        result = add_days(datetime(2024, 12, 30, tzinfo=UTC), 3)
        assert result == datetime(2025, 1, 2, tzinfo=UTC)

    def test_leap_day(self):
        result = add_days(datetime(2024, 2, 28, tzinfo=UTC), 1)
        assert result == datetime(2024, 2, 29, tzinfo=UTC)


class TestMonthHelpers:
    def test_days_in_month(self):
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28
        assert days_in_month(2024, 4) == 30

    def test_clamp_day(self):
        assert clamp_day(2023, 2, 31) == 28
        assert clamp_day(2024, 4, 31) == 30
        assert clamp_day(2024, 5, 31) == 31
        assert clamp_day(2024, 5, 0) == 1

    def test_shift_month_forward_across_year(self):
        assert shift_month(2024, 11, 3) == (2025, 2)

    def test_shift_month_backward(self):
        assert shift_month(2024, 1, -1) == (2023, 12)


class TestDayClassification:
    def test_weekend_days(self):
        assert is_weekend(date(2024, 1, 13))  # Saturday
        assert is_weekend(datetime(2024, 1, 14, 8, 0, tzinfo=UTC))  # Sunday

    def test_weekdays(self):
        assert not is_weekend(date(2024, 1, 15))  # Monday
        assert not is_weekend(date(2024, 1, 19))  # Friday

    def test_date_key_ignores_time(self):
        assert date_key(datetime(2024, 3, 5, 23, 59, tzinfo=UTC)) == "2024-03-05"
        assert date_key(date(2024, 12, 1)) == "2024-12-01"

    def test_is_holiday_with_strings_and_dates(self):
        day = datetime(2024, 12, 25, 10, 0, tzinfo=UTC)
        assert is_holiday(day, ["2024-12-25"])
        assert is_holiday(day, [date(2024, 12, 25)])
        assert not is_holiday(day, ["2024-12-26", date(2023, 12, 25)])
