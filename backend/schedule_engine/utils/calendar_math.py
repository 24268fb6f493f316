"""
Calendar arithmetic helpers.

Pure functions over UTC datetimes. Month arithmetic clamps the day to the
target month's length (Jan 31 + 1 month = Feb 28/29) using relativedelta.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Iterable

from dateutil.relativedelta import relativedelta

SATURDAY = 5
SUNDAY = 6


def add_days(value: datetime, days: int) -> datetime:
    """Add (or subtract) whole days."""
    return value + timedelta(days=days)


def add_months(value: datetime, months: int) -> datetime:
    """Add months, clamping the day-of-month into the target month."""
    return value + relativedelta(months=months)


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month (leap years included)."""
    return monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Clamp a day-of-month into [1, last day of month]."""
    return max(1, min(day, days_in_month(year, month)))


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Return (year, month) shifted by a number of months."""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def date_key(value: date | datetime) -> str:
    """Canonical YYYY-MM-DD key of the value's calendar day."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def is_weekend(value: date | datetime) -> bool:
    """Saturday or Sunday."""
    return value.weekday() in (SATURDAY, SUNDAY)


def is_holiday(value: date | datetime, holidays: Iterable[date | str]) -> bool:
    """Membership of the value's day in a holiday list (dates or YYYY-MM-DD strings)."""
    key = date_key(value)
    return any(
        (holiday if isinstance(holiday, str) else date_key(holiday)) == key
        for holiday in holidays
    )
