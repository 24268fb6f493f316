"""
Occurrence calculators.

One calculation per schedule kind, each returning a single candidate next
occurrence (or None) for a schedule at a given "now".
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from dateutil.rrule import rrulestr

from schedule_engine.core.config import get_settings
from schedule_engine.core.logger import setup_logger
from schedule_engine.models.enums import ScheduleKind
from schedule_engine.models.schedule import (
    CalendarRuleParams,
    FixedIntervalParams,
    Schedule,
    SeasonalParams,
)
from schedule_engine.utils.calendar_math import add_days, add_months, clamp_day, shift_month
from schedule_engine.utils.datetime_utils import UTC, ensure_utc, to_naive_utc

logger = setup_logger(__name__)


def parse_rrule(expression: str, dtstart: Optional[datetime] = None):
    """Parse an RFC 5545 recurrence expression in naive UTC.

    UTC ("Z") stamps in DTSTART and UNTIL are read as naive UTC, so date-form
    and floating UNTIL values combine with the schedule's start date.

    Raises:
        ValueError: If the expression is malformed
    """
    return rrulestr(expression, dtstart=to_naive_utc(dtstart), ignoretz=True)


def rrule_after(expression: str, dtstart: Optional[datetime], now: datetime) -> Optional[datetime]:
    """First occurrence of a recurrence expression strictly after now, in UTC.

    Raises:
        ValueError: If the expression is malformed
        TypeError: If the expression mixes zone-aware and floating values
    """
    rule = parse_rrule(expression, dtstart)
    try:
        occurrence = rule.after(to_naive_utc(now), inc=False)
    except TypeError:
        # DTSTART;TZID=... yields a zone-aware rule
        occurrence = rule.after(ensure_utc(now), inc=False)
    return ensure_utc(occurrence)


class OccurrenceCalculator:
    """Computes a schedule's next calendar occurrence, dispatched on its kind."""

    def __init__(self, seasonal_scan_months: Optional[int] = None):
        settings = get_settings()
        self.seasonal_scan_months = (
            seasonal_scan_months
            if seasonal_scan_months is not None
            else settings.SEASONAL_SCAN_MONTHS
        )

    def next_occurrence(self, schedule: Schedule, now: datetime) -> Optional[datetime]:
        """Candidate next occurrence of a schedule, or None when it has none."""
        now = ensure_utc(now)
        kind = schedule.params.kind

        if kind == ScheduleKind.FIXED_INTERVAL:
            return self.next_fixed_interval(schedule)

        elif kind == ScheduleKind.CALENDAR_RULE:
            return self.next_calendar_rule(schedule, now)

        elif kind == ScheduleKind.SEASONAL:
            return self.next_seasonal(schedule.params, now)

        elif kind == ScheduleKind.USAGE_BASED:
            # Driven by the usage counter, never by the calendar
            return None

        logger.warning(f"Unrecognized schedule kind {kind!r} for schedule {schedule.id}")
        return None

    @staticmethod
    def next_fixed_interval(schedule: Schedule) -> Optional[datetime]:
        """Last occurrence (or start date) plus the configured interval."""
        params: FixedIntervalParams = schedule.params
        base = schedule.last_occurrence or schedule.start_date

        if params.interval_days:
            return add_days(base, params.interval_days)
        if params.interval_months:
            return add_months(base, params.interval_months)
        return None

    @staticmethod
    def next_calendar_rule(schedule: Schedule, now: datetime) -> Optional[datetime]:
        """First RRULE occurrence strictly after now. Malformed rules yield None."""
        params: CalendarRuleParams = schedule.params
        try:
            return rrule_after(params.rrule, schedule.start_date, now)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to evaluate recurrence rule for schedule {schedule.id}: {e}")
            return None

    def next_seasonal(self, params: SeasonalParams, now: datetime) -> Optional[datetime]:
        """First target month day (clamped, 00:00 UTC) strictly after now.

        Scans month by month starting at now's month. Returns None when no
        candidate inside the scan window lies in the future.
        """
        months = set(params.months)
        day_of_month = params.day_of_month or 1

        for months_ahead in range(self.seasonal_scan_months):
            year, month = shift_month(now.year, now.month, months_ahead)
            if month not in months:
                continue
            candidate = datetime(
                year, month, clamp_day(year, month, day_of_month), tzinfo=UTC
            )
            if candidate > now:
                return candidate
        return None
