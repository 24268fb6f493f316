"""
Tests for OccurrenceCalculator next-occurrence logic.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from schedule_engine.models.schedule import (
    CalendarRuleParams,
    FixedIntervalParams,
    Schedule,
    SeasonalParams,
    UsageBasedParams,
)
from schedule_engine.services.occurrence_calculator import OccurrenceCalculator
from schedule_engine.utils.calendar_math import add_months

UTC = timezone.utc
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)  # Monday


def _make_schedule(
    params,
    start_date: datetime = datetime(2024, 1, 1, tzinfo=UTC),
    last_occurrence: datetime | None = None,
) -> Schedule:
    """Helper to create a Schedule for testing."""
    return Schedule(
        id=uuid4(),
        organization_id="org-test",
        asset_id="asset-1",
        name="Test Schedule",
        params=params,
        start_date=start_date,
        last_occurrence=last_occurrence,
        created_at=start_date,
        updated_at=start_date,
    )


@pytest.fixture
def calculator():
    return OccurrenceCalculator(seasonal_scan_months=12)


class TestFixedInterval:
    """Tests for fixed_interval schedules."""

    def test_days_from_start_date(self, calculator):
        schedule = _make_schedule(FixedIntervalParams(interval_days=10))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 11, tzinfo=UTC)

    def test_days_from_last_occurrence(self, calculator):
        schedule = _make_schedule(
            FixedIntervalParams(interval_days=10),
            last_occurrence=datetime(2024, 1, 20, 8, 0, tzinfo=UTC),
        )
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 30, 8, 0, tzinfo=UTC)

    def test_months_clamped(self, calculator):
        schedule = _make_schedule(
            FixedIntervalParams(interval_months=1),
            start_date=datetime(2024, 1, 31, tzinfo=UTC),
        )
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 2, 29, tzinfo=UTC)

    def test_days_take_precedence_over_months(self, calculator):
        schedule = _make_schedule(FixedIntervalParams(interval_days=3, interval_months=2))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 4, tzinfo=UTC)

    def test_no_interval_returns_none(self, calculator):
        schedule = _make_schedule(FixedIntervalParams())
        assert calculator.next_occurrence(schedule, NOW) is None

    def test_independent_of_now(self, calculator):
        schedule = _make_schedule(FixedIntervalParams(interval_days=7))
        later = datetime(2025, 6, 1, tzinfo=UTC)
        assert calculator.next_occurrence(schedule, NOW) == calculator.next_occurrence(
            schedule, later
        )


class TestCalendarRule:
    """Tests for calendar_rule (RRULE) schedules."""

    def test_weekly_rule(self, calculator):
        schedule = _make_schedule(
            CalendarRuleParams(rrule="FREQ=WEEKLY;BYDAY=TU"),
            start_date=datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
        )
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 16, 9, 0, tzinfo=UTC)

    def test_rrule_prefix_accepted(self, calculator):
        schedule = _make_schedule(
            CalendarRuleParams(rrule="RRULE:FREQ=MONTHLY;BYMONTHDAY=1"),
            start_date=datetime(2024, 1, 1, tzinfo=UTC),
        )
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 2, 1, tzinfo=UTC)

    def test_strictly_after_now(self, calculator):
        schedule = _make_schedule(
            CalendarRuleParams(rrule="FREQ=DAILY"),
            start_date=NOW,
        )
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 16, 12, 0, tzinfo=UTC)

    def test_exhausted_rule_returns_none(self, calculator):
        schedule = _make_schedule(CalendarRuleParams(rrule="FREQ=DAILY;COUNT=3"))
        assert calculator.next_occurrence(schedule, NOW) is None

    def test_malformed_rule_returns_none_and_warns(self, calculator, caplog):
        schedule = _make_schedule(CalendarRuleParams(rrule="FREQ=SOMETIMES;BYDAY=XX"))
        assert calculator.next_occurrence(schedule, NOW) is None
        assert "Failed to evaluate recurrence rule" in caplog.text

    def test_garbage_rule_returns_none(self, calculator):
        schedule = _make_schedule(CalendarRuleParams(rrule="every other tuesday"))
        assert calculator.next_occurrence(schedule, NOW) is None

    @pytest.mark.parametrize(
        "expression",
        [
            "DTSTART:20240101T090000\nRRULE:FREQ=WEEKLY;BYDAY=TU",
            "DTSTART:20240101T090000Z\nRRULE:FREQ=WEEKLY;BYDAY=TU",
        ],
    )
    def test_embedded_dtstart(self, calculator, expression):
        schedule = _make_schedule(CalendarRuleParams(rrule=expression))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 16, 9, 0, tzinfo=UTC)

    @pytest.mark.parametrize(
        "until",
        ["20251231", "20251231T000000", "20251231T000000Z"],
    )
    def test_until_forms(self, calculator, until):
        schedule = _make_schedule(CalendarRuleParams(rrule=f"FREQ=DAILY;UNTIL={until}"))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 16, tzinfo=UTC)

    def test_until_in_the_past(self, calculator):
        schedule = _make_schedule(CalendarRuleParams(rrule="FREQ=DAILY;UNTIL=20240110"))
        assert calculator.next_occurrence(schedule, NOW) is None

    def test_until_is_inclusive(self, calculator):
        schedule = _make_schedule(CalendarRuleParams(rrule="FREQ=DAILY;UNTIL=20240116"))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 16, tzinfo=UTC)


class TestSeasonal:
    """Tests for seasonal schedules."""

    def test_day_clamped_in_leap_february(self, calculator):
        schedule = _make_schedule(SeasonalParams(months=[2, 4, 6], day_of_month=31))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 2, 29, tzinfo=UTC)

    def test_current_month_when_day_still_ahead(self, calculator):
        schedule = _make_schedule(SeasonalParams(months=[1], day_of_month=20))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 1, 20, tzinfo=UTC)

    def test_skips_current_month_when_day_passed(self, calculator):
        schedule = _make_schedule(SeasonalParams(months=[1, 7], day_of_month=10))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 7, 10, tzinfo=UTC)

    def test_defaults_to_first_of_month(self, calculator):
        schedule = _make_schedule(SeasonalParams(months=[3]))
        assert calculator.next_occurrence(schedule, NOW) == datetime(2024, 3, 1, tzinfo=UTC)

    def test_wraps_into_next_year(self, calculator):
        now = datetime(2024, 11, 20, tzinfo=UTC)
        schedule = _make_schedule(SeasonalParams(months=[2], day_of_month=30))
        assert calculator.next_occurrence(schedule, now) == datetime(2025, 2, 28, tzinfo=UTC)

    def test_no_future_candidate_in_window_returns_none(self, calculator):
        # Only January, and this January's day has passed: the 12-month window
        # (Jan..Dec 2024) holds no future candidate.
        schedule = _make_schedule(SeasonalParams(months=[1], day_of_month=10))
        assert calculator.next_occurrence(schedule, NOW) is None

    @pytest.mark.parametrize("month", range(1, 13))
    @pytest.mark.parametrize("day_of_month", [1, 15, 28, 31])
    def test_result_within_twelve_months(self, calculator, month, day_of_month):
        schedule = _make_schedule(SeasonalParams(months=[month], day_of_month=day_of_month))
        result = calculator.next_occurrence(schedule, NOW)
        if result is not None:
            assert NOW < result <= add_months(NOW, 12)
            assert result.month == month

    def test_zero_scan_window(self):
        calculator = OccurrenceCalculator(seasonal_scan_months=0)
        schedule = _make_schedule(SeasonalParams(months=[3]))
        assert calculator.next_occurrence(schedule, NOW) is None


class TestUsageBased:
    def test_always_none(self, calculator):
        schedule = _make_schedule(UsageBasedParams(counter_type="hours", threshold=50))
        assert calculator.next_occurrence(schedule, NOW) is None
