"""
Rule applicator.

Moves a candidate occurrence forward until no active constraint rule rejects
it. Blackout rules are applied before business-day rules, whatever the input
order; every loop is bounded.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from schedule_engine.core.config import get_settings
from schedule_engine.core.logger import setup_logger
from schedule_engine.models.enums import RuleType
from schedule_engine.models.schedule_rule import (
    BlackoutDatesConfig,
    BusinessDaysConfig,
    ScheduleRule,
)
from schedule_engine.utils.calendar_math import (
    SATURDAY,
    add_days,
    date_key,
    is_holiday,
    is_weekend,
)

logger = setup_logger(__name__)

RULE_PRECEDENCE = {
    RuleType.BLACKOUT_DATES: 0,
    RuleType.BUSINESS_DAYS_ONLY: 1,
}


class RuleApplicator:
    """Applies blackout and business-day rules to a candidate date."""

    def __init__(
        self,
        max_blackout_attempts: Optional[int] = None,
        max_business_day_passes: Optional[int] = None,
        max_rule_passes: Optional[int] = None,
    ):
        settings = get_settings()
        self.max_blackout_attempts = (
            max_blackout_attempts
            if max_blackout_attempts is not None
            else settings.BLACKOUT_MAX_ATTEMPTS
        )
        self.max_business_day_passes = (
            max_business_day_passes
            if max_business_day_passes is not None
            else settings.BUSINESS_DAY_MAX_PASSES
        )
        self.max_rule_passes = (
            max_rule_passes if max_rule_passes is not None else settings.RULE_MAX_PASSES
        )

    @staticmethod
    def order_rules(rules: Iterable[ScheduleRule]) -> list[ScheduleRule]:
        """Active calendar rules in precedence order (stable within a type)."""
        active = [
            rule for rule in rules if rule.is_active and rule.rule_type in RULE_PRECEDENCE
        ]
        return sorted(active, key=lambda rule: RULE_PRECEDENCE[rule.rule_type])

    def apply(self, candidate: datetime, rules: Iterable[ScheduleRule]) -> datetime:
        """Adjust a candidate date so that no active rule rejects it.

        Full passes repeat until the date stops moving, so a business-day shift
        that lands in a blackout is caught. A blackout rule that hits its
        attempt cap ends resolution with its best-effort date.
        """
        ordered = self.order_rules(rules)
        if not ordered:
            return candidate

        adjusted = candidate
        for _ in range(self.max_rule_passes):
            before = adjusted
            for rule in ordered:
                if rule.rule_type == RuleType.BLACKOUT_DATES:
                    adjusted = self.apply_blackout_dates(adjusted, rule.config)
                    if self.is_blacked_out(adjusted, rule.config):
                        return adjusted
                elif rule.rule_type == RuleType.BUSINESS_DAYS_ONLY:
                    adjusted = self.apply_business_days_only(adjusted, rule.config)
            if adjusted == before:
                return adjusted

        logger.warning(
            f"Rules did not settle after {self.max_rule_passes} passes; using {adjusted.isoformat()}"
        )
        return adjusted

    @staticmethod
    def is_blacked_out(value: datetime, config: BlackoutDatesConfig) -> bool:
        """Whether the value's day is an explicit blackout date or inside a range."""
        key = date_key(value)
        if any(date_key(blackout) == key for blackout in config.dates):
            return True

        day: date = value.date()
        return any(r.start <= day <= r.end for r in config.ranges)

    def apply_blackout_dates(self, value: datetime, config: BlackoutDatesConfig) -> datetime:
        """Advance day by day past blackout days, at most max_blackout_attempts times."""
        adjusted = value
        attempts = 0

        while attempts < self.max_blackout_attempts:
            if not self.is_blacked_out(adjusted, config):
                return adjusted
            adjusted = add_days(adjusted, 1)
            attempts += 1

        if self.is_blacked_out(adjusted, config):
            logger.warning(
                f"Blackout rule still blocks {date_key(adjusted)} after "
                f"{self.max_blackout_attempts} attempts; returning best-effort date"
            )
        return adjusted

    def apply_business_days_only(
        self, value: datetime, config: BusinessDaysConfig
    ) -> datetime:
        """Move weekends to Monday and step over custom holidays.

        A holiday step re-evaluates the weekend check, so a holiday landing on
        Friday pushes through the weekend to Monday.
        """
        adjusted = value

        for _ in range(self.max_business_day_passes):
            if config.exclude_weekends and is_weekend(adjusted):
                adjusted = add_days(adjusted, 2 if adjusted.weekday() == SATURDAY else 1)

            if (
                config.exclude_holidays
                and config.custom_holidays
                and is_holiday(adjusted, config.custom_holidays)
            ):
                adjusted = add_days(adjusted, 1)
                continue

            return adjusted

        logger.warning(
            f"Business-day rule did not settle after {self.max_business_day_passes} passes"
        )
        return adjusted
