"""
Enum definitions for the schedule engine.
"""

from enum import Enum


class ScheduleKind(str, Enum):
    """How a schedule produces its occurrences."""

    FIXED_INTERVAL = "fixed_interval"
    CALENDAR_RULE = "calendar_rule"
    SEASONAL = "seasonal"
    USAGE_BASED = "usage_based"


class RuleType(str, Enum):
    """Constraint rule attached to a schedule."""

    BLACKOUT_DATES = "blackout_dates"
    BUSINESS_DAYS_ONLY = "business_days_only"
    DEPENDENCY = "dependency"


class TaskStatus(str, Enum):
    """Status of a task spawned by a schedule, as seen in the completion log."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING = "WAITING"
    DONE = "DONE"


class CounterState(str, Enum):
    """
    Usage counter state.

    ACCUMULATING = below threshold (or no owning schedule)
    TRIGGERED = the increment crossed the threshold (reported once per call)
    """

    ACCUMULATING = "ACCUMULATING"
    TRIGGERED = "TRIGGERED"
