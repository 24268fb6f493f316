"""
Schedule models.

A schedule's kind-specific parameters form a closed tagged union discriminated
on ``kind``. The task template is an opaque JSON object passed through as-is.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from schedule_engine.models.enums import ScheduleKind
from schedule_engine.utils.datetime_utils import UtcDatetime


def check_months(months: list[int]) -> list[int]:
    """Reject month numbers outside 1..12; return the sorted distinct months."""
    invalid = [m for m in months if m < 1 or m > 12]
    if invalid:
        raise ValueError(
            f"Invalid month numbers: {', '.join(str(m) for m in invalid)}"
        )
    return sorted(set(months))


class FixedIntervalParams(BaseModel):
    """Every N days or every N months from the last occurrence."""

    kind: Literal["fixed_interval"] = "fixed_interval"
    interval_days: Optional[int] = Field(None, ge=1)
    interval_months: Optional[int] = Field(None, ge=1)


class CalendarRuleParams(BaseModel):
    """RFC 5545 recurrence rule (RRULE) expression."""

    kind: Literal["calendar_rule"] = "calendar_rule"
    rrule: str = Field(..., min_length=1)


class SeasonalParams(BaseModel):
    """Specific months of the year, optionally on a given day."""

    kind: Literal["seasonal"] = "seasonal"
    months: list[int] = Field(..., min_length=1)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)

    @field_validator("months")
    @classmethod
    def validate_months(cls, months: list[int]) -> list[int]:
        return check_months(months)


class UsageBasedParams(BaseModel):
    """Fires when a usage counter reaches a threshold."""

    kind: Literal["usage_based"] = "usage_based"
    counter_type: str = Field(..., min_length=1, max_length=100)
    threshold: float = Field(..., gt=0)
    reset_on_trigger: bool = False


ScheduleParams = Annotated[
    Union[FixedIntervalParams, CalendarRuleParams, SeasonalParams, UsageBasedParams],
    Field(discriminator="kind"),
]


# ===========================================
# Creation configs (caller input)
# ===========================================


class FixedIntervalScheduleConfig(BaseModel):
    """Input for a fixed-interval schedule."""

    interval_days: Optional[int] = Field(None, ge=1)
    interval_months: Optional[int] = Field(None, ge=1)
    start_date: Optional[UtcDatetime] = None

    @model_validator(mode="after")
    def validate_single_interval(self):
        if (self.interval_days is None) == (self.interval_months is None):
            raise ValueError("Exactly one of interval_days or interval_months is required")
        return self


class CalendarRuleScheduleConfig(BaseModel):
    """Input for a calendar-rule schedule."""

    rrule: str = Field(..., min_length=1)
    start_date: Optional[UtcDatetime] = None


class SeasonalScheduleConfig(BaseModel):
    """Input for a seasonal schedule."""

    months: list[int] = Field(
        ..., min_length=1, description="Month numbers 1=January ... 12=December"
    )
    day_of_month: Optional[int] = Field(None, ge=1, le=31)

    @field_validator("months")
    @classmethod
    def validate_months(cls, months: list[int]) -> list[int]:
        return check_months(months)


class UsageBasedScheduleConfig(BaseModel):
    """Input for a usage-based schedule."""

    counter_type: str = Field(..., min_length=1, max_length=100)
    threshold: float = Field(..., gt=0)
    reset_on_trigger: bool = False


# ===========================================
# Schedule records
# ===========================================


class ScheduleBase(BaseModel):
    """Base fields for schedules."""

    organization_id: str = Field(..., min_length=1)
    asset_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    params: ScheduleParams
    start_date: UtcDatetime
    task_template: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class ScheduleCreate(ScheduleBase):
    """Create a new schedule."""

    pass


class ScheduleUpdate(BaseModel):
    """Update schedule fields. None values are ignored by repositories."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    task_template: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None
    last_occurrence: Optional[UtcDatetime] = None


class Schedule(ScheduleBase):
    """Schedule with engine-managed occurrence fields."""

    id: UUID
    last_occurrence: Optional[UtcDatetime] = None
    next_occurrence: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    @property
    def kind(self) -> ScheduleKind:
        return ScheduleKind(self.params.kind)

    class Config:
        from_attributes = True
