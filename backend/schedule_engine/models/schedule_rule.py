"""
Schedule rule models.

Each rule type has exactly one configuration shape, discriminated on
``rule_type``.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from schedule_engine.models.enums import RuleType
from schedule_engine.utils.datetime_utils import UtcDatetime


class DateRange(BaseModel):
    """Inclusive range of calendar days."""

    start: date
    end: date

    @model_validator(mode="after")
    def validate_order(self):
        if self.end < self.start:
            raise ValueError("range end must not precede range start")
        return self


class BlackoutDatesConfig(BaseModel):
    """Days on which a schedule must not land."""

    rule_type: Literal["blackout_dates"] = "blackout_dates"
    dates: list[date] = Field(default_factory=list)
    ranges: list[DateRange] = Field(default_factory=list)


class BusinessDaysConfig(BaseModel):
    """Restrict occurrences to business days."""

    rule_type: Literal["business_days_only"] = "business_days_only"
    exclude_weekends: bool = True
    exclude_holidays: bool = False
    custom_holidays: list[date] = Field(default_factory=list)


class DependencyConfig(BaseModel):
    """Occur no earlier than the prerequisite's last completion + offset."""

    rule_type: Literal["dependency"] = "dependency"
    depends_on_schedule_id: UUID
    offset_days: int = Field(0, ge=0)


RuleConfig = Annotated[
    Union[BlackoutDatesConfig, BusinessDaysConfig, DependencyConfig],
    Field(discriminator="rule_type"),
]


class ScheduleRule(BaseModel):
    """Constraint rule attached to one schedule."""

    id: UUID
    schedule_id: UUID
    rule_type: RuleType
    config: RuleConfig
    is_active: bool = True
    created_at: UtcDatetime

    @model_validator(mode="after")
    def validate_config_shape(self):
        if self.config.rule_type != self.rule_type.value:
            raise ValueError(
                f"config shape {self.config.rule_type} does not match rule type {self.rule_type.value}"
            )
        return self

    class Config:
        from_attributes = True


class ScheduleDependency(BaseModel):
    """Directed edge: schedule_id waits for depends_on_schedule_id."""

    id: UUID
    schedule_id: UUID
    depends_on_schedule_id: UUID
    offset_days: int = Field(0, ge=0)
    rule_id: Optional[UUID] = None
    created_at: UtcDatetime

    class Config:
        from_attributes = True
