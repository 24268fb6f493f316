"""
Usage counter models.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schedule_engine.models.schedule import Schedule
from schedule_engine.utils.datetime_utils import UtcDatetime


class UsageCounter(BaseModel):
    """Running usage total per (asset, counter type)."""

    id: UUID
    asset_id: str
    counter_type: str
    schedule_id: Optional[UUID] = None
    current_value: float = 0
    notes: Optional[str] = Field(None, max_length=2000)
    last_updated_at: Optional[UtcDatetime] = None
    last_reset_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime

    class Config:
        from_attributes = True


class UsageCounterUpdateResult(BaseModel):
    """Outcome of a counter increment."""

    counter: UsageCounter
    triggered: bool
    schedule: Optional[Schedule] = None
