"""
Task completion log models.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from schedule_engine.models.enums import TaskStatus
from schedule_engine.utils.datetime_utils import UtcDatetime


class CompletionRecordCreate(BaseModel):
    """Log a task outcome for a schedule."""

    schedule_id: UUID
    task_id: Optional[UUID] = None
    status: TaskStatus = TaskStatus.DONE
    completed_at: UtcDatetime


class CompletionRecord(CompletionRecordCreate):
    """Completion log entry."""

    id: UUID
    created_at: UtcDatetime

    class Config:
        from_attributes = True
