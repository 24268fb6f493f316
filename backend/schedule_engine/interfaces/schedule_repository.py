"""
Schedule repository interface.

Defines contract for schedule persistence operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from schedule_engine.models.schedule import Schedule, ScheduleCreate, ScheduleUpdate
from schedule_engine.models.usage_counter import UsageCounter


class IScheduleRepository(ABC):
    """Abstract interface for schedule persistence."""

    @abstractmethod
    async def create(self, data: ScheduleCreate) -> Schedule:
        """Create a new schedule."""
        pass

    @abstractmethod
    async def create_usage_based(
        self, data: ScheduleCreate, counter_type: str
    ) -> tuple[Schedule, UsageCounter]:
        """Create a usage-based schedule and upsert its counter in one transaction.

        The counter for (asset_id, counter_type) is created at value 0, or
        re-pointed at the new schedule when it already exists.
        """
        pass

    @abstractmethod
    async def get(
        self, schedule_id: UUID, organization_id: Optional[str] = None
    ) -> Optional[Schedule]:
        """Get a schedule by ID, optionally scoped to an organization."""
        pass

    @abstractmethod
    async def list(
        self,
        organization_id: str,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Schedule]:
        """List schedules of an organization."""
        pass

    @abstractmethod
    async def list_due(
        self, organization_id: str, now: datetime, limit: int = 500
    ) -> list[Schedule]:
        """List active, non-usage-based schedules with next_occurrence <= now."""
        pass

    @abstractmethod
    async def update(self, schedule_id: UUID, update: ScheduleUpdate) -> Schedule:
        """Update schedule fields (None values are left untouched)."""
        pass

    @abstractmethod
    async def set_next_occurrence(
        self, schedule_id: UUID, next_occurrence: Optional[datetime]
    ) -> Schedule:
        """Persist the resolved next occurrence (None clears it)."""
        pass
