"""
Schedule dependency repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from schedule_engine.models.schedule_rule import ScheduleDependency


class IScheduleDependencyRepository(ABC):
    """Abstract interface for dependency edge persistence."""

    @abstractmethod
    async def list_for_schedule(self, schedule_id: UUID) -> list[ScheduleDependency]:
        """Edges where the schedule is the dependent side."""
        pass

    @abstractmethod
    async def list_dependents(self, schedule_id: UUID) -> list[ScheduleDependency]:
        """Edges where the schedule is the prerequisite."""
        pass
