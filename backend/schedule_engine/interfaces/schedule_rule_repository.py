"""
Schedule rule repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from schedule_engine.models.enums import RuleType
from schedule_engine.models.schedule_rule import RuleConfig, ScheduleRule


class IScheduleRuleRepository(ABC):
    """Abstract interface for schedule rule persistence."""

    @abstractmethod
    async def create(
        self, schedule_id: UUID, rule_type: RuleType, config: RuleConfig
    ) -> ScheduleRule:
        """Create an active rule for a schedule.

        A dependency rule writes its companion dependency edge in the same
        transaction.
        """
        pass

    @abstractmethod
    async def get(self, rule_id: UUID) -> Optional[ScheduleRule]:
        """Get a rule by ID."""
        pass

    @abstractmethod
    async def list(
        self, schedule_id: UUID, include_inactive: bool = False
    ) -> list[ScheduleRule]:
        """List rules of a schedule in creation order."""
        pass

    @abstractmethod
    async def set_active(self, rule_id: UUID, is_active: bool) -> ScheduleRule:
        """Activate or deactivate a rule.

        Deactivating a dependency rule removes its edge and re-activating it
        restores the edge, in the same transaction.

        Raises:
            NotFoundError: If the rule does not exist
        """
        pass
