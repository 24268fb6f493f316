"""
Completion log repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from schedule_engine.models.completion import CompletionRecord, CompletionRecordCreate


class ICompletionRepository(ABC):
    """Abstract interface for the task completion log."""

    @abstractmethod
    async def create(self, data: CompletionRecordCreate) -> CompletionRecord:
        """Append a completion record."""
        pass

    @abstractmethod
    async def get_latest_completed(self, schedule_id: UUID) -> Optional[CompletionRecord]:
        """Most recent DONE record of a schedule, by completed_at."""
        pass
