"""
Usage counter repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional, TypeVar

from schedule_engine.models.usage_counter import UsageCounter

T = TypeVar("T")


class IUsageCounterRepository(ABC):
    """Abstract interface for usage counter persistence."""

    @abstractmethod
    async def get(self, asset_id: str, counter_type: str) -> Optional[UsageCounter]:
        """Get the counter for an (asset, counter type) pair."""
        pass

    @abstractmethod
    async def apply_transition(
        self,
        asset_id: str,
        counter_type: str,
        evaluate: Callable[[UsageCounter], T],
    ) -> tuple[UsageCounter, T]:
        """Atomically read, evaluate and write a counter.

        ``evaluate`` receives the locked current state and returns a transition
        exposing ``current_value``, ``updated_at``, ``notes`` and ``reset_at``;
        the repository persists it in the same transaction.

        Raises:
            NotFoundError: If the counter does not exist
        """
        pass
