"""
Dependency resolver.

Pushes a candidate date past every prerequisite's last completion plus its
offset (AND semantics: the result is the maximum of all floors).
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from schedule_engine.core.logger import setup_logger
from schedule_engine.interfaces.completion_repository import ICompletionRepository
from schedule_engine.models.schedule_rule import ScheduleDependency
from schedule_engine.utils.calendar_math import add_days

logger = setup_logger(__name__)


def latest_of(candidate: datetime, floors: Iterable[Optional[datetime]]) -> datetime:
    """Maximum of the candidate and every non-null floor."""
    latest = candidate
    for floor in floors:
        if floor is not None and floor > latest:
            latest = floor
    return latest


class DependencyResolver:
    """Resolves dependency floors from the completion log."""

    def __init__(self, completion_repo: ICompletionRepository):
        self.completion_repo = completion_repo

    async def floor_for(self, dependency: ScheduleDependency) -> Optional[datetime]:
        """Earliest allowed date imposed by one edge, or None when unconstrained."""
        record = await self.completion_repo.get_latest_completed(
            dependency.depends_on_schedule_id
        )
        if record is None:
            return None
        return add_days(record.completed_at, dependency.offset_days)

    async def resolve(
        self, candidate: datetime, dependencies: Iterable[ScheduleDependency]
    ) -> datetime:
        """Candidate pushed forward to satisfy every dependency."""
        floors = [await self.floor_for(dependency) for dependency in dependencies]
        resolved = latest_of(candidate, floors)
        if resolved != candidate:
            logger.info(
                f"Dependencies moved occurrence from {candidate.isoformat()} to {resolved.isoformat()}"
            )
        return resolved
