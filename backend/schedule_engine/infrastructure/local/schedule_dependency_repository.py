"""
SQLite implementation of schedule dependency repository.

Edges are written by the rule repository together with their dependency
rule; this repository only reads them.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from schedule_engine.infrastructure.local.database import (
    ScheduleDependencyORM,
    get_session_factory,
)
from schedule_engine.interfaces.schedule_dependency_repository import (
    IScheduleDependencyRepository,
)
from schedule_engine.models.schedule_rule import ScheduleDependency


class SqliteScheduleDependencyRepository(IScheduleDependencyRepository):
    """SQLite implementation of schedule dependency repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ScheduleDependencyORM) -> ScheduleDependency:
        return ScheduleDependency.model_validate(orm, from_attributes=True)

    async def list_for_schedule(self, schedule_id: UUID) -> list[ScheduleDependency]:
        """Edges where the schedule waits on others."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScheduleDependencyORM)
                .where(ScheduleDependencyORM.schedule_id == str(schedule_id))
                .order_by(ScheduleDependencyORM.created_at.asc())
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_dependents(self, schedule_id: UUID) -> list[ScheduleDependency]:
        """Edges where other schedules wait on this one."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScheduleDependencyORM).where(
                    ScheduleDependencyORM.depends_on_schedule_id == str(schedule_id)
                )
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]
