"""
SQLite implementation of the completion log repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from schedule_engine.infrastructure.local.database import (
    CompletionRecordORM,
    get_session_factory,
)
from schedule_engine.interfaces.completion_repository import ICompletionRepository
from schedule_engine.models.completion import CompletionRecord, CompletionRecordCreate
from schedule_engine.models.enums import TaskStatus
from schedule_engine.utils.datetime_utils import to_naive_utc


class SqliteCompletionRepository(ICompletionRepository):
    """SQLite implementation of the completion log."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: CompletionRecordORM) -> CompletionRecord:
        return CompletionRecord.model_validate(orm, from_attributes=True)

    async def create(self, data: CompletionRecordCreate) -> CompletionRecord:
        """Append a completion record."""
        async with self._session_factory() as session:
            orm = CompletionRecordORM(
                id=str(uuid4()),
                schedule_id=str(data.schedule_id),
                task_id=str(data.task_id) if data.task_id else None,
                status=data.status.value,
                completed_at=to_naive_utc(data.completed_at),
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get_latest_completed(self, schedule_id: UUID) -> Optional[CompletionRecord]:
        """Most recent DONE record of a schedule."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(CompletionRecordORM)
                .where(
                    and_(
                        CompletionRecordORM.schedule_id == str(schedule_id),
                        CompletionRecordORM.status == TaskStatus.DONE.value,
                    )
                )
                .order_by(CompletionRecordORM.completed_at.desc())
                .limit(1)
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None
