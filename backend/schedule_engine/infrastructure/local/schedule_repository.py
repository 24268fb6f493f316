"""
SQLite implementation of schedule repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from schedule_engine.core.exceptions import NotFoundError
from schedule_engine.infrastructure.local.database import ScheduleORM, get_session_factory
from schedule_engine.infrastructure.local.usage_counter_repository import upsert_counter
from schedule_engine.interfaces.schedule_repository import IScheduleRepository
from schedule_engine.models.enums import ScheduleKind
from schedule_engine.models.schedule import Schedule, ScheduleCreate, ScheduleUpdate
from schedule_engine.models.usage_counter import UsageCounter
from schedule_engine.utils.datetime_utils import now_utc, to_naive_utc


class SqliteScheduleRepository(IScheduleRepository):
    """SQLite implementation of schedule repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ScheduleORM) -> Schedule:
        """Convert ORM object to Pydantic model."""
        return Schedule.model_validate(orm, from_attributes=True)

    def _build_orm(self, data: ScheduleCreate) -> ScheduleORM:
        return ScheduleORM(
            id=str(uuid4()),
            organization_id=data.organization_id,
            asset_id=data.asset_id,
            name=data.name,
            description=data.description,
            kind=data.params.kind,
            params=data.params.model_dump(mode="json"),
            start_date=to_naive_utc(data.start_date),
            task_template=data.task_template,
            is_active=data.is_active,
            last_occurrence=None,
            next_occurrence=None,
        )

    async def _get_orm(self, session, schedule_id: UUID) -> ScheduleORM:
        result = await session.execute(
            select(ScheduleORM).where(ScheduleORM.id == str(schedule_id))
        )
        orm = result.scalar_one_or_none()
        if not orm:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        return orm

    async def create(self, data: ScheduleCreate) -> Schedule:
        """Create a new schedule."""
        async with self._session_factory() as session:
            orm = self._build_orm(data)
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def create_usage_based(
        self, data: ScheduleCreate, counter_type: str
    ) -> tuple[Schedule, UsageCounter]:
        """Create a usage-based schedule and upsert its counter in one transaction."""
        async with self._session_factory() as session:
            orm = self._build_orm(data)
            session.add(orm)
            await session.flush()

            counter = await upsert_counter(session, data.asset_id, counter_type, orm.id)

            await session.commit()
            await session.refresh(orm)
            await session.refresh(counter)
            return (
                self._orm_to_model(orm),
                UsageCounter.model_validate(counter, from_attributes=True),
            )

    async def get(
        self, schedule_id: UUID, organization_id: Optional[str] = None
    ) -> Optional[Schedule]:
        """Get a schedule by ID."""
        async with self._session_factory() as session:
            conditions = [ScheduleORM.id == str(schedule_id)]
            if organization_id is not None:
                conditions.append(ScheduleORM.organization_id == organization_id)
            result = await session.execute(select(ScheduleORM).where(and_(*conditions)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list(
        self,
        organization_id: str,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Schedule]:
        """List schedules of an organization."""
        async with self._session_factory() as session:
            conditions = [ScheduleORM.organization_id == organization_id]
            if not include_inactive:
                conditions.append(ScheduleORM.is_active.is_(True))

            query = select(ScheduleORM).where(and_(*conditions))
            query = query.order_by(ScheduleORM.created_at.desc()).limit(limit).offset(offset)
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_due(
        self, organization_id: str, now: datetime, limit: int = 500
    ) -> list[Schedule]:
        """List active, non-usage-based schedules whose next occurrence has passed."""
        async with self._session_factory() as session:
            query = (
                select(ScheduleORM)
                .where(
                    and_(
                        ScheduleORM.organization_id == organization_id,
                        ScheduleORM.is_active.is_(True),
                        ScheduleORM.kind != ScheduleKind.USAGE_BASED.value,
                        ScheduleORM.next_occurrence.is_not(None),
                        ScheduleORM.next_occurrence <= to_naive_utc(now),
                    )
                )
                .order_by(ScheduleORM.next_occurrence.asc())
                .limit(limit)
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update(self, schedule_id: UUID, update: ScheduleUpdate) -> Schedule:
        """Update a schedule."""
        async with self._session_factory() as session:
            orm = await self._get_orm(session, schedule_id)

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if value is None:
                    continue
                if field == "last_occurrence":
                    value = to_naive_utc(value)
                setattr(orm, field, value)

            orm.updated_at = to_naive_utc(now_utc())
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def set_next_occurrence(
        self, schedule_id: UUID, next_occurrence: Optional[datetime]
    ) -> Schedule:
        """Persist the resolved next occurrence."""
        async with self._session_factory() as session:
            orm = await self._get_orm(session, schedule_id)
            orm.next_occurrence = to_naive_utc(next_occurrence)
            orm.updated_at = to_naive_utc(now_utc())
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
