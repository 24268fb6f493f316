"""
SQLite implementation of schedule rule repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, select

from schedule_engine.core.exceptions import NotFoundError
from schedule_engine.infrastructure.local.database import (
    ScheduleDependencyORM,
    ScheduleRuleORM,
    get_session_factory,
)
from schedule_engine.interfaces.schedule_rule_repository import IScheduleRuleRepository
from schedule_engine.models.enums import RuleType
from schedule_engine.models.schedule_rule import DependencyConfig, RuleConfig, ScheduleRule


def _dependency_edge(schedule_id: str, rule_id: str, config: DependencyConfig) -> ScheduleDependencyORM:
    return ScheduleDependencyORM(
        id=str(uuid4()),
        schedule_id=schedule_id,
        depends_on_schedule_id=str(config.depends_on_schedule_id),
        offset_days=config.offset_days,
        rule_id=rule_id,
    )


class SqliteScheduleRuleRepository(IScheduleRuleRepository):
    """SQLite implementation of schedule rule repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ScheduleRuleORM) -> ScheduleRule:
        """Convert ORM object to Pydantic model."""
        return ScheduleRule.model_validate(orm, from_attributes=True)

    async def create(
        self, schedule_id: UUID, rule_type: RuleType, config: RuleConfig
    ) -> ScheduleRule:
        """Create an active rule (and its dependency edge) in one transaction."""
        async with self._session_factory() as session:
            orm = ScheduleRuleORM(
                id=str(uuid4()),
                schedule_id=str(schedule_id),
                rule_type=rule_type.value,
                config=config.model_dump(mode="json"),
                is_active=True,
            )
            session.add(orm)
            if isinstance(config, DependencyConfig):
                session.add(_dependency_edge(orm.schedule_id, orm.id, config))
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, rule_id: UUID) -> Optional[ScheduleRule]:
        """Get a rule by ID."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScheduleRuleORM).where(ScheduleRuleORM.id == str(rule_id))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list(
        self, schedule_id: UUID, include_inactive: bool = False
    ) -> list[ScheduleRule]:
        """List rules of a schedule."""
        async with self._session_factory() as session:
            conditions = [ScheduleRuleORM.schedule_id == str(schedule_id)]
            if not include_inactive:
                conditions.append(ScheduleRuleORM.is_active.is_(True))
            query = (
                select(ScheduleRuleORM)
                .where(and_(*conditions))
                .order_by(ScheduleRuleORM.created_at.asc())
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def set_active(self, rule_id: UUID, is_active: bool) -> ScheduleRule:
        """Activate or deactivate a rule, keeping its dependency edge in step."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScheduleRuleORM).where(ScheduleRuleORM.id == str(rule_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"ScheduleRule {rule_id} not found")

            rule = self._orm_to_model(orm)
            if isinstance(rule.config, DependencyConfig) and orm.is_active != is_active:
                if is_active:
                    session.add(_dependency_edge(orm.schedule_id, orm.id, rule.config))
                else:
                    await session.execute(
                        delete(ScheduleDependencyORM).where(
                            ScheduleDependencyORM.rule_id == orm.id
                        )
                    )

            orm.is_active = is_active
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
