"""
SQLite implementation of usage counter repository.
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar
from uuid import uuid4

from sqlalchemy import and_, select

from schedule_engine.core.exceptions import NotFoundError
from schedule_engine.infrastructure.local.database import UsageCounterORM, get_session_factory
from schedule_engine.interfaces.usage_counter_repository import IUsageCounterRepository
from schedule_engine.models.usage_counter import UsageCounter
from schedule_engine.utils.datetime_utils import to_naive_utc

T = TypeVar("T")


def _counter_query(asset_id: str, counter_type: str):
    return select(UsageCounterORM).where(
        and_(
            UsageCounterORM.asset_id == asset_id,
            UsageCounterORM.counter_type == counter_type,
        )
    )


async def upsert_counter(
    session, asset_id: str, counter_type: str, schedule_id: Optional[str]
) -> UsageCounterORM:
    """Create the counter at 0 or re-point it at a schedule, inside the caller's transaction."""
    result = await session.execute(_counter_query(asset_id, counter_type))
    orm = result.scalar_one_or_none()
    if orm:
        orm.schedule_id = schedule_id
    else:
        orm = UsageCounterORM(
            id=str(uuid4()),
            asset_id=asset_id,
            counter_type=counter_type,
            schedule_id=schedule_id,
            current_value=0,
        )
        session.add(orm)
    return orm


class SqliteUsageCounterRepository(IUsageCounterRepository):
    """SQLite implementation of usage counter repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: UsageCounterORM) -> UsageCounter:
        return UsageCounter.model_validate(orm, from_attributes=True)

    async def get(self, asset_id: str, counter_type: str) -> Optional[UsageCounter]:
        """Get a counter."""
        async with self._session_factory() as session:
            result = await session.execute(_counter_query(asset_id, counter_type))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def apply_transition(
        self,
        asset_id: str,
        counter_type: str,
        evaluate: Callable[[UsageCounter], T],
    ) -> tuple[UsageCounter, T]:
        """Read-modify-write a counter inside one transaction with a row lock."""
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    _counter_query(asset_id, counter_type).with_for_update()
                )
                orm = result.scalar_one_or_none()
                if not orm:
                    raise NotFoundError(
                        f"Usage counter not found for asset {asset_id}, type {counter_type}"
                    )

                transition = evaluate(self._orm_to_model(orm))

                orm.current_value = transition.current_value
                orm.last_updated_at = to_naive_utc(transition.updated_at)
                if transition.notes is not None:
                    orm.notes = transition.notes
                if transition.reset_at is not None:
                    orm.last_reset_at = to_naive_utc(transition.reset_at)

            return self._orm_to_model(orm), transition
