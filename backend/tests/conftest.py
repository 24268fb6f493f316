"""
Shared fixtures: an in-memory SQLite database and wired repositories/services.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from schedule_engine.infrastructure.local.completion_repository import SqliteCompletionRepository
from schedule_engine.infrastructure.local.database import get_session_factory, init_db
from schedule_engine.infrastructure.local.schedule_dependency_repository import (
    SqliteScheduleDependencyRepository,
)
from schedule_engine.infrastructure.local.schedule_repository import SqliteScheduleRepository
from schedule_engine.infrastructure.local.schedule_rule_repository import (
    SqliteScheduleRuleRepository,
)
from schedule_engine.infrastructure.local.usage_counter_repository import (
    SqliteUsageCounterRepository,
    upsert_counter,
)
from schedule_engine.models.usage_counter import UsageCounter
from schedule_engine.services.advanced_schedule_service import AdvancedScheduleService


@pytest_asyncio.fixture
async def session_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield get_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def organization_id():
    return "org-test"


@pytest.fixture
def fixed_now():
    """Monday 2024-01-15 12:00 UTC."""
    return datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def schedule_repo(session_factory):
    return SqliteScheduleRepository(session_factory=session_factory)


@pytest.fixture
def rule_repo(session_factory):
    return SqliteScheduleRuleRepository(session_factory=session_factory)


@pytest.fixture
def dependency_repo(session_factory):
    return SqliteScheduleDependencyRepository(session_factory=session_factory)


@pytest.fixture
def counter_repo(session_factory):
    return SqliteUsageCounterRepository(session_factory=session_factory)


@pytest.fixture
def completion_repo(session_factory):
    return SqliteCompletionRepository(session_factory=session_factory)


@pytest.fixture
def service(
    schedule_repo, rule_repo, dependency_repo, counter_repo, completion_repo, fixed_now
):
    """AdvancedScheduleService with a frozen clock."""
    return AdvancedScheduleService(
        schedule_repo=schedule_repo,
        rule_repo=rule_repo,
        dependency_repo=dependency_repo,
        counter_repo=counter_repo,
        completion_repo=completion_repo,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def seed_counter(session_factory):
    """Create (or re-point) a usage counter directly, bypassing schedule creation."""

    async def _seed(asset_id: str, counter_type: str, schedule_id=None) -> UsageCounter:
        async with session_factory() as session:
            orm = await upsert_counter(
                session, asset_id, counter_type, str(schedule_id) if schedule_id else None
            )
            await session.commit()
            await session.refresh(orm)
            return UsageCounter.model_validate(orm, from_attributes=True)

    return _seed
