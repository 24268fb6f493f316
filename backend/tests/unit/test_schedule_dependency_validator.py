"""
Tests for schedule dependency validation.

Tests self-dependency, missing prerequisites, duplicates and cycle detection.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from schedule_engine.core.exceptions import DependencyCycleError, NotFoundError, ValidationError
from schedule_engine.models.enums import RuleType
from schedule_engine.models.schedule import FixedIntervalParams, ScheduleCreate
from schedule_engine.models.schedule_rule import DependencyConfig
from schedule_engine.utils.schedule_dependency_validator import ScheduleDependencyValidator


async def create_schedule(schedule_repo, name: str):
    return await schedule_repo.create(
        ScheduleCreate(
            organization_id="org-test",
            name=name,
            params=FixedIntervalParams(interval_days=7),
            start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
    )


async def add_edge(rule_repo, dependent, prerequisite, offset_days: int = 0):
    """Store a dependency rule (and its edge): dependent waits on prerequisite."""
    return await rule_repo.create(
        dependent.id,
        RuleType.DEPENDENCY,
        DependencyConfig(depends_on_schedule_id=prerequisite.id, offset_days=offset_days),
    )


@pytest.fixture
def validator(schedule_repo, dependency_repo):
    return ScheduleDependencyValidator(schedule_repo, dependency_repo)


class TestValidateDependency:
    """Tests for validate_dependency."""

    @pytest.mark.asyncio
    async def test_valid_edge(self, validator, schedule_repo):
        a = await create_schedule(schedule_repo, "A")
        b = await create_schedule(schedule_repo, "B")

        await validator.validate_dependency(b.id, a.id)

    @pytest.mark.asyncio
    async def test_self_dependency(self, validator, schedule_repo):
        a = await create_schedule(schedule_repo, "A")

        with pytest.raises(ValidationError) as exc_info:
            await validator.validate_dependency(a.id, a.id)

        assert "cannot depend on itself" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_prerequisite(self, validator, schedule_repo):
        a = await create_schedule(schedule_repo, "A")

        with pytest.raises(NotFoundError):
            await validator.validate_dependency(a.id, uuid4())

    @pytest.mark.asyncio
    async def test_duplicate_edge(self, validator, schedule_repo, rule_repo):
        a = await create_schedule(schedule_repo, "A")
        b = await create_schedule(schedule_repo, "B")
        await add_edge(rule_repo, b, a)

        with pytest.raises(ValidationError) as exc_info:
            await validator.validate_dependency(b.id, a.id)

        assert not isinstance(exc_info.value, DependencyCycleError)

    @pytest.mark.asyncio
    async def test_direct_cycle(self, validator, schedule_repo, rule_repo):
        a = await create_schedule(schedule_repo, "A")
        b = await create_schedule(schedule_repo, "B")
        await add_edge(rule_repo, b, a)

        with pytest.raises(DependencyCycleError) as exc_info:
            await validator.validate_dependency(a.id, b.id)

        assert exc_info.value.path == [str(a.id), str(b.id), str(a.id)]

    @pytest.mark.asyncio
    async def test_indirect_cycle(self, validator, schedule_repo, rule_repo):
        a = await create_schedule(schedule_repo, "A")
        b = await create_schedule(schedule_repo, "B")
        c = await create_schedule(schedule_repo, "C")
        # C waits for B, B waits for A
        await add_edge(rule_repo, c, b)
        await add_edge(rule_repo, b, a)

        with pytest.raises(DependencyCycleError) as exc_info:
            await validator.validate_dependency(a.id, c.id)

        assert "Circular dependency detected" in str(exc_info.value)
        assert exc_info.value.details == {
            "path": [str(a.id), str(c.id), str(b.id), str(a.id)]
        }

    @pytest.mark.asyncio
    async def test_diamond_is_not_a_cycle(self, validator, schedule_repo, rule_repo):
        a = await create_schedule(schedule_repo, "A")
        b = await create_schedule(schedule_repo, "B")
        c = await create_schedule(schedule_repo, "C")
        d = await create_schedule(schedule_repo, "D")
        await add_edge(rule_repo, b, a)
        await add_edge(rule_repo, c, a)
        await add_edge(rule_repo, d, b)

        await validator.validate_dependency(d.id, c.id)
