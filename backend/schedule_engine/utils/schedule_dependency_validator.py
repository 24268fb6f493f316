"""
Schedule dependency validation utilities.

Validates dependency edges between schedules to prevent self-dependencies,
duplicates and cycles.
"""

from typing import Optional
from uuid import UUID

from schedule_engine.core.exceptions import DependencyCycleError, NotFoundError, ValidationError
from schedule_engine.interfaces.schedule_dependency_repository import (
    IScheduleDependencyRepository,
)
from schedule_engine.interfaces.schedule_repository import IScheduleRepository


class ScheduleDependencyValidator:
    """Validator for schedule dependencies."""

    def __init__(
        self,
        schedule_repo: IScheduleRepository,
        dependency_repo: IScheduleDependencyRepository,
    ):
        self.schedule_repo = schedule_repo
        self.dependency_repo = dependency_repo

    async def validate_dependency(
        self, schedule_id: UUID, depends_on_schedule_id: UUID
    ) -> None:
        """
        Validate a new edge ``schedule_id -> depends_on_schedule_id``.

        Raises:
            ValidationError: Self-dependency or duplicate edge
            NotFoundError: Prerequisite schedule does not exist
            DependencyCycleError: The edge would close a cycle
        """
        # 1. Check for self-dependency
        if schedule_id == depends_on_schedule_id:
            raise ValidationError("A schedule cannot depend on itself")

        # 2. Prerequisite must exist
        prerequisite = await self.schedule_repo.get(depends_on_schedule_id)
        if not prerequisite:
            raise NotFoundError(f"Prerequisite schedule {depends_on_schedule_id} not found")

        # 3. Check for duplicate edges
        existing = await self.dependency_repo.list_for_schedule(schedule_id)
        if any(dep.depends_on_schedule_id == depends_on_schedule_id for dep in existing):
            raise ValidationError(
                f"Schedule {schedule_id} already depends on {depends_on_schedule_id}"
            )

        # 4. Check for circular dependencies
        await self._check_circular_dependency(
            schedule_id, [depends_on_schedule_id], visited=[schedule_id]
        )

    async def _check_circular_dependency(
        self,
        origin_id: UUID,
        dependency_ids: list[UUID],
        visited: Optional[list[UUID]] = None,
    ) -> None:
        """
        Depth-first walk of prerequisites; reaching the origin again is a cycle.

        Args:
            origin_id: Schedule the new edge starts from
            dependency_ids: Prerequisites to walk from
            visited: Current path (origin first)
        """
        visited = visited or [origin_id]

        for dep_id in dependency_ids:
            if dep_id == origin_id:
                path = [str(node) for node in visited + [dep_id]]
                raise DependencyCycleError(
                    f"Circular dependency detected: {' -> '.join(path)}", path=path
                )
            if dep_id in visited:
                continue

            edges = await self.dependency_repo.list_for_schedule(dep_id)
            if edges:
                await self._check_circular_dependency(
                    origin_id,
                    [edge.depends_on_schedule_id for edge in edges],
                    visited + [dep_id],
                )
