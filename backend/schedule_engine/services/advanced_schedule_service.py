"""
Advanced schedule service.

Entry point of the engine: creates seasonal, usage-based, fixed-interval and
calendar-rule schedules, attaches constraint rules, and resolves each
schedule's next occurrence through

    occurrence calculator -> rule applicator -> dependency resolver

before persisting it. Usage increments bypass the calendar pipeline and go
through the usage counter state machine.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from schedule_engine.core.config import get_settings
from schedule_engine.core.exceptions import NotFoundError, ValidationError
from schedule_engine.core.logger import setup_logger
from schedule_engine.interfaces.completion_repository import ICompletionRepository
from schedule_engine.interfaces.schedule_dependency_repository import (
    IScheduleDependencyRepository,
)
from schedule_engine.interfaces.schedule_repository import IScheduleRepository
from schedule_engine.interfaces.schedule_rule_repository import IScheduleRuleRepository
from schedule_engine.interfaces.usage_counter_repository import IUsageCounterRepository
from schedule_engine.models.completion import CompletionRecord, CompletionRecordCreate
from schedule_engine.models.enums import RuleType, ScheduleKind, TaskStatus
from schedule_engine.models.schedule import (
    CalendarRuleParams,
    CalendarRuleScheduleConfig,
    FixedIntervalParams,
    FixedIntervalScheduleConfig,
    Schedule,
    ScheduleCreate,
    ScheduleUpdate,
    SeasonalParams,
    SeasonalScheduleConfig,
    UsageBasedParams,
    UsageBasedScheduleConfig,
)
from schedule_engine.models.schedule_rule import (
    DependencyConfig,
    RuleConfig,
    ScheduleDependency,
    ScheduleRule,
)
from schedule_engine.models.usage_counter import UsageCounterUpdateResult
from schedule_engine.services.dependency_resolver import DependencyResolver
from schedule_engine.services.occurrence_calculator import OccurrenceCalculator, rrule_after
from schedule_engine.services.rule_applicator import RuleApplicator
from schedule_engine.services.usage_counter_service import UsageCounterService
from schedule_engine.utils.datetime_utils import ensure_utc, now_utc
from schedule_engine.utils.schedule_dependency_validator import ScheduleDependencyValidator

logger = setup_logger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)

_rule_config_adapter = TypeAdapter(RuleConfig)


def _format_errors(error: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
        for err in error.errors()
    )


def parse_config(model: type[ConfigT], config: ConfigT | dict[str, Any]) -> ConfigT:
    """Validate caller input, converting pydantic errors to ValidationError."""
    if isinstance(config, model):
        return config
    try:
        return model.model_validate(config)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid {model.__name__}: {_format_errors(e)}",
            details=e.errors(include_url=False, include_context=False),
        ) from e


class AdvancedScheduleService:
    """Service for schedule creation, rules and next-occurrence resolution."""

    def __init__(
        self,
        schedule_repo: IScheduleRepository,
        rule_repo: IScheduleRuleRepository,
        dependency_repo: IScheduleDependencyRepository,
        counter_repo: IUsageCounterRepository,
        completion_repo: ICompletionRepository,
        clock: Callable[[], datetime] = now_utc,
        calculator: Optional[OccurrenceCalculator] = None,
        rule_applicator: Optional[RuleApplicator] = None,
    ):
        self.schedule_repo = schedule_repo
        self.rule_repo = rule_repo
        self.dependency_repo = dependency_repo
        self.completion_repo = completion_repo
        self.clock = clock
        self.calculator = calculator or OccurrenceCalculator()
        self.rule_applicator = rule_applicator or RuleApplicator()
        self.dependency_resolver = DependencyResolver(completion_repo)
        self.dependency_validator = ScheduleDependencyValidator(schedule_repo, dependency_repo)
        self.usage_counters = UsageCounterService(counter_repo, schedule_repo, clock)

    def _now(self, now: Optional[datetime]) -> datetime:
        return ensure_utc(now) if now else self.clock()

    async def _require_schedule(self, schedule_id: UUID) -> Schedule:
        schedule = await self.schedule_repo.get(schedule_id)
        if not schedule:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        return schedule

    @staticmethod
    def _build_create(**fields: Any) -> ScheduleCreate:
        try:
            return ScheduleCreate(**fields)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid schedule: {_format_errors(e)}",
                details=e.errors(include_url=False, include_context=False),
            ) from e

    # ===========================================
    # Schedule creation
    # ===========================================

    async def create_seasonal_schedule(
        self,
        organization_id: str,
        asset_id: Optional[str],
        name: str,
        config: SeasonalScheduleConfig | dict[str, Any],
        task_template: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Schedule:
        """Create a schedule that runs in specific months of the year.

        Raises:
            ValidationError: If months is empty or contains values outside 1..12
        """
        config = parse_config(SeasonalScheduleConfig, config)
        now = self._now(now)

        data = self._build_create(
            organization_id=organization_id,
            asset_id=asset_id,
            name=name,
            description=f"Seasonal schedule for months: {', '.join(map(str, config.months))}",
            params=SeasonalParams(months=config.months, day_of_month=config.day_of_month),
            start_date=now,
            task_template=task_template or {},
        )
        schedule = await self.schedule_repo.create(data)
        logger.info(f"Created seasonal schedule {schedule.id} for months {config.months}")

        await self.update_next_occurrence(schedule.id, now=now)
        return await self._require_schedule(schedule.id)

    async def create_usage_based_schedule(
        self,
        organization_id: str,
        asset_id: str,
        name: str,
        config: UsageBasedScheduleConfig | dict[str, Any],
        task_template: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Schedule:
        """Create a schedule triggered by a usage counter threshold.

        The schedule row is created first and the (asset, counter type)
        counter is then upserted at 0 pointing at it, in the same transaction.

        Raises:
            ValidationError: Missing asset, counter type or non-positive threshold
        """
        config = parse_config(UsageBasedScheduleConfig, config)
        if not asset_id:
            raise ValidationError("Usage-based schedules require an asset_id")
        now = self._now(now)

        data = self._build_create(
            organization_id=organization_id,
            asset_id=asset_id,
            name=name,
            description=f"Usage-based schedule: {config.counter_type} >= {config.threshold}",
            params=UsageBasedParams(
                counter_type=config.counter_type,
                threshold=config.threshold,
                reset_on_trigger=config.reset_on_trigger,
            ),
            start_date=now,
            task_template=task_template or {},
        )
        schedule, counter = await self.schedule_repo.create_usage_based(
            data, config.counter_type
        )
        logger.info(
            f"Created usage-based schedule {schedule.id} "
            f"({config.counter_type} >= {config.threshold}), counter {counter.id}"
        )
        return schedule

    async def create_fixed_interval_schedule(
        self,
        organization_id: str,
        asset_id: Optional[str],
        name: str,
        config: FixedIntervalScheduleConfig | dict[str, Any],
        task_template: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Schedule:
        """Create a schedule repeating every N days or every N months.

        Raises:
            ValidationError: Unless exactly one positive interval is given
        """
        config = parse_config(FixedIntervalScheduleConfig, config)
        now = self._now(now)

        if config.interval_days:
            description = f"Every {config.interval_days} day(s)"
        else:
            description = f"Every {config.interval_months} month(s)"

        data = self._build_create(
            organization_id=organization_id,
            asset_id=asset_id,
            name=name,
            description=description,
            params=FixedIntervalParams(
                interval_days=config.interval_days,
                interval_months=config.interval_months,
            ),
            start_date=config.start_date or now,
            task_template=task_template or {},
        )
        schedule = await self.schedule_repo.create(data)
        logger.info(f"Created fixed-interval schedule {schedule.id}: {description}")

        await self.update_next_occurrence(schedule.id, now=now)
        return await self._require_schedule(schedule.id)

    async def create_calendar_rule_schedule(
        self,
        organization_id: str,
        asset_id: Optional[str],
        name: str,
        config: CalendarRuleScheduleConfig | dict[str, Any],
        task_template: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Schedule:
        """Create a schedule driven by an RFC 5545 recurrence rule.

        Raises:
            ValidationError: If the recurrence rule cannot be evaluated
        """
        config = parse_config(CalendarRuleScheduleConfig, config)
        now = self._now(now)
        start_date = config.start_date or now

        try:
            rrule_after(config.rrule, start_date, now)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid recurrence rule: {e}", details={"rrule": config.rrule}) from e

        data = self._build_create(
            organization_id=organization_id,
            asset_id=asset_id,
            name=name,
            description=f"Calendar rule: {config.rrule}",
            params=CalendarRuleParams(rrule=config.rrule),
            start_date=start_date,
            task_template=task_template or {},
        )
        schedule = await self.schedule_repo.create(data)
        logger.info(f"Created calendar-rule schedule {schedule.id}")

        await self.update_next_occurrence(schedule.id, now=now)
        return await self._require_schedule(schedule.id)

    # ===========================================
    # Rules
    # ===========================================

    async def add_schedule_rule(
        self,
        schedule_id: UUID,
        rule_type: RuleType | str,
        rule_config: RuleConfig | dict[str, Any],
        now: Optional[datetime] = None,
    ) -> ScheduleRule:
        """Attach a constraint rule and recompute the next occurrence.

        Dependency rules are stored together with their dependency edge.

        Raises:
            NotFoundError: If the schedule (or a prerequisite schedule) is missing
            ValidationError: Unknown rule type, malformed config, self/duplicate dependency
            DependencyCycleError: If a dependency would close a cycle
        """
        try:
            rule_type = RuleType(rule_type)
        except ValueError as e:
            raise ValidationError(f"Unknown rule type: {rule_type}") from e

        schedule = await self._require_schedule(schedule_id)

        if isinstance(rule_config, BaseModel):
            rule_config = rule_config.model_dump()
        payload = {**rule_config, "rule_type": rule_type.value}
        try:
            config = _rule_config_adapter.validate_python(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid {rule_type.value} rule: {_format_errors(e)}",
                details=e.errors(include_url=False, include_context=False),
            ) from e

        if isinstance(config, DependencyConfig):
            await self.dependency_validator.validate_dependency(
                schedule.id, config.depends_on_schedule_id
            )

        rule = await self.rule_repo.create(schedule.id, rule_type, config)
        logger.info(f"Added {rule_type.value} rule {rule.id} to schedule {schedule.id}")

        await self.update_next_occurrence(schedule.id, now=now)
        return rule

    async def deactivate_schedule_rule(
        self, rule_id: UUID, now: Optional[datetime] = None
    ) -> ScheduleRule:
        """Deactivate a rule (dropping its dependency edge) and recompute.

        Raises:
            NotFoundError: If the rule does not exist
        """
        rule = await self.rule_repo.set_active(rule_id, False)
        await self.update_next_occurrence(rule.schedule_id, now=now)
        return rule

    # ===========================================
    # Usage counters
    # ===========================================

    async def update_usage_counter(
        self,
        asset_id: str,
        counter_type: str,
        increment: float,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UsageCounterUpdateResult:
        """Increment a usage counter and report whether its schedule fires.

        Raises:
            NotFoundError: If no counter exists for (asset_id, counter_type)
        """
        return await self.usage_counters.increment(
            asset_id, counter_type, increment, notes=notes, now=now
        )

    # ===========================================
    # Next-occurrence resolution
    # ===========================================

    async def _resolve(
        self,
        schedule: Schedule,
        rules: Iterable[ScheduleRule],
        dependencies: Iterable[ScheduleDependency],
        now: datetime,
    ) -> Optional[datetime]:
        candidate = self.calculator.next_occurrence(schedule, now)
        if candidate is None:
            return None
        adjusted = self.rule_applicator.apply(candidate, rules)
        return await self.dependency_resolver.resolve(adjusted, dependencies)

    async def update_next_occurrence(
        self, schedule_id: UUID, now: Optional[datetime] = None
    ) -> Optional[datetime]:
        """Resolve and persist a schedule's next occurrence.

        Returns None, without writing, for missing, inactive and usage-based
        schedules and when no occurrence can be computed.
        """
        now = self._now(now)

        schedule = await self.schedule_repo.get(schedule_id)
        if not schedule or not schedule.is_active:
            return None
        if schedule.kind == ScheduleKind.USAGE_BASED:
            return None

        rules = await self.rule_repo.list(schedule.id)
        dependencies = await self.dependency_repo.list_for_schedule(schedule.id)

        next_occurrence = await self._resolve(schedule, rules, dependencies, now)
        if next_occurrence is None:
            logger.info(f"No next occurrence for schedule {schedule.id}")
            return None

        await self.schedule_repo.set_next_occurrence(schedule.id, next_occurrence)
        logger.debug(f"Schedule {schedule.id} next occurrence: {next_occurrence.isoformat()}")
        return next_occurrence

    async def get_upcoming_occurrences(
        self,
        schedule_id: UUID,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[datetime]:
        """Preview the next occurrences of a schedule (rules and dependencies applied).

        Nothing is persisted. Usage-based schedules have no calendar preview.

        Raises:
            NotFoundError: If the schedule does not exist
        """
        if limit is None:
            limit = get_settings().UPCOMING_OCCURRENCES_LIMIT
        now = self._now(now)
        schedule = await self._require_schedule(schedule_id)
        if schedule.kind == ScheduleKind.USAGE_BASED:
            return []

        rules = await self.rule_repo.list(schedule.id)
        dependencies = await self.dependency_repo.list_for_schedule(schedule.id)

        occurrences: list[datetime] = []
        cursor = schedule
        cursor_now = now
        while len(occurrences) < limit:
            occurrence = await self._resolve(cursor, rules, dependencies, cursor_now)
            if occurrence is None or (occurrences and occurrence <= occurrences[-1]):
                break
            occurrences.append(occurrence)
            cursor = cursor.model_copy(update={"last_occurrence": occurrence})
            cursor_now = occurrence
        return occurrences

    async def record_occurrence(
        self,
        schedule_id: UUID,
        occurrence_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Schedule:
        """Stamp an occurrence as generated and move to the next one.

        When no further occurrence exists, a next occurrence at or before the
        recorded one is cleared so the schedule stops showing up as due.

        Raises:
            NotFoundError: If the schedule does not exist
        """
        now = self._now(now)
        occurrence_at = ensure_utc(occurrence_at) if occurrence_at else now

        schedule = await self.schedule_repo.update(
            schedule_id, ScheduleUpdate(last_occurrence=occurrence_at)
        )
        next_occurrence = await self.update_next_occurrence(schedule.id, now=now)
        if (
            next_occurrence is None
            and schedule.next_occurrence is not None
            and schedule.next_occurrence <= occurrence_at
        ):
            await self.schedule_repo.set_next_occurrence(schedule.id, None)

        logger.info(f"Recorded occurrence {occurrence_at.isoformat()} for schedule {schedule.id}")
        return await self._require_schedule(schedule.id)

    async def get_schedules_due_for_generation(
        self, organization_id: str, now: Optional[datetime] = None
    ) -> list[Schedule]:
        """Active calendar schedules whose next occurrence is at or before now."""
        now = self._now(now)
        return await self.schedule_repo.list_due(
            organization_id, now, limit=get_settings().DUE_SCHEDULES_LIMIT
        )

    # ===========================================
    # Lifecycle
    # ===========================================

    async def activate_schedule(
        self, schedule_id: UUID, now: Optional[datetime] = None
    ) -> Schedule:
        """Re-activate a schedule and recompute its next occurrence.

        Raises:
            NotFoundError: If the schedule does not exist
        """
        schedule = await self._require_schedule(schedule_id)
        if schedule.is_active:
            return schedule

        await self.schedule_repo.update(schedule.id, ScheduleUpdate(is_active=True))
        await self.update_next_occurrence(schedule.id, now=now)
        logger.info(f"Activated schedule {schedule.id}")
        return await self._require_schedule(schedule.id)

    async def deactivate_schedule(self, schedule_id: UUID) -> Schedule:
        """Stop a schedule from generating tasks (clears its next occurrence).

        Raises:
            NotFoundError: If the schedule does not exist
        """
        await self.schedule_repo.update(schedule_id, ScheduleUpdate(is_active=False))
        schedule = await self.schedule_repo.set_next_occurrence(schedule_id, None)
        logger.info(f"Deactivated schedule {schedule.id}")
        return schedule

    # ===========================================
    # Completions
    # ===========================================

    async def record_completion(
        self,
        schedule_id: UUID,
        completed_at: Optional[datetime] = None,
        task_id: Optional[UUID] = None,
        status: TaskStatus = TaskStatus.DONE,
        now: Optional[datetime] = None,
    ) -> CompletionRecord:
        """Log a task outcome; a DONE outcome recomputes dependent schedules.

        Raises:
            NotFoundError: If the schedule does not exist
        """
        now = self._now(now)
        schedule = await self._require_schedule(schedule_id)

        record = await self.completion_repo.create(
            CompletionRecordCreate(
                schedule_id=schedule.id,
                task_id=task_id,
                status=status,
                completed_at=completed_at or now,
            )
        )

        if status == TaskStatus.DONE:
            dependents = await self.dependency_repo.list_dependents(schedule.id)
            for dependent_id in dict.fromkeys(dep.schedule_id for dep in dependents):
                await self.update_next_occurrence(dependent_id, now=now)

        return record
