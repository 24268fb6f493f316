"""
Usage counter state machine.

ACCUMULATING --(value >= threshold)--> TRIGGERED --> ACCUMULATING
(reset to 0 when the schedule asks for it, otherwise the value is kept).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from schedule_engine.core.exceptions import NotFoundError
from schedule_engine.core.logger import setup_logger
from schedule_engine.interfaces.schedule_repository import IScheduleRepository
from schedule_engine.interfaces.usage_counter_repository import IUsageCounterRepository
from schedule_engine.models.enums import CounterState
from schedule_engine.models.schedule import Schedule, UsageBasedParams
from schedule_engine.models.usage_counter import UsageCounter, UsageCounterUpdateResult
from schedule_engine.utils.datetime_utils import ensure_utc, now_utc

logger = setup_logger(__name__)


@dataclass(frozen=True)
class UsageTransition:
    """Result of evaluating one increment against a counter."""

    previous_value: float
    accumulated_value: float
    current_value: float
    state: CounterState
    updated_at: datetime
    notes: Optional[str] = None
    reset_at: Optional[datetime] = None

    @property
    def triggered(self) -> bool:
        return self.state == CounterState.TRIGGERED

    @property
    def reset(self) -> bool:
        return self.reset_at is not None


def threshold_of(schedule: Optional[Schedule]) -> Optional[UsageBasedParams]:
    """Usage parameters of the owning schedule, if it is usage-based."""
    if schedule is None or not isinstance(schedule.params, UsageBasedParams):
        return None
    return schedule.params


def evaluate_increment(
    counter: UsageCounter,
    schedule: Optional[Schedule],
    delta: float,
    now: datetime,
    notes: Optional[str] = None,
) -> UsageTransition:
    """Pure transition for ``counter.current_value + delta``.

    Negative deltas are accepted; a counter may drop back below its
    threshold.
    """
    accumulated = counter.current_value + delta
    params = threshold_of(schedule)

    if params is None or accumulated < params.threshold:
        return UsageTransition(
            previous_value=counter.current_value,
            accumulated_value=accumulated,
            current_value=accumulated,
            state=CounterState.ACCUMULATING,
            updated_at=now,
            notes=notes,
        )

    return UsageTransition(
        previous_value=counter.current_value,
        accumulated_value=accumulated,
        current_value=0 if params.reset_on_trigger else accumulated,
        state=CounterState.TRIGGERED,
        updated_at=now,
        notes=notes,
        reset_at=now if params.reset_on_trigger else None,
    )


class UsageCounterService:
    """Applies usage increments and reports threshold crossings."""

    def __init__(
        self,
        counter_repo: IUsageCounterRepository,
        schedule_repo: IScheduleRepository,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.counter_repo = counter_repo
        self.schedule_repo = schedule_repo
        self.clock = clock

    async def increment(
        self,
        asset_id: str,
        counter_type: str,
        delta: float,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UsageCounterUpdateResult:
        """Add ``delta`` to a counter and decide whether its schedule fires.

        Raises:
            NotFoundError: If no counter exists for (asset_id, counter_type)
        """
        now = ensure_utc(now) if now else self.clock()

        counter = await self.counter_repo.get(asset_id, counter_type)
        if not counter:
            raise NotFoundError(
                f"Usage counter not found for asset {asset_id}, type {counter_type}"
            )

        schedule = None
        if counter.schedule_id:
            schedule = await self.schedule_repo.get(counter.schedule_id)

        updated, transition = await self.counter_repo.apply_transition(
            asset_id,
            counter_type,
            lambda current: evaluate_increment(current, schedule, delta, now, notes),
        )

        if not transition.triggered:
            return UsageCounterUpdateResult(counter=updated, triggered=False)

        logger.info(
            f"Usage threshold reached for asset {asset_id} ({counter_type}): "
            f"{transition.accumulated_value} >= {schedule.params.threshold}, "
            f"schedule {schedule.id}{' (counter reset)' if transition.reset else ''}"
        )
        return UsageCounterUpdateResult(counter=updated, triggered=True, schedule=schedule)
