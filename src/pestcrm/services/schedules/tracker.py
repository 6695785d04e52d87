"""Monthly schedule completion tracking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence

from ...config import settings
from ...data.errors import InvariantViolation
from ...models.domain import MonthlyScheduleRequirement, Visit

ScheduleMatchMode = Literal["overlapping", "strict"]
CompletionFilter = Literal["incomplete", "complete", "all"]

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScheduleProgress:
    schedule: MonthlyScheduleRequirement
    done_count: int
    remaining: int
    is_complete: bool

    @property
    def progress_percent(self) -> float:
        required = self.schedule.visits_required
        if required <= 0:
            return 0.0
        return self.done_count / required * 100


@dataclass(slots=True, frozen=True)
class OperatorScheduleGroup:
    operator_id: Optional[str]
    operator_name: Optional[str]
    schedules: tuple[ScheduleProgress, ...]
    total_required: int
    completed_count: int


def matches(schedule: MonthlyScheduleRequirement, visit: Visit) -> bool:
    """A visit counts toward a schedule when it hits the schedule's branch or its customer."""
    if schedule.branch_id and visit.branch_id == schedule.branch_id:
        return True
    if schedule.customer_id and visit.customer_id == schedule.customer_id:
        return True
    return False


def _check_schedule(schedule: MonthlyScheduleRequirement) -> None:
    if schedule.visits_required < 0:
        raise InvariantViolation(schedule.id, f"Schedule requires {schedule.visits_required} visits")


def _valid_schedules(schedules: Sequence[MonthlyScheduleRequirement]) -> List[MonthlyScheduleRequirement]:
    valid: List[MonthlyScheduleRequirement] = []
    for schedule in schedules:
        try:
            _check_schedule(schedule)
        except InvariantViolation as exc:
            logger.warning(f"Excluding schedule: {exc}")
            continue
        valid.append(schedule)
    return valid


def _overlapping_counts(schedules: Sequence[MonthlyScheduleRequirement], cohort: Sequence[Visit]) -> List[int]:
    return [sum(1 for visit in cohort if matches(schedule, visit)) for schedule in schedules]


def _strict_counts(schedules: Sequence[MonthlyScheduleRequirement], cohort: Sequence[Visit]) -> List[int]:
    """Count each visit at most once per operator.

    A visit goes to the first schedule of the operator that names its branch,
    otherwise to the first one that names its customer.
    """
    counts = [0] * len(schedules)
    by_operator: Dict[Optional[str], List[int]] = {}
    for index, schedule in enumerate(schedules):
        by_operator.setdefault(schedule.operator_id, []).append(index)

    for indexes in by_operator.values():
        for visit in cohort:
            claimed = next(
                (i for i in indexes if schedules[i].branch_id and schedules[i].branch_id == visit.branch_id),
                None,
            )
            if claimed is None:
                claimed = next(
                    (i for i in indexes if schedules[i].customer_id and schedules[i].customer_id == visit.customer_id),
                    None,
                )
            if claimed is not None:
                counts[claimed] += 1
    return counts


def track(
    schedules: Sequence[MonthlyScheduleRequirement],
    cohort: Sequence[Visit],
    *,
    mode: Optional[ScheduleMatchMode] = None,
) -> List[ScheduleProgress]:
    """Compute completion progress for each monthly schedule against the cohort.

    In the default ``overlapping`` mode a visit counts toward every schedule it
    matches, so a customer schedule and a schedule for one of that customer's
    branches both count the branch's visits.
    """
    selected = mode or settings.schedule_match_mode
    valid = _valid_schedules(schedules)
    if selected == "overlapping":
        counts = _overlapping_counts(valid, cohort)
    elif selected == "strict":
        counts = _strict_counts(valid, cohort)
    else:
        raise ValueError(f"Unknown schedule match mode '{selected}'")

    return [
        ScheduleProgress(
            schedule=schedule,
            done_count=done,
            remaining=max(schedule.visits_required - done, 0),
            is_complete=done >= schedule.visits_required,
        )
        for schedule, done in zip(valid, counts)
    ]


def _passes(progress: ScheduleProgress, completion: CompletionFilter) -> bool:
    if completion == "complete":
        return progress.is_complete
    if completion == "incomplete":
        return not progress.is_complete
    return True


def group_by_operator(
    progress: Sequence[ScheduleProgress],
    completion: CompletionFilter = "incomplete",
) -> List[OperatorScheduleGroup]:
    """Group schedule progress per operator, keeping first-seen operator order.

    Operators left without schedules after the completion filter are dropped.
    """
    grouped: Dict[Optional[str], List[ScheduleProgress]] = {}
    for item in progress:
        if _passes(item, completion):
            grouped.setdefault(item.schedule.operator_id, []).append(item)

    groups: List[OperatorScheduleGroup] = []
    for operator_id, items in grouped.items():
        operator_name = next((i.schedule.operator_name for i in items if i.schedule.operator_name), None)
        groups.append(
            OperatorScheduleGroup(
                operator_id=operator_id,
                operator_name=operator_name,
                schedules=tuple(items),
                total_required=sum(i.schedule.visits_required for i in items),
                completed_count=sum(i.done_count for i in items),
            )
        )
    return groups
