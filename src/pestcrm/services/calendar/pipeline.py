"""Fetch-then-compute pipeline behind the administrative calendar.

Each month or filter change runs one asynchronous fetch step followed by
one synchronous compute step. Nothing is carried between passes except the
last valid snapshot held by a ``CalendarSession``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from ...data.directory_repository import list_branches, list_customers
from ...data.errors import DataFetchError
from ...data.pricing_repository import get_branch_pricing, get_customer_pricing
from ...data.schedules_repository import get_monthly_schedules
from ...data.visits_repository import get_visits, month_window
from ...models.domain import (
    AugmentedVisit,
    BranchPricing,
    BranchRef,
    CustomerPricing,
    CustomerRef,
    MonthlyScheduleRequirement,
    Visit,
    VisitFilters,
)
from ...schemas.calendar import CalendarRequest
from ..revenue import aggregate, attribute
from ..revenue.models import AggregationResult
from ..revenue.money import MoneyArithmetic
from ..schedules import (
    Coverage,
    OperatorScheduleGroup,
    ScheduleProgress,
    find_unscheduled,
    find_unvisited,
    group_by_operator,
    track,
)
from ..schedules.tracker import ScheduleMatchMode

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CalendarInputs:
    visits: List[Visit]
    customer_pricing: Dict[str, CustomerPricing]
    branch_pricing: Dict[str, BranchPricing]
    schedules: List[MonthlyScheduleRequirement]
    customers: List[CustomerRef]
    branches: List[BranchRef]


@dataclass(slots=True, frozen=True)
class CalendarSnapshot:
    year: int
    month: int
    generation: int
    visits: List[AugmentedVisit]
    revenue: AggregationResult
    schedule_progress: List[ScheduleProgress]
    operator_schedules: List[OperatorScheduleGroup]
    unvisited: Coverage
    unscheduled: Coverage


def request_filters(request: CalendarRequest) -> VisitFilters:
    return VisitFilters(
        operator_id=request.operator_id,
        customer_id=request.customer_id,
        branch_id=request.branch_id,
        status=request.status,
        checked=request.checked,
    )


async def load_calendar_inputs(request: CalendarRequest) -> CalendarInputs:
    """Query every collaborator for one month concurrently.

    Raises:
        DataFetchError: if any of the queries fails.
    """
    start, end = month_window(request.year, request.month)
    visits, customer_pricing, branch_pricing, schedules, customers, branches = await asyncio.gather(
        asyncio.to_thread(get_visits, start, end, request_filters(request)),
        asyncio.to_thread(get_customer_pricing),
        asyncio.to_thread(get_branch_pricing),
        asyncio.to_thread(get_monthly_schedules, request.month, request.year),
        asyncio.to_thread(list_customers),
        asyncio.to_thread(list_branches),
    )
    return CalendarInputs(
        visits=visits,
        customer_pricing=customer_pricing,
        branch_pricing=branch_pricing,
        schedules=schedules,
        customers=customers,
        branches=branches,
    )


def build_calendar_snapshot(
    inputs: CalendarInputs,
    request: CalendarRequest,
    *,
    generation: int = 0,
    money: Optional[MoneyArithmetic] = None,
    schedule_mode: Optional[ScheduleMatchMode] = None,
) -> CalendarSnapshot:
    """Run attribution, aggregation, schedule tracking and coverage over one fetch result."""
    augmented = attribute(inputs.visits, inputs.customer_pricing, inputs.branch_pricing, money=money)
    revenue = aggregate(augmented, money=money)
    progress = track(inputs.schedules, inputs.visits, mode=schedule_mode)
    unvisited = find_unvisited(
        inputs.visits,
        inputs.customers,
        inputs.branches,
        customer_id=request.customer_id,
        branch_id=request.branch_id,
    )
    return CalendarSnapshot(
        year=request.year,
        month=request.month,
        generation=generation,
        visits=augmented,
        revenue=revenue,
        schedule_progress=progress,
        operator_schedules=group_by_operator(progress, request.completion),
        unvisited=unvisited,
        unscheduled=find_unscheduled(inputs.schedules, inputs.customers, inputs.branches, unvisited),
    )


Loader = Callable[[CalendarRequest], Awaitable[CalendarInputs]]


class CalendarSession:
    """Keeps the latest calendar snapshot for one viewer.

    Every ``refresh`` takes a new generation number before it starts
    fetching. When a later refresh has started by the time the fetch
    resolves, the older pass drops its result so it cannot overwrite newer
    state. A failed fetch leaves the previous snapshot in place.

    Only ``DataFetchError`` is dropped for a superseded pass. Any other
    exception from the loader is a defect and propagates to the caller of
    that pass whether or not it is still current.
    """

    def __init__(self, loader: Optional[Loader] = None) -> None:
        self._loader = loader or load_calendar_inputs
        self._generation = 0
        self.snapshot: Optional[CalendarSnapshot] = None

    @property
    def generation(self) -> int:
        return self._generation

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    async def refresh(self, request: CalendarRequest) -> Optional[CalendarSnapshot]:
        self._generation += 1
        token = self._generation

        try:
            inputs = await self._loader(request)
        except DataFetchError:
            if not self._is_current(token):
                logger.debug(f"Ignoring failed calendar pass {token}; pass {self._generation} superseded it")
                return None
            raise

        if not self._is_current(token):
            logger.debug(f"Discarding stale calendar pass {token}; latest is {self._generation}")
            return None

        snapshot = build_calendar_snapshot(inputs, request, generation=token)
        self.snapshot = snapshot
        logger.info(
            f"Calendar {request.year}-{request.month:02d} refreshed: "
            f"{len(snapshot.visits)} visits, {len(snapshot.schedule_progress)} schedules"
        )
        return snapshot
