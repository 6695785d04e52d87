"""Calendar revenue and schedule endpoints."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status

from ...data.errors import DataFetchError
from ...schemas.calendar import CalendarRequest, CalendarRevenueResponse, ScheduleOverviewResponse
from ...services.calendar import (
    CalendarSnapshot,
    build_calendar_snapshot,
    load_calendar_inputs,
    snapshot_to_response,
    snapshot_to_schedule_overview,
)

router = APIRouter(prefix="/calendar", tags=["calendar"])

VisitStatusParam = Literal["planned", "completed", "cancelled"]
CheckedParam = Literal["all", "checked", "unchecked"]
CompletionParam = Literal["incomplete", "complete", "all"]


async def _build_snapshot(**params) -> CalendarSnapshot:
    try:
        request = CalendarRequest(**params)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        inputs = await load_calendar_inputs(request)
        return build_calendar_snapshot(inputs, request)
    except DataFetchError as exc:
        logging.warning(f"Calendar data fetch failed: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error building calendar {request.year}-{request.month:02d}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to build calendar: {str(exc)}",
        ) from exc


@router.get("/revenue", response_model=CalendarRevenueResponse, status_code=status.HTTP_200_OK)
async def get_calendar_revenue(
    year: int = Query(..., ge=2000, le=2100, description="Calendar year"),
    month: int = Query(..., ge=1, le=12, description="Calendar month (1-12)"),
    operator_id: str | None = Query(default=None, description="Only visits by this operator"),
    customer_id: str | None = Query(default=None, description="Only visits to this customer"),
    branch_id: str | None = Query(default=None, description="Only visits to this branch"),
    visit_status: VisitStatusParam | None = Query(default=None, alias="status", description="Visit status filter"),
    checked: CheckedParam = Query(default="all", description="Checked-state filter"),
    completion: CompletionParam = Query(default="incomplete", description="Schedules kept in operator groups"),
) -> CalendarRevenueResponse:
    """Return the augmented visits, revenue rollups and schedule progress for one month."""
    snapshot = await _build_snapshot(
        year=year,
        month=month,
        operator_id=operator_id,
        customer_id=customer_id,
        branch_id=branch_id,
        status=visit_status,
        checked=checked,
        completion=completion,
    )
    return snapshot_to_response(snapshot)


@router.get("/schedules", response_model=ScheduleOverviewResponse, status_code=status.HTTP_200_OK)
async def get_schedule_overview(
    year: int = Query(..., ge=2000, le=2100, description="Calendar year"),
    month: int = Query(..., ge=1, le=12, description="Calendar month (1-12)"),
    operator_id: str | None = Query(default=None, description="Only visits by this operator"),
    customer_id: str | None = Query(default=None, description="Only visits to this customer"),
    branch_id: str | None = Query(default=None, description="Only visits to this branch"),
    visit_status: VisitStatusParam | None = Query(default=None, alias="status", description="Visit status filter"),
    checked: CheckedParam = Query(default="all", description="Checked-state filter"),
    completion: CompletionParam = Query(default="incomplete", description="Schedules kept in operator groups"),
) -> ScheduleOverviewResponse:
    snapshot = await _build_snapshot(
        year=year,
        month=month,
        operator_id=operator_id,
        customer_id=customer_id,
        branch_id=branch_id,
        status=visit_status,
        checked=checked,
        completion=completion,
    )
    return snapshot_to_schedule_overview(snapshot)
