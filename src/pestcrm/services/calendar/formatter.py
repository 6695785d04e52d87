"""Convert calendar snapshots into API response models."""

from __future__ import annotations

from typing import Iterable

from ...schemas.calendar import (
    AugmentedVisitModel,
    BranchMaterialUsageModel,
    CalendarRevenueResponse,
    CoverageItemModel,
    CoverageModel,
    DailyRevenueModel,
    MaterialBreakdownModel,
    MaterialLineModel,
    MaterialUsageModel,
    OperatorRevenueModel,
    OperatorScheduleGroupModel,
    RevenueRollupModel,
    ScheduleOverviewResponse,
    ScheduleProgressModel,
)
from ..revenue.models import MaterialBreakdownItem
from ..schedules import Coverage, OperatorScheduleGroup, ScheduleProgress
from .pipeline import CalendarSnapshot


def _breakdown(items: Iterable[MaterialBreakdownItem]) -> list[MaterialBreakdownModel]:
    return [
        MaterialBreakdownModel(
            product_name=item.product_name,
            total_quantity=float(item.total_quantity),
            total_item_amount=float(item.total_item_amount),
            unit=item.unit,
        )
        for item in items
    ]


def progress_to_model(item: ScheduleProgress) -> ScheduleProgressModel:
    schedule = item.schedule
    return ScheduleProgressModel(
        schedule_id=schedule.id,
        operator_id=schedule.operator_id,
        operator_name=schedule.operator_name,
        customer_id=schedule.customer_id,
        customer_name=schedule.customer_name,
        branch_id=schedule.branch_id,
        branch_name=schedule.branch_name,
        visits_required=schedule.visits_required,
        done_count=item.done_count,
        remaining=item.remaining,
        is_complete=item.is_complete,
        progress_percent=round(item.progress_percent, 1),
    )


def group_to_model(group: OperatorScheduleGroup) -> OperatorScheduleGroupModel:
    return OperatorScheduleGroupModel(
        operator_id=group.operator_id,
        operator_name=group.operator_name,
        total_required=group.total_required,
        completed_count=group.completed_count,
        schedules=[progress_to_model(item) for item in group.schedules],
    )


def coverage_to_model(coverage: Coverage) -> CoverageModel:
    return CoverageModel(
        customers=[CoverageItemModel(id=c.id, name=c.name) for c in coverage.customers],
        branches=[CoverageItemModel(id=b.id, name=b.name, customer_id=b.customer_id) for b in coverage.branches],
    )


def snapshot_to_schedule_overview(snapshot: CalendarSnapshot) -> ScheduleOverviewResponse:
    return ScheduleOverviewResponse(
        year=snapshot.year,
        month=snapshot.month,
        schedule_progress=[progress_to_model(item) for item in snapshot.schedule_progress],
        operator_schedules=[group_to_model(group) for group in snapshot.operator_schedules],
        unscheduled=coverage_to_model(snapshot.unscheduled),
    )


def snapshot_to_response(snapshot: CalendarSnapshot) -> CalendarRevenueResponse:
    revenue = snapshot.revenue
    visits = [
        AugmentedVisitModel(
            id=item.visit.id,
            visit_date=item.visit.visit_date,
            status=item.visit.status,
            is_checked=item.visit.is_checked,
            customer_id=item.visit.customer_id,
            customer_name=item.visit.customer_name,
            branch_id=item.visit.branch_id,
            branch_name=item.visit.branch_name,
            operator_id=item.visit.operator_id,
            operator_name=item.visit.operator_name,
            material_sales_revenue=float(item.material_sales_revenue),
            service_per_visit_revenue=float(item.service_per_visit_revenue),
            total_visit_revenue=float(item.total_visit_revenue),
            service_source=item.service_source,
            materials=[
                MaterialLineModel(product_name=line.product_name, quantity=float(line.quantity), unit=line.unit)
                for line in item.materials
            ],
        )
        for item in snapshot.visits
    ]
    rollup = [
        RevenueRollupModel(
            id=entry.id,
            name=entry.name,
            material=float(entry.material),
            service=float(entry.service),
            total=float(entry.total),
            visit_count=entry.visit_count,
        )
        for entry in revenue.customer_rollup
    ]
    branch_rollup = [
        RevenueRollupModel(
            id=entry.id,
            name=entry.name,
            material=float(entry.material),
            service=float(entry.service),
            total=float(entry.total),
            visit_count=entry.visit_count,
            customer_id=entry.customer_id,
        )
        for entry in revenue.branch_rollup
    ]
    operators = [
        OperatorRevenueModel(
            operator_id=summary.operator_id,
            operator_name=summary.operator_name,
            total_monthly_revenue=float(summary.total_monthly_revenue),
            visit_count=summary.visit_count,
            daily_breakdown=[
                DailyRevenueModel(
                    day=daily.day,
                    total_daily_revenue=float(daily.total_daily_revenue),
                    visit_count=daily.visit_count,
                )
                for daily in summary.daily_breakdown
            ],
        )
        for summary in revenue.operator_rollup
    ]
    usage = {
        customer_id: MaterialUsageModel(
            customer_id=summary.customer_id,
            customer_name=summary.customer_name,
            total_sales_amount=float(summary.total_sales_amount),
            total_visits_with_sales=summary.total_visits_with_sales,
            materials_breakdown=_breakdown(summary.materials_breakdown),
            branches={
                branch_id: BranchMaterialUsageModel(
                    branch_id=branch.branch_id,
                    branch_name=branch.branch_name,
                    total_sales_amount=float(branch.total_sales_amount),
                    total_visits_with_sales=branch.total_visits_with_sales,
                    materials_breakdown=_breakdown(branch.materials_breakdown),
                )
                for branch_id, branch in summary.branches.items()
            },
        )
        for customer_id, summary in revenue.material_usage.items()
    }
    return CalendarRevenueResponse(
        year=snapshot.year,
        month=snapshot.month,
        total_revenue=float(revenue.total_revenue),
        visits=visits,
        customer_rollup=rollup,
        branch_rollup=branch_rollup,
        operator_rollup=operators,
        material_usage=usage,
        schedule_progress=[progress_to_model(item) for item in snapshot.schedule_progress],
        operator_schedules=[group_to_model(group) for group in snapshot.operator_schedules],
        unvisited=coverage_to_model(snapshot.unvisited),
        unscheduled=coverage_to_model(snapshot.unscheduled),
    )
