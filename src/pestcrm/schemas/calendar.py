"""Pydantic request/response models for calendar revenue endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class CalendarRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100, description="Calendar year.")
    month: int = Field(..., ge=1, le=12, description="Calendar month (1-12).")
    operator_id: Optional[str] = Field(default=None, description="Only visits by this operator.")
    customer_id: Optional[str] = Field(default=None, description="Only visits to this customer.")
    branch_id: Optional[str] = Field(default=None, description="Only visits to this branch.")
    status: Optional[Literal["planned", "completed", "cancelled"]] = Field(
        default=None, description="Only visits in this status."
    )
    checked: Literal["all", "checked", "unchecked"] = Field(default="all", description="Checked-state filter.")
    completion: Literal["incomplete", "complete", "all"] = Field(
        default="incomplete", description="Which schedules to include in the per-operator groups."
    )

    @field_validator("operator_id", "customer_id", "branch_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class MaterialLineModel(BaseModel):
    product_name: str
    quantity: float
    unit: Optional[str] = None


class AugmentedVisitModel(BaseModel):
    id: str
    visit_date: datetime
    status: str
    is_checked: bool
    customer_id: str
    customer_name: Optional[str] = None
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None
    operator_id: Optional[str] = None
    operator_name: Optional[str] = None
    material_sales_revenue: float
    service_per_visit_revenue: float
    total_visit_revenue: float
    service_source: str
    materials: List[MaterialLineModel]


class RevenueRollupModel(BaseModel):
    id: str
    name: str
    material: float
    service: float
    total: float
    visit_count: int
    customer_id: Optional[str] = None


class DailyRevenueModel(BaseModel):
    day: date
    total_daily_revenue: float
    visit_count: int


class OperatorRevenueModel(BaseModel):
    operator_id: str
    operator_name: str
    total_monthly_revenue: float
    visit_count: int
    daily_breakdown: List[DailyRevenueModel]


class MaterialBreakdownModel(BaseModel):
    product_name: str
    total_quantity: float
    total_item_amount: float
    unit: Optional[str] = None


class BranchMaterialUsageModel(BaseModel):
    branch_id: str
    branch_name: str
    total_sales_amount: float
    total_visits_with_sales: int
    materials_breakdown: List[MaterialBreakdownModel]


class MaterialUsageModel(BaseModel):
    customer_id: str
    customer_name: str
    total_sales_amount: float
    total_visits_with_sales: int
    materials_breakdown: List[MaterialBreakdownModel]
    branches: Dict[str, BranchMaterialUsageModel]


class ScheduleProgressModel(BaseModel):
    schedule_id: str
    operator_id: Optional[str] = None
    operator_name: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None
    visits_required: int
    done_count: int
    remaining: int
    is_complete: bool
    progress_percent: float


class OperatorScheduleGroupModel(BaseModel):
    operator_id: Optional[str] = None
    operator_name: Optional[str] = None
    total_required: int
    completed_count: int
    schedules: List[ScheduleProgressModel]


class CoverageItemModel(BaseModel):
    id: str
    name: str
    customer_id: Optional[str] = None


class CoverageModel(BaseModel):
    customers: List[CoverageItemModel]
    branches: List[CoverageItemModel]


class ScheduleOverviewResponse(BaseModel):
    year: int
    month: int
    schedule_progress: List[ScheduleProgressModel]
    operator_schedules: List[OperatorScheduleGroupModel]
    unscheduled: CoverageModel


class CalendarRevenueResponse(BaseModel):
    year: int
    month: int
    total_revenue: float
    visits: List[AugmentedVisitModel]
    customer_rollup: List[RevenueRollupModel]
    branch_rollup: List[RevenueRollupModel]
    operator_rollup: List[OperatorRevenueModel]
    material_usage: Dict[str, MaterialUsageModel]
    schedule_progress: List[ScheduleProgressModel]
    operator_schedules: List[OperatorScheduleGroupModel]
    unvisited: CoverageModel
    unscheduled: CoverageModel
