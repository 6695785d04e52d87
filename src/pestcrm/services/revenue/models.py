"""Revenue rollup models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from .money import Amount


@dataclass(slots=True, frozen=True)
class CustomerRevenueRollup:
    id: str
    name: str
    material: Amount
    service: Amount
    total: Amount
    visit_count: int


@dataclass(slots=True, frozen=True)
class BranchRevenueRollup:
    id: str
    name: str
    material: Amount
    service: Amount
    total: Amount
    visit_count: int
    customer_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class DailyRevenue:
    day: date
    total_daily_revenue: Amount
    visit_count: int


@dataclass(slots=True, frozen=True)
class OperatorRevenueSummary:
    operator_id: str
    operator_name: str
    total_monthly_revenue: Amount
    visit_count: int
    daily_breakdown: tuple[DailyRevenue, ...]

    def for_day(self, day: date) -> Optional[DailyRevenue]:
        for entry in self.daily_breakdown:
            if entry.day == day:
                return entry
        return None


@dataclass(slots=True, frozen=True)
class MaterialBreakdownItem:
    product_name: str
    total_quantity: Decimal
    total_item_amount: Amount
    unit: Optional[str] = None


@dataclass(slots=True, frozen=True)
class BranchMaterialUsage:
    branch_id: str
    branch_name: str
    total_sales_amount: Amount
    visits_with_sales: frozenset[str]
    materials_breakdown: tuple[MaterialBreakdownItem, ...]

    @property
    def total_visits_with_sales(self) -> int:
        return len(self.visits_with_sales)


@dataclass(slots=True, frozen=True)
class MaterialUsageSummary:
    customer_id: str
    customer_name: str
    total_sales_amount: Amount
    visits_with_sales: frozenset[str]
    materials_breakdown: tuple[MaterialBreakdownItem, ...]
    branches: Dict[str, BranchMaterialUsage]

    @property
    def total_visits_with_sales(self) -> int:
        return len(self.visits_with_sales)


@dataclass(slots=True, frozen=True)
class AggregationResult:
    customer_rollup: List[CustomerRevenueRollup]
    branch_rollup: List[BranchRevenueRollup]
    operator_rollup: List[OperatorRevenueSummary]
    material_usage: Dict[str, MaterialUsageSummary]
    total_revenue: Amount
