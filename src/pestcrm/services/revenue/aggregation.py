"""Monthly revenue rollups over attributed visits."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Sequence
from zoneinfo import ZoneInfo

from ...config import settings
from ...models.domain import AugmentedVisit
from .attribution import product_key
from .models import (
    AggregationResult,
    BranchMaterialUsage,
    BranchRevenueRollup,
    CustomerRevenueRollup,
    DailyRevenue,
    MaterialBreakdownItem,
    MaterialUsageSummary,
    OperatorRevenueSummary,
)
from .money import Amount, MoneyArithmetic, get_money


@dataclass(slots=True)
class _RevenueAccumulator:
    name: str
    material: Amount
    service: Amount
    total: Amount
    visit_count: int = 0
    customer_id: Optional[str] = None


@dataclass(slots=True)
class _DailyAccumulator:
    total: Amount
    visit_count: int = 0


@dataclass(slots=True)
class _OperatorAccumulator:
    name: str
    total: Amount
    visit_count: int = 0
    days: Dict[date, _DailyAccumulator] = field(default_factory=dict)


@dataclass(slots=True)
class _MaterialAccumulator:
    total_quantity: Decimal
    total_item_amount: Amount
    unit: Optional[str] = None


@dataclass(slots=True)
class _UsageAccumulator:
    name: str
    total_sales_amount: Amount
    visits_with_sales: set[str] = field(default_factory=set)
    materials: Dict[str, _MaterialAccumulator] = field(default_factory=dict)
    branches: Dict[str, "_UsageAccumulator"] = field(default_factory=dict)


def calendar_day(moment: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """Calendar date of a visit in the configured timezone."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz or ZoneInfo(settings.calendar_timezone)).date()


def _add_revenue(target: _RevenueAccumulator, visit: AugmentedVisit, money: MoneyArithmetic) -> None:
    target.material = money.add(target.material, visit.material_sales_revenue)
    target.service = money.add(target.service, visit.service_per_visit_revenue)
    target.total = money.add(target.total, visit.total_visit_revenue)
    target.visit_count += 1


def _add_material(
    usage: _UsageAccumulator,
    name: str,
    unit: Optional[str],
    quantity: Decimal,
    amount: Amount,
    money: MoneyArithmetic,
) -> None:
    entry = usage.materials.get(name)
    if entry is None:
        entry = usage.materials[name] = _MaterialAccumulator(
            total_quantity=Decimal(0),
            total_item_amount=money.zero(),
            unit=unit,
        )
    entry.total_quantity += quantity
    entry.total_item_amount = money.add(entry.total_item_amount, amount)


def _accumulate_usage(
    usage_by_customer: Dict[str, _UsageAccumulator],
    visit: AugmentedVisit,
    money: MoneyArithmetic,
    unknown_product: Optional[str],
) -> None:
    if not visit.material_sales:
        return

    source = visit.visit
    customer = usage_by_customer.get(source.customer_id)
    if customer is None:
        customer = usage_by_customer[source.customer_id] = _UsageAccumulator(
            name=source.customer_name or source.customer_id,
            total_sales_amount=money.zero(),
        )
    branch = None
    if source.branch_id:
        branch = customer.branches.get(source.branch_id)
        if branch is None:
            branch = customer.branches[source.branch_id] = _UsageAccumulator(
                name=source.branch_name or source.branch_id,
                total_sales_amount=money.zero(),
            )

    # Distinct visit ids, since one visit may carry several sales.
    customer.visits_with_sales.add(visit.id)
    if branch is not None:
        branch.visits_with_sales.add(visit.id)

    for sale in visit.material_sales:
        amount = money.coerce(sale.total_amount)
        customer.total_sales_amount = money.add(customer.total_sales_amount, amount)
        if branch is not None:
            branch.total_sales_amount = money.add(branch.total_sales_amount, amount)

        for item in sale.items:
            name, unit = product_key(item, unknown_product)
            item_amount = money.multiply(money.coerce(item.quantity), money.coerce(item.unit_price))
            _add_material(customer, name, unit, item.quantity, item_amount, money)
            if branch is not None:
                _add_material(branch, name, unit, item.quantity, item_amount, money)


def _breakdown(materials: Dict[str, _MaterialAccumulator]) -> tuple[MaterialBreakdownItem, ...]:
    return tuple(
        MaterialBreakdownItem(
            product_name=name,
            total_quantity=entry.total_quantity,
            total_item_amount=entry.total_item_amount,
            unit=entry.unit,
        )
        for name, entry in sorted(materials.items())
    )


def _by_total(entries: list) -> list:
    return sorted(entries, key=lambda entry: (-entry.total, entry.id))


def aggregate(
    visits: Sequence[AugmentedVisit],
    *,
    money: Optional[MoneyArithmetic] = None,
    unknown_product: Optional[str] = None,
) -> AggregationResult:
    """Roll attributed visits up by customer, branch, operator/day and material usage."""
    money = money or get_money()
    tz = ZoneInfo(settings.calendar_timezone)

    customers: Dict[str, _RevenueAccumulator] = {}
    branches: Dict[str, _RevenueAccumulator] = {}
    operators: Dict[str, _OperatorAccumulator] = {}
    usage: Dict[str, _UsageAccumulator] = {}

    for visit in visits:
        source = visit.visit

        entry = customers.get(source.customer_id)
        if entry is None:
            entry = customers[source.customer_id] = _RevenueAccumulator(
                name=source.customer_name or source.customer_id,
                material=money.zero(),
                service=money.zero(),
                total=money.zero(),
            )
        _add_revenue(entry, visit, money)

        if source.branch_id:
            entry = branches.get(source.branch_id)
            if entry is None:
                entry = branches[source.branch_id] = _RevenueAccumulator(
                    name=source.branch_name or source.branch_id,
                    material=money.zero(),
                    service=money.zero(),
                    total=money.zero(),
                    customer_id=source.customer_id,
                )
            _add_revenue(entry, visit, money)

        if source.operator_id:
            operator = operators.get(source.operator_id)
            if operator is None:
                operator = operators[source.operator_id] = _OperatorAccumulator(
                    name=source.operator_name or source.operator_id,
                    total=money.zero(),
                )
            operator.total = money.add(operator.total, visit.total_visit_revenue)
            operator.visit_count += 1
            day = calendar_day(source.visit_date, tz)
            daily = operator.days.get(day)
            if daily is None:
                daily = operator.days[day] = _DailyAccumulator(total=money.zero())
            daily.total = money.add(daily.total, visit.total_visit_revenue)
            daily.visit_count += 1

        _accumulate_usage(usage, visit, money, unknown_product)

    customer_rollup = _by_total(
        [
            CustomerRevenueRollup(
                id=customer_id,
                name=entry.name,
                material=entry.material,
                service=entry.service,
                total=entry.total,
                visit_count=entry.visit_count,
            )
            for customer_id, entry in customers.items()
        ]
    )
    branch_rollup = _by_total(
        [
            BranchRevenueRollup(
                id=branch_id,
                name=entry.name,
                material=entry.material,
                service=entry.service,
                total=entry.total,
                visit_count=entry.visit_count,
                customer_id=entry.customer_id,
            )
            for branch_id, entry in branches.items()
        ]
    )
    operator_rollup = sorted(
        (
            OperatorRevenueSummary(
                operator_id=operator_id,
                operator_name=operator.name,
                total_monthly_revenue=operator.total,
                visit_count=operator.visit_count,
                daily_breakdown=tuple(
                    DailyRevenue(day=day, total_daily_revenue=daily.total, visit_count=daily.visit_count)
                    for day, daily in sorted(operator.days.items())
                ),
            )
            for operator_id, operator in operators.items()
        ),
        key=lambda summary: (-summary.total_monthly_revenue, summary.operator_id),
    )
    material_usage = {
        customer_id: MaterialUsageSummary(
            customer_id=customer_id,
            customer_name=entry.name,
            total_sales_amount=entry.total_sales_amount,
            visits_with_sales=frozenset(entry.visits_with_sales),
            materials_breakdown=_breakdown(entry.materials),
            branches={
                branch_id: BranchMaterialUsage(
                    branch_id=branch_id,
                    branch_name=branch.name,
                    total_sales_amount=branch.total_sales_amount,
                    visits_with_sales=frozenset(branch.visits_with_sales),
                    materials_breakdown=_breakdown(branch.materials),
                )
                for branch_id, branch in sorted(entry.branches.items())
            },
        )
        for customer_id, entry in sorted(usage.items())
    }

    return AggregationResult(
        customer_rollup=customer_rollup,
        branch_rollup=branch_rollup,
        operator_rollup=operator_rollup,
        material_usage=material_usage,
        total_revenue=money.total(entry.total for entry in customer_rollup),
    )
