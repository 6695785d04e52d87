"""Customers and branches the month's visits or schedules do not reach."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import BranchRef, CustomerRef, MonthlyScheduleRequirement, Visit


@dataclass(slots=True, frozen=True)
class Coverage:
    customers: tuple[CustomerRef, ...]
    branches: tuple[BranchRef, ...]


def find_unvisited(
    cohort: Sequence[Visit],
    customers: Sequence[CustomerRef],
    branches: Sequence[BranchRef],
    *,
    customer_id: Optional[str] = None,
    branch_id: Optional[str] = None,
) -> Coverage:
    """List branches with no visit in the cohort and customers with no visit anywhere.

    A customer counts as visited when the cohort has a visit to it directly
    or to any of its branches. The customer/branch filters of the calendar
    narrow both lists.
    """
    visited_branches = {visit.branch_id for visit in cohort if visit.branch_id}
    visited_customers = {visit.customer_id for visit in cohort if visit.customer_id}

    unvisited_branches = tuple(
        branch
        for branch in branches
        if (not customer_id or branch.customer_id == customer_id)
        and (not branch_id or branch.id == branch_id)
        and branch.id not in visited_branches
    )

    branches_by_customer: dict[str, set[str]] = {}
    for branch in branches:
        if branch.customer_id:
            branches_by_customer.setdefault(branch.customer_id, set()).add(branch.id)

    unvisited_customers = tuple(
        customer
        for customer in customers
        if (not customer_id or customer.id == customer_id)
        and customer.id not in visited_customers
        and not (branches_by_customer.get(customer.id, set()) & visited_branches)
    )
    return Coverage(customers=unvisited_customers, branches=unvisited_branches)


def find_unscheduled(
    schedules: Sequence[MonthlyScheduleRequirement],
    customers: Sequence[CustomerRef],
    branches: Sequence[BranchRef],
    unvisited: Coverage,
) -> Coverage:
    """Unvisited items first, then branches and customers no schedule names.

    Only a schedule keyed by the customer alone (no branch) schedules the
    customer itself.
    """
    scheduled_branches = {s.branch_id for s in schedules if s.branch_id}
    scheduled_customers = {s.customer_id for s in schedules if s.customer_id and not s.branch_id}
    unvisited_branch_ids = {b.id for b in unvisited.branches}
    unvisited_customer_ids = {c.id for c in unvisited.customers}

    branches_out = unvisited.branches + tuple(
        b for b in branches if b.id not in scheduled_branches and b.id not in unvisited_branch_ids
    )
    customers_out = unvisited.customers + tuple(
        c for c in customers if c.id not in scheduled_customers and c.id not in unvisited_customer_ids
    )
    return Coverage(customers=customers_out, branches=branches_out)
