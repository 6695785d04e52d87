from datetime import datetime

from src.pestcrm.models.domain import BranchRef, CustomerRef, MonthlyScheduleRequirement, Visit
from src.pestcrm.services.schedules import find_unscheduled, find_unvisited

CUSTOMERS = [CustomerRef("C1", "Acme"), CustomerRef("C2", "Globex"), CustomerRef("C3", "Initech")]
BRANCHES = [
    BranchRef("B1", "Acme North", customer_id="C1"),
    BranchRef("B2", "Acme South", customer_id="C1"),
    BranchRef("B3", "Globex HQ", customer_id="C2"),
]


def _visit(vid: str, customer: str, branch: str | None = None) -> Visit:
    return Visit(id=vid, customer_id=customer, visit_date=datetime(2025, 3, 1), status="planned", branch_id=branch)


def test_customer_visited_through_branch_is_covered():
    coverage = find_unvisited([_visit("V1", "C1", "B1")], CUSTOMERS, BRANCHES)

    assert [c.id for c in coverage.customers] == ["C2", "C3"]
    assert [b.id for b in coverage.branches] == ["B2", "B3"]


def test_filters_narrow_unvisited_lists():
    coverage = find_unvisited([], CUSTOMERS, BRANCHES, customer_id="C1")

    assert [c.id for c in coverage.customers] == ["C1"]
    assert [b.id for b in coverage.branches] == ["B1", "B2"]

    coverage = find_unvisited([], CUSTOMERS, BRANCHES, branch_id="B3")
    assert [b.id for b in coverage.branches] == ["B3"]


def test_unscheduled_lists_unvisited_first():
    schedules = [
        MonthlyScheduleRequirement(id="S1", visits_required=2, customer_id="C1", branch_id="B1"),
        MonthlyScheduleRequirement(id="S2", visits_required=1, customer_id="C2"),
    ]
    unvisited = find_unvisited([_visit("V1", "C1", "B1")], CUSTOMERS, BRANCHES)

    coverage = find_unscheduled(schedules, CUSTOMERS, BRANCHES, unvisited)

    assert [c.id for c in coverage.customers] == ["C2", "C3", "C1"]
    assert [b.id for b in coverage.branches] == ["B2", "B3"]
