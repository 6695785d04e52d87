from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from src.pestcrm.data.errors import DataFetchError
from src.pestcrm.main import create_app
from src.pestcrm.models.domain import (
    BranchPricing,
    BranchRef,
    CustomerPricing,
    CustomerRef,
    MaterialSale,
    MonthlyScheduleRequirement,
    ProductRef,
    SaleLineItem,
    Visit,
)

TZ = ZoneInfo("Europe/Istanbul")


def _visit(vid: str, customer: str, branch: str | None = None, sales: tuple[MaterialSale, ...] = ()) -> Visit:
    return Visit(
        id=vid,
        customer_id=customer,
        visit_date=datetime(2025, 3, 12, 11, 0, tzinfo=TZ),
        status="completed",
        is_checked=True,
        branch_id=branch,
        operator_id="O1",
        customer_name="Acme" if customer == "X" else customer,
        branch_name="Acme North" if branch == "Y" else branch,
        operator_name="Ayse",
        material_sales=sales,
    )


@pytest.fixture
def api_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from src.pestcrm.services.calendar import pipeline

    sale = MaterialSale(
        id="S1",
        visit_id="B",
        total_amount=Decimal("150"),
        items=(SaleLineItem(ProductRef("P1", "Gel bait", "tube"), Decimal("3"), Decimal("50")),),
    )
    visits = [_visit("A", "X"), _visit("B", "X", "Y", sales=(sale,))]
    seen = {}

    def fake_get_visits(start, end, filters):
        seen["filters"] = filters
        return visits

    monkeypatch.setattr(pipeline, "get_visits", fake_get_visits)
    monkeypatch.setattr(
        pipeline,
        "get_customer_pricing",
        lambda: {"X": CustomerPricing(id="P1", customer_id="X", monthly_price=Decimal("200"))},
    )
    monkeypatch.setattr(pipeline, "get_branch_pricing", lambda: {"W": BranchPricing(id="BP1", branch_id="W")})
    monkeypatch.setattr(
        pipeline,
        "get_monthly_schedules",
        lambda month, year: [
            MonthlyScheduleRequirement(
                id="S1", visits_required=4, operator_id="O1", operator_name="Ayse", branch_id="Y", month=month
            )
        ],
    )
    monkeypatch.setattr(pipeline, "list_customers", lambda: [CustomerRef("X", "Acme"), CustomerRef("Z", "Globex")])
    monkeypatch.setattr(
        pipeline,
        "list_branches",
        lambda: [BranchRef("Y", "Acme North", customer_id="X"), BranchRef("W", "Globex HQ", customer_id="Z")],
    )

    client = TestClient(create_app())
    client.seen = seen
    return client


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_calendar_revenue_endpoint(api_client: TestClient):
    response = api_client.get("/api/calendar/revenue", params={"year": 2025, "month": 3})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total_revenue"] == pytest.approx(350.0)

    visits = {visit["id"]: visit for visit in payload["visits"]}
    assert visits["A"]["total_visit_revenue"] == pytest.approx(100.0)
    assert visits["B"]["total_visit_revenue"] == pytest.approx(250.0)
    assert visits["B"]["service_source"] == "customer_monthly"
    assert visits["B"]["materials"] == [{"product_name": "Gel bait", "quantity": 3.0, "unit": "tube"}]

    customer = payload["customer_rollup"][0]
    assert (customer["id"], customer["name"]) == ("X", "Acme")
    assert (customer["material"], customer["service"], customer["total"]) == (150.0, 200.0, 350.0)
    assert customer["visit_count"] == 2

    operator = payload["operator_rollup"][0]
    assert operator["daily_breakdown"] == [{"day": "2025-03-12", "total_daily_revenue": 350.0, "visit_count": 2}]

    usage = payload["material_usage"]["X"]
    assert usage["total_visits_with_sales"] == 1
    assert usage["branches"]["Y"]["materials_breakdown"][0]["total_item_amount"] == 150.0

    progress = payload["schedule_progress"][0]
    assert (progress["done_count"], progress["remaining"], progress["is_complete"]) == (1, 3, False)
    assert progress["progress_percent"] == 25.0

    assert [c["id"] for c in payload["unvisited"]["customers"]] == ["Z"]
    assert [b["id"] for b in payload["unvisited"]["branches"]] == ["W"]


def test_calendar_filters_are_forwarded(api_client: TestClient):
    response = api_client.get(
        "/api/calendar/revenue",
        params={"year": 2025, "month": 3, "operator_id": "O1", "status": "completed", "checked": "unchecked"},
    )

    assert response.status_code == 200
    filters = api_client.seen["filters"]
    assert (filters.operator_id, filters.status, filters.checked) == ("O1", "completed", "unchecked")


def test_schedule_overview_endpoint(api_client: TestClient):
    response = api_client.get("/api/calendar/schedules", params={"year": 2025, "month": 3, "completion": "all"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["operator_schedules"][0]["operator_name"] == "Ayse"
    assert payload["operator_schedules"][0]["total_required"] == 4
    assert [c["id"] for c in payload["unscheduled"]["customers"]] == ["Z", "X"]


def test_invalid_month_is_rejected(api_client: TestClient):
    response = api_client.get("/api/calendar/revenue", params={"year": 2025, "month": 13})

    assert response.status_code == 422


def test_fetch_failure_maps_to_bad_gateway(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.pestcrm.services.calendar import pipeline

    def failing_pricing():
        raise DataFetchError("customer_pricing", "connection refused")

    monkeypatch.setattr(pipeline, "get_customer_pricing", failing_pricing)

    response = api_client.get("/api/calendar/revenue", params={"year": 2025, "month": 3})

    assert response.status_code == 502
    assert "customer_pricing" in response.json()["detail"]
