from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from src.pestcrm.data import directory_repository, pricing_repository, schedules_repository, visits_repository
from src.pestcrm.data.errors import DataFetchError
from src.pestcrm.models.domain import VisitFilters

TZ = ZoneInfo("Europe/Istanbul")


class FakeQuery:
    """Records the builder calls made against one table and returns canned rows."""

    def __init__(self, table: str, rows: list[dict], calls: list, error: Exception | None = None):
        self.table = table
        self.rows = rows
        self.calls = calls
        self.error = error

    def _record(self, name, *args):
        self.calls.append((self.table, name, args))
        return self

    def select(self, *args, **kwargs):
        return self._record("select", *args)

    def eq(self, column, value):
        return self._record("eq", column, value)

    def gte(self, column, value):
        return self._record("gte", column, value)

    def lte(self, column, value):
        return self._record("lte", column, value)

    def or_(self, expression):
        return self._record("or_", expression)

    def order(self, column):
        return self._record("order", column)

    def execute(self):
        if self.error:
            raise self.error
        return SimpleNamespace(data=self.rows)


class FakeSupabase:
    def __init__(self, tables: dict[str, list[dict]] | None = None, error: Exception | None = None):
        self.tables = tables or {}
        self.error = error
        self.calls: list = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(name, self.tables.get(name, []), self.calls, self.error)


def _install(monkeypatch: pytest.MonkeyPatch, client) -> None:
    for module in (visits_repository, pricing_repository, schedules_repository, directory_repository):
        monkeypatch.setattr(module, "get_supabase_client", lambda: client)


VISIT_ROW = {
    "id": 11,
    "visit_date": "2025-03-03T22:30:00Z",
    "status": "completed",
    "is_checked": None,
    "customer_id": "C1",
    "branch_id": "B1",
    "operator_id": "O1",
    "customer": {"kisa_isim": "Acme"},
    "branch": [{"sube_adi": "Acme North"}],
    "operator": {"id": "O1", "name": "Ayse"},
    "paid_material_sales": [
        {
            "id": "S1",
            "total_amount": "120.50",
            "paid_material_sale_items": [
                {"quantity": 2, "unit_price": 60.25, "paid_products": {"id": "P1", "name": "Gel bait", "unit_type": "tube"}},
                {"quantity": "1", "unit_price": None, "paid_products": None},
            ],
        }
    ],
}


def test_month_window_covers_whole_month():
    start, end = visits_repository.month_window(2024, 2, TZ)

    assert start == datetime(2024, 2, 1, tzinfo=TZ)
    assert (end.day, end.hour, end.minute, end.second) == (29, 23, 59, 59)

    with pytest.raises(ValueError):
        visits_repository.month_window(2024, 13, TZ)


def test_parse_visit_row_reads_embedded_relations():
    visit = visits_repository.parse_visit_row(VISIT_ROW, TZ)

    assert visit.id == "11"
    assert visit.visit_date.date().isoformat() == "2025-03-04"
    assert visit.is_checked is False
    assert (visit.customer_name, visit.branch_name, visit.operator_name) == ("Acme", "Acme North", "Ayse")
    sale = visit.material_sales[0]
    assert sale.total_amount == Decimal("120.50")
    assert sale.items[0].product.name == "Gel bait"
    assert sale.items[0].unit_price == Decimal("60.25")
    assert sale.items[1].product is None
    assert sale.items[1].quantity == Decimal("1")


def test_parse_visit_rows_skips_rows_without_customer():
    rows = [VISIT_ROW, {"id": 12, "visit_date": "2025-03-05T09:00:00+03:00", "customer_id": None}]

    visits = visits_repository.parse_visit_rows(rows, TZ)

    assert [v.id for v in visits] == ["11"]


def test_get_visits_applies_window_and_filters(monkeypatch: pytest.MonkeyPatch):
    client = FakeSupabase({"visits": [VISIT_ROW]})
    _install(monkeypatch, client)
    start, end = visits_repository.month_window(2025, 3, TZ)

    visits = visits_repository.get_visits(start, end, VisitFilters(operator_id="O1", checked="unchecked"))

    assert len(visits) == 1
    calls = [(name, args) for _, name, args in client.calls]
    assert ("gte", ("visit_date", start.isoformat())) in calls
    assert ("lte", ("visit_date", end.isoformat())) in calls
    assert ("eq", ("operator_id", "O1")) in calls
    assert ("or_", ("is_checked.is.false,is_checked.is.null",)) in calls


def test_get_visits_checked_filter(monkeypatch: pytest.MonkeyPatch):
    client = FakeSupabase({"visits": []})
    _install(monkeypatch, client)
    start, end = visits_repository.month_window(2025, 3, TZ)

    visits_repository.get_visits(start, end, VisitFilters(checked="checked", status="planned"))

    calls = [(name, args) for _, name, args in client.calls]
    assert ("eq", ("is_checked", True)) in calls
    assert ("eq", ("status", "planned")) in calls


def test_get_visits_raises_when_not_configured(monkeypatch: pytest.MonkeyPatch):
    _install(monkeypatch, None)
    start, end = visits_repository.month_window(2025, 3, TZ)

    with pytest.raises(DataFetchError) as excinfo:
        visits_repository.get_visits(start, end)
    assert excinfo.value.source == "visits"


def test_query_failure_becomes_data_fetch_error(monkeypatch: pytest.MonkeyPatch):
    _install(monkeypatch, FakeSupabase(error=RuntimeError("timeout")))

    with pytest.raises(DataFetchError, match="timeout"):
        pricing_repository.get_customer_pricing()


def test_pricing_last_row_wins_and_invalid_rows_are_skipped(monkeypatch: pytest.MonkeyPatch):
    rows = [
        {"id": "1", "customer_id": "C1", "monthly_price": 100, "per_visit_price": None},
        {"id": "2", "customer_id": "C1", "monthly_price": "250.00", "per_visit_price": "40"},
        {"id": "3", "customer_id": None, "monthly_price": 10},
        {"id": "4", "customer_id": "C2", "monthly_price": "abc"},
    ]
    _install(monkeypatch, FakeSupabase({"customer_pricing": rows, "branch_pricing": [{"id": "9", "branch_id": "B1"}]}))

    customer_pricing = pricing_repository.get_customer_pricing()
    branch_pricing = pricing_repository.get_branch_pricing()

    assert list(customer_pricing) == ["C1"]
    assert customer_pricing["C1"].monthly_price == Decimal("250.00")
    assert customer_pricing["C1"].per_visit_price == Decimal("40")
    assert branch_pricing["B1"].monthly_price is None


def test_schedules_query_matches_month_and_yearless_rows(monkeypatch: pytest.MonkeyPatch):
    rows = [
        {
            "id": "S1",
            "visits_required": "4",
            "operator_id": "O1",
            "branch_id": "B1",
            "customer_id": None,
            "month": 3,
            "year": None,
            "operator": {"name": "Ayse"},
            "branch": {"sube_adi": "Acme North", "customer": {"kisa_isim": "Acme"}},
        },
        {"id": "S2", "visits_required": None, "month": 3},
    ]
    client = FakeSupabase({"monthly_visit_schedules": rows})
    _install(monkeypatch, client)

    schedules = schedules_repository.get_monthly_schedules(3, 2025)

    assert [s.id for s in schedules] == ["S1"]
    assert schedules[0].visits_required == 4
    assert schedules[0].customer_name == "Acme"
    assert schedules[0].branch_name == "Acme North"
    calls = [(name, args) for _, name, args in client.calls]
    assert ("eq", ("month", 3)) in calls
    assert ("or_", ("year.eq.2025,year.is.null",)) in calls


def test_directory_lists_fall_back_to_ids(monkeypatch: pytest.MonkeyPatch):
    _install(
        monkeypatch,
        FakeSupabase(
            {
                "customers": [{"id": "C1", "kisa_isim": "Acme"}, {"id": "C2", "kisa_isim": None}, {"id": None}],
                "branches": [{"id": "B1", "sube_adi": "North", "customer_id": "C1", "customer": {"kisa_isim": "Acme"}}],
            }
        ),
    )

    customers = directory_repository.list_customers()
    branches = directory_repository.list_branches()

    assert [(c.id, c.name) for c in customers] == [("C1", "Acme"), ("C2", "C2")]
    assert branches[0].customer_name == "Acme"


def test_non_finite_sale_total_skips_visit_row():
    bad_sale = dict(VISIT_ROW, id=12, paid_material_sales=[{"id": "S9", "total_amount": "NaN"}])

    visits = visits_repository.parse_visit_rows([VISIT_ROW, bad_sale], TZ)

    assert [v.id for v in visits] == ["11"]


def test_non_finite_and_decimal_comma_prices_are_skipped(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture):
    rows = [
        {"id": "1", "customer_id": "C1", "monthly_price": "Infinity"},
        {"id": "2", "customer_id": "C2", "per_visit_price": "12,50"},
        {"id": "3", "customer_id": "C3", "monthly_price": "12.50"},
    ]
    _install(monkeypatch, FakeSupabase({"customer_pricing": rows}))

    with caplog.at_level("WARNING"):
        catalog = pricing_repository.get_customer_pricing()

    assert list(catalog) == ["C3"]
    assert catalog["C3"].monthly_price == Decimal("12.50")
    skipped = [record.getMessage() for record in caplog.records if record.levelname == "WARNING"]
    assert len(skipped) == 2
    assert all(message.startswith("Skipping invalid customer pricing row") for message in skipped)


@pytest.mark.parametrize("value", ["NaN", "-Infinity", "sNaN", Decimal("NaN"), "12,50", True])
def test_coerce_decimal_rejects_unusable_values(value):
    from src.pestcrm.data.parsing import coerce_decimal

    with pytest.raises(ValueError):
        coerce_decimal(value)
