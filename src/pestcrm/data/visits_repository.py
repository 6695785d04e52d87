"""Monthly visit cohort loader backed by the Supabase data API."""

from __future__ import annotations

import calendar
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import MaterialSale, ProductRef, SaleLineItem, Visit, VisitFilters
from .errors import DataFetchError
from .parsing import coerce_datetime, coerce_decimal, embedded_field, optional_id


# Visits and every nested material record are fetched in a single query.
VISIT_COLUMNS = """
    id, visit_date, status, is_checked,
    customer_id, branch_id, operator_id,
    customer:customer_id(kisa_isim),
    branch:branch_id(sube_adi),
    operator:operator_id(id, name),
    paid_material_sales (
      id, total_amount,
      paid_material_sale_items (
        quantity, unit_price,
        paid_products:product_id (
          id, name, unit_type
        )
      )
    )
"""


def month_window(year: int, month: int, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """Return the first and last instant of a calendar month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    zone = tz or ZoneInfo(settings.calendar_timezone)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=zone)
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=zone)
    return start, end


def _apply_filters(query: Any, filters: VisitFilters) -> Any:
    if filters.operator_id:
        query = query.eq("operator_id", filters.operator_id)
    if filters.status:
        query = query.eq("status", filters.status)
    if filters.customer_id:
        query = query.eq("customer_id", filters.customer_id)
    if filters.branch_id:
        query = query.eq("branch_id", filters.branch_id)

    if filters.checked == "checked":
        query = query.eq("is_checked", True)
    elif filters.checked == "unchecked":
        # Unchecked covers rows where the flag was never set.
        query = query.or_("is_checked.is.false,is_checked.is.null")
    return query


def _parse_line_item(row: dict) -> SaleLineItem:
    product_row = row.get("paid_products")
    product = None
    if isinstance(product_row, dict) and product_row.get("name"):
        product = ProductRef(
            id=optional_id(product_row.get("id")),
            name=str(product_row["name"]).strip(),
            unit=(product_row.get("unit_type") or None),
        )
    return SaleLineItem(
        product=product,
        quantity=coerce_decimal(row.get("quantity")) or Decimal(0),
        unit_price=coerce_decimal(row.get("unit_price")),
    )


def _parse_sale(row: dict, visit_id: str) -> MaterialSale:
    items = tuple(_parse_line_item(item) for item in (row.get("paid_material_sale_items") or []))
    return MaterialSale(
        id=str(row["id"]),
        visit_id=visit_id,
        total_amount=coerce_decimal(row.get("total_amount")) or Decimal(0),
        items=items,
    )


def parse_visit_row(row: dict, tz: ZoneInfo | None = None) -> Visit:
    """Build a Visit (with nested sales) from one ``visits`` row."""
    visit_id = str(row["id"])
    customer_id = optional_id(row.get("customer_id"))
    if customer_id is None:
        raise ValueError(f"Visit {visit_id} has no customer")

    operator_id = optional_id(row.get("operator_id")) or optional_id(embedded_field(row, "operator", "id"))
    return Visit(
        id=visit_id,
        customer_id=customer_id,
        visit_date=coerce_datetime(row.get("visit_date"), tz),
        status=str(row.get("status") or "planned"),
        is_checked=bool(row.get("is_checked")),
        branch_id=optional_id(row.get("branch_id")),
        operator_id=operator_id,
        customer_name=embedded_field(row, "customer", "kisa_isim"),
        branch_name=embedded_field(row, "branch", "sube_adi"),
        operator_name=embedded_field(row, "operator", "name"),
        material_sales=tuple(
            _parse_sale(sale, visit_id) for sale in (row.get("paid_material_sales") or [])
        ),
    )


def parse_visit_rows(rows: Iterable[dict], tz: ZoneInfo | None = None) -> list[Visit]:
    visits: list[Visit] = []
    for row in rows:
        try:
            visits.append(parse_visit_row(row, tz))
        except (KeyError, ValueError, TypeError) as e:
            # Skip invalid rows but continue processing
            logging.warning(f"Skipping invalid visit row {row.get('id', 'unknown')}: {e}")
            continue
    return visits


def get_visits(month_start: datetime, month_end: datetime, filters: VisitFilters | None = None) -> list[Visit]:
    """Load the visit cohort for a time window and filter set.

    Raises:
        DataFetchError: when Supabase is not configured or the query fails.
    """
    supabase = get_supabase_client()
    if not supabase:
        raise DataFetchError("visits", "Supabase not configured")

    query = (
        supabase.table("visits")
        .select(VISIT_COLUMNS)
        .gte("visit_date", month_start.isoformat())
        .lte("visit_date", month_end.isoformat())
    )
    query = _apply_filters(query, filters or VisitFilters())

    try:
        response = query.execute()
    except Exception as exc:
        raise DataFetchError("visits", str(exc)) from exc

    visits = parse_visit_rows(response.data or [])
    logging.info(f"Loaded {len(visits)} visits between {month_start.date()} and {month_end.date()}")
    return visits
