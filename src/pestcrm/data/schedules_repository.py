"""Monthly visit quota loader."""

from __future__ import annotations

import logging

from ..db.supabase import get_supabase_client
from ..models.domain import MonthlyScheduleRequirement
from .errors import DataFetchError
from .parsing import coerce_int, embedded_field, optional_id

SCHEDULE_COLUMNS = """
    *,
    customer:customer_id(kisa_isim),
    branch:branch_id(sube_adi, customer:customer_id(kisa_isim)),
    operator:operator_id(name)
"""


def parse_schedule_row(row: dict) -> MonthlyScheduleRequirement:
    visits_required = coerce_int(row.get("visits_required"))
    if visits_required is None:
        raise ValueError("missing visits_required")

    # A branch schedule carries its customer's name through the branch relation.
    customer_name = embedded_field(row, "customer", "kisa_isim")
    branch = row.get("branch")
    if customer_name is None and isinstance(branch, dict):
        customer_name = embedded_field(branch, "customer", "kisa_isim")

    return MonthlyScheduleRequirement(
        id=str(row["id"]),
        visits_required=visits_required,
        operator_id=optional_id(row.get("operator_id")),
        customer_id=optional_id(row.get("customer_id")),
        branch_id=optional_id(row.get("branch_id")),
        month=coerce_int(row.get("month")),
        year=coerce_int(row.get("year")),
        operator_name=embedded_field(row, "operator", "name"),
        customer_name=customer_name,
        branch_name=embedded_field(row, "branch", "sube_adi"),
    )


def get_monthly_schedules(month: int, year: int) -> list[MonthlyScheduleRequirement]:
    """Load the schedules for a month; schedules stored without a year apply to every year.

    Raises:
        DataFetchError: when Supabase is not configured or the query fails.
    """
    supabase = get_supabase_client()
    if not supabase:
        raise DataFetchError("monthly_visit_schedules", "Supabase not configured")

    try:
        response = (
            supabase.table("monthly_visit_schedules")
            .select(SCHEDULE_COLUMNS)
            .eq("month", month)
            .or_(f"year.eq.{year},year.is.null")
            .execute()
        )
    except Exception as exc:
        raise DataFetchError("monthly_visit_schedules", str(exc)) from exc

    schedules: list[MonthlyScheduleRequirement] = []
    for row in response.data or []:
        try:
            schedules.append(parse_schedule_row(row))
        except (KeyError, ValueError, TypeError) as e:
            logging.warning(f"Skipping invalid schedule row {row.get('id', 'unknown')}: {e}")
            continue
    return schedules
