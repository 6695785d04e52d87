"""Contract pricing catalog for customers and branches."""

from __future__ import annotations

import logging

from ..db.supabase import get_supabase_client
from ..models.domain import BranchPricing, CustomerPricing
from .errors import DataFetchError
from .parsing import coerce_decimal, optional_id

PRICING_COLUMNS = "id, {owner}, monthly_price, per_visit_price"


def _fetch_pricing_rows(table: str, owner_column: str) -> list[dict]:
    supabase = get_supabase_client()
    if not supabase:
        raise DataFetchError(table, "Supabase not configured")
    try:
        response = supabase.table(table).select(PRICING_COLUMNS.format(owner=owner_column)).execute()
    except Exception as exc:
        raise DataFetchError(table, str(exc)) from exc
    return response.data or []


def parse_customer_pricing(rows: list[dict]) -> dict[str, CustomerPricing]:
    """Key pricing rows by customer id; a later row for the same customer replaces an earlier one."""
    catalog: dict[str, CustomerPricing] = {}
    for row in rows:
        try:
            customer_id = optional_id(row.get("customer_id"))
            if customer_id is None:
                raise ValueError("missing customer_id")
            catalog[customer_id] = CustomerPricing(
                id=str(row.get("id") or customer_id),
                customer_id=customer_id,
                monthly_price=coerce_decimal(row.get("monthly_price")),
                per_visit_price=coerce_decimal(row.get("per_visit_price")),
            )
        except ValueError as e:
            logging.warning(f"Skipping invalid customer pricing row {row.get('id', 'unknown')}: {e}")
    return catalog


def parse_branch_pricing(rows: list[dict]) -> dict[str, BranchPricing]:
    catalog: dict[str, BranchPricing] = {}
    for row in rows:
        try:
            branch_id = optional_id(row.get("branch_id"))
            if branch_id is None:
                raise ValueError("missing branch_id")
            catalog[branch_id] = BranchPricing(
                id=str(row.get("id") or branch_id),
                branch_id=branch_id,
                monthly_price=coerce_decimal(row.get("monthly_price")),
                per_visit_price=coerce_decimal(row.get("per_visit_price")),
            )
        except ValueError as e:
            logging.warning(f"Skipping invalid branch pricing row {row.get('id', 'unknown')}: {e}")
    return catalog


def get_customer_pricing() -> dict[str, CustomerPricing]:
    return parse_customer_pricing(_fetch_pricing_rows("customer_pricing", "customer_id"))


def get_branch_pricing() -> dict[str, BranchPricing]:
    return parse_branch_pricing(_fetch_pricing_rows("branch_pricing", "branch_id"))
