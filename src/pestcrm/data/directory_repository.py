"""Customer and branch directory used for coverage reporting."""

from __future__ import annotations

from ..db.supabase import get_supabase_client
from ..models.domain import BranchRef, CustomerRef
from .errors import DataFetchError
from .parsing import embedded_field, optional_id


def _select(table: str, columns: str, order: str) -> list[dict]:
    supabase = get_supabase_client()
    if not supabase:
        raise DataFetchError(table, "Supabase not configured")
    try:
        response = supabase.table(table).select(columns).order(order).execute()
    except Exception as exc:
        raise DataFetchError(table, str(exc)) from exc
    return response.data or []


def list_customers() -> list[CustomerRef]:
    rows = _select("customers", "id, kisa_isim", "kisa_isim")
    return [
        CustomerRef(id=str(row["id"]), name=row.get("kisa_isim") or str(row["id"]))
        for row in rows
        if row.get("id")
    ]


def list_branches() -> list[BranchRef]:
    rows = _select("branches", "id, sube_adi, customer_id, customer:customer_id(kisa_isim)", "sube_adi")
    return [
        BranchRef(
            id=str(row["id"]),
            name=row.get("sube_adi") or str(row["id"]),
            customer_id=optional_id(row.get("customer_id")),
            customer_name=embedded_field(row, "customer", "kisa_isim"),
        )
        for row in rows
        if row.get("id")
    ]
