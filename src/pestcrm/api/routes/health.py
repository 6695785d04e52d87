"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])

PROBED_TABLES = ("visits", "customer_pricing", "branch_pricing", "monthly_visit_schedules")


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check the Supabase connection and which calendar tables answer."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set PESTCRM_SUPABASE_URL and PESTCRM_SUPABASE_KEY environment variables.",
        }

    tables: dict[str, bool] = {}
    errors: dict[str, str] = {}
    for table in PROBED_TABLES:
        try:
            supabase.table(table).select("id").limit(1).execute()
            tables[table] = True
        except Exception as exc:
            tables[table] = False
            errors[table] = str(exc)

    if not any(tables.values()):
        return {
            "configured": True,
            "connected": False,
            "tables": tables,
            "errors": errors,
            "message": "Database connection error: no calendar table responded.",
        }

    missing = [name for name, ok in tables.items() if not ok]
    return {
        "configured": True,
        "connected": True,
        "tables": tables,
        "errors": errors,
        "message": "Database connected." if not missing else f"Database connected but {', '.join(missing)} did not respond.",
    }
