"""Supabase client for the calendar backend."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
        return client
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Query shapes used by the repositories (all read-only):
#
# supabase.table('visits') \
#     .select('id, visit_date, ..., paid_material_sales (id, total_amount, ...)') \
#     .gte('visit_date', '2025-03-01T00:00:00+03:00') \
#     .lte('visit_date', '2025-03-31T23:59:59.999999+03:00') \
#     .eq('operator_id', '...') \
#     .execute()
#
# supabase.table('monthly_visit_schedules') \
#     .select('*, operator:operator_id(name)') \
#     .eq('month', 3) \
#     .or_('year.eq.2025,year.is.null') \
#     .execute()
