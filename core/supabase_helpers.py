# core/supabase_helpers.py

from fastapi import HTTPException

from core.utils import sanitize
from core.errors import supabase_error
from core.supabase_client import get_supabase_client


# =================================================================
#  SAFE SELECT / INSERT / UPDATE / DELETE
# =================================================================
# Thin wrappers around the service-role client for the requests,
# categories and users tables. Failures become HTTP 500 with the
# Supabase message attached.
#
# Pass clean=False for rows that are already validated models
# (e.g. HelpRequest.to_record()), where an empty string is a real value.
# =================================================================

def _client():
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return client


def safe_select(table: str, filters: dict = None, *, single=False, order_by: str = None, desc: bool = True):
    """Safe table SELECT. `single` returns one row or None."""
    client = _client()

    try:
        query = client.table(table).select("*")
        if filters:
            for key, val in filters.items():
                query = query.eq(key, val)
        if order_by:
            query = query.order(order_by, desc=desc)

        if single:
            result = query.limit(1).execute()
            return result.data[0] if result.data else None

        result = query.execute()
        return result.data or []

    except Exception as e:
        supabase_error(e, f"Failed to fetch from {table}")


def safe_insert(table: str, data: dict, *, clean: bool = True):
    """Safe INSERT. Returns the stored row."""
    client = _client()
    payload = sanitize(data) if clean else data

    try:
        result = client.table(table).insert(payload).execute()
        return result.data[0] if result.data else None

    except Exception as e:
        supabase_error(e, f"Failed to insert into {table}")


def safe_update(table: str, filters: dict, data: dict, *, clean: bool = True):
    """Safe UPDATE. Returns the first updated row, or None if nothing matched."""
    client = _client()
    payload = sanitize(data) if clean else data

    try:
        query = client.table(table).update(payload)
        for key, val in filters.items():
            query = query.eq(key, val)

        result = query.execute()
        return result.data[0] if result.data else None

    except Exception as e:
        supabase_error(e, f"Failed to update {table}")


def safe_delete(table: str, filters: dict) -> int:
    """Safe DELETE. Returns the number of rows removed."""
    client = _client()

    try:
        query = client.table(table).delete()
        for key, val in filters.items():
            query = query.eq(key, val)

        result = query.execute()
        return len(result.data or [])

    except Exception as e:
        supabase_error(e, f"Failed to delete from {table}")
