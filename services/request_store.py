# services/request_store.py

"""
Persistence of HelpRequest entities in the Supabase `requests` table.

Rows are the flat shape produced by HelpRequest.to_record(); nested volunteer
lists and attachments are stored as JSON columns.
"""

from typing import List, Optional

from core.errors import NotFound
from core.supabase_helpers import safe_delete, safe_insert, safe_select, safe_update
from models.request import HelpRequest


TABLE = "requests"


def list_requests(filters: Optional[dict] = None) -> List[HelpRequest]:
    rows = safe_select(TABLE, filters, order_by="created_at")
    return [HelpRequest.from_record(row) for row in rows]


def get_request(request_id: str) -> HelpRequest:
    row = safe_select(TABLE, {"id": request_id}, single=True)
    if not row:
        raise NotFound("Request not found")
    return HelpRequest.from_record(row)


def insert_request(request: HelpRequest) -> HelpRequest:
    row = safe_insert(TABLE, request.to_record(), clean=False)
    return HelpRequest.from_record(row) if row else request


def save_request(request: HelpRequest) -> HelpRequest:
    """Write the full record back. The id never changes."""
    record = request.to_record()
    record.pop("id")
    row = safe_update(TABLE, {"id": request.id}, record, clean=False)
    if row is None:
        raise NotFound("Request not found")
    return HelpRequest.from_record(row)


def delete_request(request_id: str):
    if not safe_delete(TABLE, {"id": request_id}):
        raise NotFound("Request not found")
