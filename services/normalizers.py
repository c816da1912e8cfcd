# services/normalizers.py

"""
Adapters from raw backend records to the flat shape the rest of the client
uses.

Backends have returned the same entity in several shapes over time:
references as bare ids or as populated objects ({"_id"/"id", "name", ...}),
counters flat or under "stats", the address as a string or as
{"address": ...}, and keys in camelCase or snake_case. Everything that
needs to cope with that goes through the helpers below, so callers only
ever see the normalized dicts.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import date, datetime

from models.category import Category, LocalizedText
from models.enums import RequestStatus


# A reference to another entity: an id/name string or a populated object
Ref = Union[str, Dict[str, Any], None]

HEX_COLOR_NAMES = {
    "#ff4757": "danger",
    "#ffa726": "warning",
    "#42a5f5": "primary",
    "#66bb6a": "success",
    "#ab47bc": "info",
    "#26c6da": "secondary",
}


# ============================================================
# Key access
# ============================================================
def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def pick(record: Optional[dict], key: str, default=None):
    """Read `key` in snake_case or camelCase form."""
    if not isinstance(record, dict):
        return default
    if record.get(key) is not None:
        return record[key]
    camel = _camel(key)
    if record.get(camel) is not None:
        return record[camel]
    return default


def record_id(record: Optional[dict]) -> Optional[str]:
    if not isinstance(record, dict):
        return None
    value = record.get("id") or record.get("_id")
    return str(value) if value is not None else None


# ============================================================
# References
# ============================================================
def coerce_ref_id(ref: Ref) -> Optional[str]:
    """Category or user reference → its identifier string."""
    if ref is None:
        return None
    if isinstance(ref, dict):
        return record_id(ref) or (str(ref["name"]) if ref.get("name") else None)
    return str(ref)


def coerce_category(ref: Ref) -> Optional[str]:
    """Category reference → category name (the key requests are filed under)."""
    if isinstance(ref, dict):
        return ref.get("name") or record_id(ref)
    return coerce_ref_id(ref)


def coerce_ref_field(ref: Ref, field: str) -> Optional[Any]:
    if isinstance(ref, dict):
        return pick(ref, field)
    return None


def coerce_location(value) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("address")
    return value


def coerce_date(value) -> Optional[str]:
    """Any date/datetime/ISO string → 'YYYY-MM-DD'."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def _counter(record: dict, key: str) -> int:
    return int(pick(record, key) or pick(record.get("stats") or {}, key) or 0)


# ============================================================
# Requests
# ============================================================
def normalize_volunteer_entry(entry: dict) -> dict:
    # bare volunteer id instead of an entry object
    if not isinstance(entry, dict):
        entry = {"volunteer": entry}
    volunteer = entry.get("volunteer")
    volunteer_id = pick(entry, "volunteer_id") or coerce_ref_id(volunteer)
    return {
        "id": volunteer_id,
        "name": pick(entry, "name") or coerce_ref_field(volunteer, "name") or "Unknown",
        "email": pick(entry, "email") or coerce_ref_field(volunteer, "email"),
        "phone": pick(entry, "phone") or coerce_ref_field(volunteer, "phone"),
        "message": pick(entry, "message"),
        "applied_at": pick(entry, "applied_at"),
        "assigned_at": pick(entry, "assigned_at"),
        "completed_at": pick(entry, "completed_at"),
        "rejected_at": pick(entry, "rejected_at"),
        "reason": pick(entry, "reason"),
        "rating": pick(entry, "rating"),
        "feedback": pick(entry, "feedback"),
    }


def normalize_request(raw: dict) -> dict:
    """Flatten one backend request record."""
    if not isinstance(raw, dict):
        raise ValueError(f"Request record is not an object: {raw!r}")

    # requester may arrive populated under "requester" or "requesterId",
    # or as a bare id under either key
    candidates = [raw.get("requester"), pick(raw, "requester_id")]
    requester = next((c for c in candidates if isinstance(c, dict)), None)
    requester_id = coerce_ref_id(requester) or next(
        (coerce_ref_id(c) for c in candidates if c is not None and not isinstance(c, dict)),
        None,
    )

    assigned = [normalize_volunteer_entry(v) for v in pick(raw, "assigned_volunteers", [])]
    interested = [normalize_volunteer_entry(v) for v in pick(raw, "interested_volunteers", [])]
    rejected = [normalize_volunteer_entry(v) for v in pick(raw, "rejected_volunteers", [])]

    def requester_field(field: str):
        return coerce_ref_field(requester, field) or pick(raw, f"requester_{field}")

    status = pick(raw, "status") or RequestStatus.pending.value

    return {
        "id": record_id(raw),
        "title": raw.get("title") or "",
        "description": raw.get("description") or "",
        "category": coerce_category(raw.get("category")),
        "urgency": raw.get("urgency"),
        "location": coerce_location(raw.get("location")) or "",
        "expected_date": coerce_date(pick(raw, "expected_date")),
        "expected_time": pick(raw, "expected_time"),
        "volunteers_needed": pick(raw, "volunteers_needed", 1),
        "contact_method": pick(raw, "contact_method"),
        "additional_notes": pick(raw, "additional_notes"),
        "attachments": pick(raw, "attachments", []),
        "status": status,
        "original_status": pick(raw, "original_status") if status == RequestStatus.frozen.value else None,
        "frozen_at": pick(raw, "frozen_at") if status == RequestStatus.frozen.value else None,
        "requester_id": requester_id,
        "requester_name": requester_field("name") or "Unknown",
        "requester_email": requester_field("email"),
        "requester_phone": requester_field("phone"),
        "requester_address": requester_field("address"),
        "assigned_volunteers": assigned,
        "interested_volunteers": interested,
        "rejected_volunteers": rejected,
        # First assigned volunteer, for list views and reports
        "volunteer": assigned[0]["name"] if assigned else None,
        "volunteer_id": assigned[0]["id"] if assigned else None,
        "view_count": _counter(raw, "view_count"),
        "shortlist_count": _counter(raw, "shortlist_count"),
        "created_at": pick(raw, "created_at"),
        "updated_at": pick(raw, "updated_at"),
        "matched_at": pick(raw, "matched_at"),
    }


def normalize_requests(raw: Any) -> List[dict]:
    """Accept a bare list or a {"requests": [...]} page."""
    if isinstance(raw, dict):
        raw = raw.get("requests") or []
    if not isinstance(raw, list):
        raise ValueError("Request payload is not a list")
    return [normalize_request(r) for r in raw]


# ============================================================
# Categories & users
# ============================================================
def color_name(hex_color: Optional[str]) -> str:
    return HEX_COLOR_NAMES.get((hex_color or "").lower(), "primary")


def normalize_category(raw: dict) -> Category:
    if not isinstance(raw, dict):
        raise ValueError(f"Category record is not an object: {raw!r}")
    display_name = pick(raw, "display_name") or {}
    description = raw.get("description") or {}
    if isinstance(description, str):
        description = {"en": description}

    color = raw.get("color") or "#42a5f5"
    return Category(
        id=raw.get("name") or record_id(raw),
        name=raw.get("name") or record_id(raw),
        display_name=LocalizedText(**display_name) if isinstance(display_name, dict) else LocalizedText(en=str(display_name)),
        description=LocalizedText(**description),
        icon=raw.get("icon") or "📁",
        color=color if not color.startswith("#") else color_name(color),
        status=raw.get("status") or "active",
        sort_order=pick(raw, "sort_order", 0),
    )


def normalize_categories(raw: Any) -> List[Category]:
    if isinstance(raw, dict):
        raw = raw.get("categories")
    if not isinstance(raw, list):
        raise ValueError("Category payload is not a list")
    return [normalize_category(c) for c in raw]


def normalize_user(raw: dict) -> dict:
    if not isinstance(raw, dict):
        raise ValueError(f"User record is not an object: {raw!r}")
    return {
        "id": record_id(raw),
        "name": raw.get("name"),
        "email": raw.get("email"),
        "user_type": pick(raw, "user_type"),
        "phone": raw.get("phone"),
        "address": raw.get("address"),
        "organization": raw.get("organization"),
        "skills": raw.get("skills") or [],
        "status": raw.get("status") or "active",
        "created_at": pick(raw, "created_at") or pick(raw, "registered_at"),
        "last_login": pick(raw, "last_login"),
    }


def normalize_users(raw: Any) -> List[dict]:
    if isinstance(raw, dict):
        raw = raw.get("users") or []
    if not isinstance(raw, list):
        raise ValueError("User payload is not a list")
    return [normalize_user(u) for u in raw]
