# services/filters.py

from typing import List, Optional
from pydantic import BaseModel


ALL = "all"


class RequestFilters(BaseModel):
    """Search box plus the three dropdowns of the request list."""
    search_text: str = ""
    category: Optional[str] = ALL
    urgency: Optional[str] = ALL
    status: Optional[str] = ALL


def _field(request, name: str):
    if isinstance(request, dict):
        return request.get(name)
    return getattr(request, name, None)


def _matches_exact(request, name: str, wanted: Optional[str]) -> bool:
    if not wanted or wanted == ALL:
        return True
    return str(_field(request, name) or "") == wanted


def matches_text(request, search_text: str) -> bool:
    """Case-insensitive substring match on title, description OR location."""
    if not search_text:
        return True
    needle = search_text.lower()
    return any(
        needle in str(_field(request, name) or "").lower()
        for name in ("title", "description", "location")
    )


def matches_filters(request, filters: RequestFilters) -> bool:
    return (
        matches_text(request, filters.search_text)
        and _matches_exact(request, "category", filters.category)
        and _matches_exact(request, "urgency", filters.urgency)
        and _matches_exact(request, "status", filters.status)
    )


def filter_requests(requests: List, filters: Optional[RequestFilters] = None) -> List:
    """
    Return the requests that pass every filter, preserving input order.
    Works on normalized dicts and on model objects alike.
    """
    filters = filters or RequestFilters()
    return [request for request in requests if matches_filters(request, filters)]
