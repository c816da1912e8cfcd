# services/data_service.py

"""
Data access layer used by dashboards, reports and jobs.

Reads go through the DataCache and degrade to an empty (or built-in
default) value when the API is unreachable. Writes clear the affected
cache slot and re-raise whatever went wrong, so the caller can show the
server's message.
"""

from typing import List, Optional

from core.cache import CachePolicy, DataCache
from core.config import settings
from core.errors import ApiError
from core.logging_config import logger
from models.category import Category, default_categories
from models.enums import ACTIVE_STATUSES, ADMIN_USER_TYPES, RequestStatus, UserStatus
from models.shortlist import ShortlistEntry
from services.api_client import ApiClient
from services.filters import RequestFilters, filter_requests
from services.normalizers import (
    normalize_categories,
    normalize_request,
    normalize_requests,
    normalize_users,
)
from services.shortlist_store import JsonKeyValueStore, ShortlistStore


class DataService:
    def __init__(
        self,
        client: Optional[ApiClient] = None,
        cache: Optional[DataCache] = None,
        shortlist_store: Optional[ShortlistStore] = None,
        user_type: Optional[str] = None,
    ):
        self.client = client or ApiClient()
        self.cache = cache or DataCache(
            CachePolicy(duration_ms=settings.CACHE_DURATION_SECONDS * 1000)
        )
        self.shortlists = shortlist_store or ShortlistStore(
            JsonKeyValueStore(settings.SHORTLIST_STORE_PATH)
        )
        self.user_type = user_type

    @property
    def is_admin(self) -> bool:
        return str(self.user_type or "") in ADMIN_USER_TYPES

    def clear_cache(self, key: Optional[str] = None):
        self.cache.clear(key)

    # ============================================================
    # Requests (reads)
    # ============================================================
    def get_requests(self) -> List[dict]:
        cached = self.cache.get("requests")
        if cached is not None:
            return cached

        try:
            raw = self.client.get_all_requests() if self.is_admin else self.client.get_requests()
            requests = normalize_requests(raw)
        except (ApiError, ValueError, TypeError) as e:
            logger.error(f"Failed to load requests: {e}")
            return []

        self.cache.set("requests", requests)
        return requests

    def get_user_requests(self, user_id: str) -> List[dict]:
        """A requester's own requests. Never served from the cache."""
        try:
            raw = self.client.get_requests({"requester_id": user_id})
            requests = normalize_requests(raw)
        except (ApiError, ValueError, TypeError) as e:
            logger.error(f"Failed to load requests for user {user_id}: {e}")
            return []

        return [r for r in requests if r["requester_id"] == user_id]

    def get_requests_by_category(self, category: str) -> List[dict]:
        try:
            found = normalize_requests(self.client.search_requests({"category": category}))
        except (ApiError, ValueError, TypeError) as e:
            logger.error(f"Category search failed for {category}: {e}")
            found = []

        if found:
            return found
        return filter_requests(self.get_requests(), RequestFilters(category=category))

    # ============================================================
    # Requests (writes)
    # ============================================================
    def _mutate(self, action: str, call, *args, **kwargs):
        try:
            result = call(*args, **kwargs)
        except ApiError as e:
            logger.error(f"Failed to {action}: {e}")
            raise
        self.cache.clear("requests")
        return result

    def create_request(self, data: dict) -> dict:
        if data.get("attachments"):
            created = self._mutate("create request", self.client.create_request_with_files, data)
        else:
            created = self._mutate("create request", self.client.create_request, data)
        return normalize_request(created)

    def update_request(self, request_id: str, data: dict) -> dict:
        updated = self._mutate("update request", self.client.update_request, request_id, data)
        return normalize_request(updated)

    def delete_request(self, request_id: str):
        self._mutate("delete request", self.client.delete_request, request_id)

    def match_request(self, request_id: str, volunteer_id: str) -> dict:
        matched = self._mutate(
            "assign volunteer", self.client.assign_volunteer, request_id, volunteer_id
        )
        return normalize_request(matched)

    def complete_request(
        self,
        request_id: str,
        rating: int,
        feedback: Optional[str] = None,
        volunteer_id: Optional[str] = None,
    ) -> dict:
        body = {"rating": rating, "feedback": feedback, "volunteer_id": volunteer_id}
        completed = self._mutate(
            "complete request",
            self.client.complete_request,
            request_id,
            {k: v for k, v in body.items() if v is not None},
        )
        return normalize_request(completed)

    def apply_for_request(self, request_id: str, message: str = "") -> dict:
        return normalize_request(
            self._mutate("apply for request", self.client.apply, request_id, message)
        )

    def cancel_application(self, request_id: str) -> dict:
        return normalize_request(
            self._mutate("cancel application", self.client.cancel_application, request_id)
        )

    def reject_request(self, request_id: str, reason: Optional[str] = None) -> dict:
        return normalize_request(
            self._mutate("reject request", self.client.reject_request, request_id, reason)
        )

    def cancel_request(self, request_id: str, reason: str) -> dict:
        return normalize_request(
            self._mutate("cancel request", self.client.cancel_request, request_id, reason)
        )

    def toggle_freeze(self, request_id: str) -> dict:
        return normalize_request(
            self._mutate("toggle freeze", self.client.toggle_freeze, request_id)
        )

    # ============================================================
    # Categories & users
    # ============================================================
    def get_categories(self) -> List[Category]:
        cached = self.cache.get("categories")
        if cached is not None:
            return cached

        try:
            categories = normalize_categories(self.client.get_categories())
        except (ApiError, ValueError, TypeError) as e:
            logger.warning(f"Failed to load categories, using built-in defaults: {e}")
            return default_categories()

        self.cache.set("categories", categories)
        return categories

    def get_users(self) -> List[dict]:
        cached = self.cache.get("users")
        if cached is not None:
            return cached

        try:
            users = normalize_users(self.client.get_all_users())
        except (ApiError, ValueError, TypeError) as e:
            logger.error(f"Failed to load users: {e}")
            return []

        self.cache.set("users", users)
        return users

    def batch_update_users(self, action: str, user_ids: List[str]):
        try:
            result = self.client.batch_update_users(action, user_ids)
        except ApiError as e:
            logger.error(f"Batch user action '{action}' failed: {e}")
            raise
        self.cache.clear("users")
        return result

    # ============================================================
    # Shortlists
    # ============================================================
    def get_shortlists(self) -> List[ShortlistEntry]:
        cached = self.cache.get("shortlists")
        if cached is not None:
            return cached

        try:
            entries = self.shortlists.get_all()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load shortlists: {e}")
            return []

        self.cache.set("shortlists", entries)
        return entries

    def get_user_shortlist(self, user_id: str) -> List[ShortlistEntry]:
        try:
            return self.shortlists.get_user_shortlist(user_id)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load shortlist for user {user_id}: {e}")
            return []

    def toggle_shortlist(self, user_id: str, request: dict) -> bool:
        """
        Bump the request's shortlist counter on the server, then save or
        unsave locally. A failed server call leaves the local shortlist as is.
        """
        saved = not self.shortlists.is_shortlisted(user_id, request["id"])
        self._mutate("update shortlist count", self.client.mark_shortlisted, request["id"], saved)

        self.shortlists.toggle(user_id, request)
        self.cache.clear("shortlists")
        return saved

    # ============================================================
    # Statistics
    # ============================================================
    def get_statistics(self, user_id: Optional[str] = None) -> dict:
        """
        Per-requester counters when user_id is given, otherwise system-wide
        counters for the admin dashboard.
        """
        users = [] if user_id else self.get_users()
        return build_statistics(self.get_requests(), users, self.get_shortlists(), user_id)


def build_statistics(
    requests: List[dict],
    users: List[dict],
    shortlists: List[ShortlistEntry],
    user_id: Optional[str] = None,
) -> dict:
    def count(items, status):
        return len([r for r in items if r["status"] == status])

    if user_id:
        own = [r for r in requests if r["requester_id"] == user_id]
        return {
            "total_requests": len(own),
            "pending": count(own, RequestStatus.pending.value),
            "matched": count(own, RequestStatus.matched.value),
            "completed": count(own, RequestStatus.completed.value),
            "total_views": sum(r.get("view_count") or 0 for r in own),
            "total_shortlists": len([s for s in shortlists if s.user_id == user_id]),
        }

    return {
        "total_users": len(users),
        "active_users": len([u for u in users if u["status"] == UserStatus.active.value]),
        "total_requests": len(requests),
        "active_requests": len([r for r in requests if r["status"] in ACTIVE_STATUSES]),
        "matched_requests": count(requests, RequestStatus.matched.value),
        "completed_requests": count(requests, RequestStatus.completed.value),
        "total_shortlists": len(shortlists),
    }
