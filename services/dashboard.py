# services/dashboard.py

"""
Admin dashboard snapshot, refreshed on a fixed interval by core.scheduler.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from threading import Lock

from core.logging_config import logger
from core.scheduler import start_scheduler
from models.enums import RequestStatus
from services.report_generator import in_window, report_window


RECENT_LIMIT = 5


def _sort_key(record: dict) -> str:
    return str(record.get("created_at") or "")


def today_matches(requests: List[dict], now: datetime) -> List[dict]:
    """Matched requests whose match (or last update) falls on `now`'s day."""
    window = report_window("daily", now)
    return [
        r for r in requests
        if r.get("status") == RequestStatus.matched.value
        and in_window(r.get("matched_at") or r.get("updated_at") or r.get("created_at"), window)
    ]


def recent_activity(requests: List[dict], users: List[dict], limit: int = RECENT_LIMIT) -> List[dict]:
    activity = [
        {"type": "request", "id": r["id"], "title": r.get("title"), "at": r.get("created_at")}
        for r in sorted(requests, key=_sort_key, reverse=True)[:limit]
    ]
    activity += [
        {"type": "user", "id": u["id"], "title": u.get("name"), "at": u.get("created_at")}
        for u in sorted(users, key=_sort_key, reverse=True)[:limit]
    ]
    return sorted(activity, key=lambda a: str(a["at"] or ""), reverse=True)[:limit]


class DashboardPoller:
    """
    Holds the latest dashboard snapshot.

    Each refresh drops the cached requests and users first so the snapshot
    reflects the backend, then recomputes everything from the data service.
    """

    def __init__(self, data_service, clock=None):
        self.data = data_service
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._snapshot: Optional[Dict[str, Any]] = None
        self._lock = Lock()

    @property
    def snapshot(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._snapshot

    def refresh(self) -> Dict[str, Any]:
        now = self.clock()
        self.data.clear_cache("requests")
        self.data.clear_cache("users")

        requests = self.data.get_requests()
        users = self.data.get_users()

        snapshot = {
            "statistics": self.data.get_statistics(),
            "today_matches": len(today_matches(requests, now)),
            "pending_requests": len([r for r in requests if r["status"] == RequestStatus.pending.value]),
            "frozen_requests": len([r for r in requests if r["status"] == RequestStatus.frozen.value]),
            "recent_activity": recent_activity(requests, users),
            "refreshed_at": now.isoformat(),
        }

        with self._lock:
            self._snapshot = snapshot
        logger.debug(f"Dashboard refreshed at {snapshot['refreshed_at']}")
        return snapshot


def start_polling(data_service, interval_seconds: Optional[int] = None, daily_report: bool = False):
    """Take a first snapshot now, then refresh on the fixed interval."""
    poller = DashboardPoller(data_service)
    poller.refresh()
    scheduler = start_scheduler(poller, interval_seconds, daily_report=daily_report)
    return poller, scheduler
