# services/report_generator.py

"""
Period statistics for the admin reports page and the daily report job.

A report covers one window:

    daily    [day 00:00, next day 00:00)
    weekly   [Monday 00:00, next Monday 00:00)
    monthly  [1st of month 00:00, target)      month-to-date

and compares it with the window of the same length immediately before it.
All windows are half-open and computed in UTC. Request and user records
are the normalized dicts produced by services.normalizers.
"""

from typing import Any, Dict, List, Optional, Tuple, Union
from datetime import date, datetime, time, timedelta, timezone
import math

from core.logging_config import logger
from models.category import Category
from models.enums import ACTIVE_STATUSES, ReportType, RequestStatus, UserType


TOP_PERFORMER_LIMIT = 5

Window = Tuple[datetime, datetime]


# ============================================================
# Time helpers
# ============================================================
def to_datetime(value) -> Optional[datetime]:
    """ISO string / date / datetime → aware UTC datetime (None if unparseable)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Ignoring unparseable timestamp: {value!r}")
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _day_start(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _resolve_target(target: Union[date, datetime, None]) -> Tuple[datetime, bool]:
    """Return (instant, whole_day). A bare date stands for the whole day."""
    if target is None:
        return datetime.now(timezone.utc), False
    if isinstance(target, datetime):
        return to_datetime(target), False
    return to_datetime(target), True


def report_window(report_type: str, target: Union[date, datetime, None] = None) -> Window:
    instant, whole_day = _resolve_target(target)
    day = _day_start(instant)

    if report_type == ReportType.daily:
        return day, day + timedelta(days=1)

    if report_type == ReportType.monthly:
        start = day.replace(day=1)
        end = day + timedelta(days=1) if whole_day else instant
        return start, end

    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=7)


def previous_window(window: Window) -> Window:
    start, end = window
    return start - (end - start), start


def in_window(value, window: Window) -> bool:
    moment = to_datetime(value)
    if moment is None:
        return False
    start, end = window
    return start <= moment < end


# ============================================================
# Arithmetic
# ============================================================
def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    if not whole:
        return 0
    return round_half_up(part / whole * 100)


def growth(current: int, previous: int) -> int:
    """Period-over-period growth in whole percent."""
    if previous == 0:
        return 100 if current > 0 else 0
    return round_half_up((current - previous) / previous * 100)


# ============================================================
# Collection helpers
# ============================================================
def _status(request: dict) -> str:
    return request.get("status") or ""


def _matched(requests: List[dict]) -> List[dict]:
    return [r for r in requests if _status(r) == RequestStatus.matched.value]


def requests_in(requests: List[dict], window: Window) -> List[dict]:
    return [r for r in requests if in_window(r.get("created_at"), window)]


def users_in(users: List[dict], window: Window) -> List[dict]:
    return [u for u in users if in_window(u.get("created_at"), window)]


def completion_rate(requests: List[dict]) -> int:
    """Completed share of the requests that have left `pending`."""
    processed = [r for r in requests if _status(r) != RequestStatus.pending.value]
    completed = [r for r in processed if _status(r) == RequestStatus.completed.value]
    return percentage(len(completed), len(processed))


# ============================================================
# Breakdowns
# ============================================================
def category_breakdown(requests: List[dict], categories: List[Category]) -> Dict[str, dict]:
    breakdown = {}
    for category in categories:
        filed = [r for r in requests if r.get("category") == category.name]
        breakdown[category.id] = {
            "name": category.display_name.en or category.name,
            "count": len(filed),
            "matched": len(_matched(filed)),
        }
    return breakdown


def user_type_breakdown(users: List[dict]) -> Dict[str, int]:
    def count(*types):
        return len([u for u in users if u.get("user_type") in types])

    return {
        "pin": count(UserType.pin.value),
        "csr": count(UserType.csr.value),
        "admin": count(UserType.system_admin.value, UserType.platform_manager.value),
    }


def hourly_activity(requests: List[dict]) -> List[dict]:
    hours = [{"hour": hour, "count": 0} for hour in range(24)]
    for request in requests:
        created = to_datetime(request.get("created_at"))
        if created is not None:
            hours[created.hour]["count"] += 1
    return hours


def daily_activity(requests: List[dict], window: Window) -> List[dict]:
    days = []
    current, end = window
    while current < end:
        bucket = requests_in(requests, (current, current + timedelta(days=1)))
        days.append({
            "date": current.date().isoformat(),
            "count": len(bucket),
            "matched": len(_matched(bucket)),
        })
        current += timedelta(days=1)
    return days


def weekly_activity(requests: List[dict], window: Window) -> List[dict]:
    weeks = []
    current, end = window
    while current < end:
        week_end = min(current + timedelta(days=7), end)
        bucket = requests_in(requests, (current, week_end))
        weeks.append({
            "week_start": current.date().isoformat(),
            "week_end": (week_end - timedelta(microseconds=1)).date().isoformat(),
            "count": len(bucket),
            "matched": len(_matched(bucket)),
        })
        current = week_end
    return weeks


def top_performers(requests: List[dict], limit: int = TOP_PERFORMER_LIMIT) -> List[dict]:
    """Volunteers with the most matched requests, with the categories they served."""
    stats: Dict[str, dict] = {}

    for request in _matched(requests):
        for volunteer in request.get("assigned_volunteers") or []:
            key = volunteer.get("id") or volunteer.get("name")
            if not key:
                continue
            entry = stats.setdefault(key, {
                "volunteer_id": volunteer.get("id"),
                "name": volunteer.get("name") or "Unknown",
                "matches": 0,
                "categories": [],
            })
            entry["matches"] += 1
            category = request.get("category")
            if category and category not in entry["categories"]:
                entry["categories"].append(category)

    # sorted() is stable, so ties keep first-seen order
    ranked = sorted(stats.values(), key=lambda v: v["matches"], reverse=True)
    return ranked[:limit]


# ============================================================
# Reports
# ============================================================
def resolve_report_type(report_type) -> ReportType:
    try:
        return ReportType(report_type)
    except ValueError:
        logger.warning(f"Unknown report type {report_type!r}, generating weekly report")
        return ReportType.weekly


def generate_report(
    report_type,
    target: Union[date, datetime, None],
    requests: List[dict],
    users: List[dict],
    categories: List[Category],
) -> Dict[str, Any]:
    report_type = resolve_report_type(report_type)
    window = report_window(report_type, target)
    before = previous_window(window)

    current_requests = requests_in(requests, window)
    previous_requests = requests_in(requests, before)
    current_users = users_in(users, window)
    previous_users = users_in(users, before)

    total_matches = len(_matched(current_requests))
    start, end = window
    last_day = (end - timedelta(microseconds=1)).date()

    details: Dict[str, Any] = {
        "category_breakdown": category_breakdown(current_requests, categories),
        "user_type_breakdown": user_type_breakdown(current_users),
    }
    if report_type == ReportType.daily:
        details["hourly_activity"] = hourly_activity(current_requests)
    elif report_type == ReportType.weekly:
        details["daily_activity"] = daily_activity(current_requests, window)
    else:
        details["weekly_activity"] = weekly_activity(current_requests, window)
        details["top_performers"] = top_performers(current_requests)

    return {
        "report_type": report_type.value,
        "date": start.date().isoformat(),
        "date_range": f"{start.date().isoformat()} - {last_day.isoformat()}",
        "window": {"start": start.isoformat(), "end": end.isoformat()},
        "total_matches": total_matches,
        "new_users": len(current_users),
        "active_requests": len([r for r in requests if _status(r) in ACTIVE_STATUSES]),
        "completion_rate": f"{completion_rate(current_requests)}%",
        "trends": {
            "match_growth": growth(total_matches, len(_matched(previous_requests))),
            "user_growth": growth(len(current_users), len(previous_users)),
            "completion_rate_change": completion_rate(current_requests) - completion_rate(previous_requests),
        },
        "details": details,
    }


class ReportService:
    """Builds reports from whatever the data access layer currently returns."""

    def __init__(self, data_service):
        self.data = data_service

    def generate_report(self, report_type, target: Union[date, datetime, None] = None) -> Dict[str, Any]:
        return generate_report(
            report_type,
            target,
            self.data.get_requests(),
            self.data.get_users(),
            self.data.get_categories(),
        )

    def generate_comprehensive_report(
        self,
        report_type=ReportType.monthly,
        target: Union[date, datetime, None] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        report = self.generate_report(report_type, target)
        report["generated_at"] = (now or datetime.now(timezone.utc)).isoformat()
        report["system_info"] = {
            "total_users": len(self.data.get_users()),
            "total_requests": len(self.data.get_requests()),
            "system_health": "good",
        }
        return report
