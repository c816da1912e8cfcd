# tests/test_dashboard.py

"""
Tests for the dashboard poller, the background scheduler and the daily
report job.
"""

import pytest
from datetime import timedelta
from unittest.mock import Mock, patch

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from core import scheduler
from jobs import daily_report_job
from models.category import default_categories
from models.enums import UserType
from services.data_service import DataService
from services.shortlist_store import ShortlistStore
from services.dashboard import DashboardPoller, recent_activity, start_polling, today_matches

from tests.conftest import NOW


REQUESTS = [
    {"id": "r1", "title": "Need groceries", "status": "matched",
     "matched_at": "2024-05-15T09:00:00Z", "created_at": "2024-05-14T09:00:00Z"},
    {"id": "r2", "title": "Ride to clinic", "status": "matched",
     "matched_at": "2024-05-14T09:00:00Z", "created_at": "2024-05-13T09:00:00Z"},
    {"id": "r3", "title": "Fix shelf", "status": "pending", "created_at": "2024-05-15T08:00:00Z"},
    {"id": "r4", "title": "Read mail", "status": "frozen", "created_at": "2024-05-12T08:00:00Z"},
]

USERS = [
    {"id": "u1", "name": "Alice", "user_type": "pin", "status": "active", "created_at": "2024-05-15T09:30:00Z"},
]


@pytest.fixture
def data_service():
    data = Mock()
    data.get_requests.return_value = REQUESTS
    data.get_users.return_value = USERS
    data.get_categories.return_value = default_categories()
    data.get_statistics.return_value = {"total_requests": 4}
    return data


def test_today_matches_uses_match_time():
    assert [r["id"] for r in today_matches(REQUESTS, NOW)] == ["r1"]


def test_recent_activity_mixes_requests_and_users():
    activity = recent_activity(REQUESTS, USERS, limit=3)
    assert [(a["type"], a["id"]) for a in activity] == [("user", "u1"), ("request", "r3"), ("request", "r1")]


def test_refresh_clears_cache_and_builds_snapshot(data_service):
    poller = DashboardPoller(data_service, clock=lambda: NOW)
    assert poller.snapshot is None

    snapshot = poller.refresh()

    data_service.clear_cache.assert_any_call("requests")
    data_service.clear_cache.assert_any_call("users")
    assert snapshot["today_matches"] == 1
    assert snapshot["pending_requests"] == 1
    assert snapshot["frozen_requests"] == 1
    assert snapshot["statistics"] == {"total_requests": 4}
    assert snapshot["refreshed_at"] == NOW.isoformat()
    assert poller.snapshot is snapshot


# -----------------------------------------------------
# Scheduler
# -----------------------------------------------------
def test_build_scheduler_registers_jobs(data_service):
    poller = DashboardPoller(data_service)
    sched = scheduler.build_scheduler(poller, interval_seconds=30)

    dashboard = sched.get_job(scheduler.DASHBOARD_JOB_ID)
    daily = sched.get_job(scheduler.DAILY_REPORT_JOB_ID)

    assert isinstance(dashboard.trigger, IntervalTrigger)
    assert dashboard.trigger.interval == timedelta(seconds=30)
    assert dashboard.max_instances == 1
    assert isinstance(daily.trigger, CronTrigger)


def test_build_scheduler_without_poller():
    sched = scheduler.build_scheduler(daily_report=True)
    assert [job.id for job in sched.get_jobs()] == [scheduler.DAILY_REPORT_JOB_ID]


def test_failed_refresh_is_logged_not_raised():
    poller = Mock()
    poller.refresh.side_effect = RuntimeError("API down")

    scheduler.run_dashboard_refresh(poller)

    poller.refresh.assert_called_once()


# -----------------------------------------------------
# Daily report job
# -----------------------------------------------------
def test_daily_report_covers_yesterday(data_service):
    with patch("jobs.daily_report_job.send_webhook_message", return_value=True) as send:
        report = daily_report_job.run(data_service, now=NOW + timedelta(days=1))

    assert report["report_type"] == "daily"
    assert report["date"] == "2024-05-15"
    assert report["system_info"]["total_requests"] == 4
    assert "Daily Report" in send.call_args.args[0]


def test_daily_report_without_webhook_still_returns(data_service):
    with patch("jobs.daily_report_job.send_webhook_message", return_value=False):
        report = daily_report_job.run(data_service, now=NOW)

    assert report["date"] == "2024-05-14"


def test_start_polling_takes_first_snapshot(data_service):
    with patch("services.dashboard.start_scheduler") as start:
        poller, sched = start_polling(data_service, interval_seconds=30)

    assert poller.snapshot is not None
    start.assert_called_once_with(poller, 30, daily_report=False)
    assert sched is start.return_value


def test_daily_report_reads_every_request_through_admin_endpoint():
    with patch("jobs.daily_report_job.DataService") as service_cls, \
            patch("jobs.daily_report_job.ReportService") as report_cls, \
            patch("jobs.daily_report_job.format_report_text", return_value="report"), \
            patch("jobs.daily_report_job.send_webhook_message", return_value=True):
        report_cls.return_value.generate_comprehensive_report.return_value = {"date": "2024-05-14"}
        daily_report_job.run(now=NOW)

    service_cls.assert_called_once_with(user_type="system_admin")
    report_cls.assert_called_once_with(service_cls.return_value)


def test_admin_data_service_reads_admin_requests():
    api = Mock()
    api.get_all_requests.return_value = []
    service = DataService(client=api, shortlist_store=ShortlistStore(), user_type=UserType.system_admin.value)

    service.get_requests()

    api.get_all_requests.assert_called_once()
    api.get_requests.assert_not_called()
