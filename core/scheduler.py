# core/scheduler.py
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from core.logging_config import logger


DASHBOARD_JOB_ID = "dashboard_refresh_job"
DAILY_REPORT_JOB_ID = "daily_report_job"


def run_dashboard_refresh(poller):
    """One dashboard refresh. A failed tick is logged and the next one runs on schedule."""
    try:
        poller.refresh()
    except Exception as e:
        logger.error(f"[SCHEDULER] Dashboard refresh failed: {e}")


def run_daily_report():
    from jobs.daily_report_job import run

    try:
        run()
    except Exception as e:
        logger.error(f"[SCHEDULER] Daily report failed: {e}")


def build_scheduler(poller=None, interval_seconds: Optional[int] = None, daily_report: bool = True) -> BackgroundScheduler:
    """
    Create the background scheduler with its jobs registered (not started).

    The dashboard refresh runs on a fixed interval: no backoff, no jitter,
    and never more than one refresh in flight.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    if poller is not None:
        scheduler.add_job(
            run_dashboard_refresh,
            trigger=IntervalTrigger(seconds=interval_seconds or settings.DASHBOARD_REFRESH_SECONDS),
            args=[poller],
            id=DASHBOARD_JOB_ID,
            max_instances=1,
            replace_existing=True,
        )

    if daily_report:
        scheduler.add_job(
            run_daily_report,
            trigger=CronTrigger(hour=0, minute=5),  # yesterday's report, shortly after midnight UTC
            id=DAILY_REPORT_JOB_ID,
            max_instances=1,
            replace_existing=True,
        )

    return scheduler


def start_scheduler(poller=None, interval_seconds: Optional[int] = None, daily_report: bool = True) -> BackgroundScheduler:
    scheduler = build_scheduler(poller, interval_seconds, daily_report)
    scheduler.start()
    logger.info(f"⏰ Scheduler started with jobs: {[job.id for job in scheduler.get_jobs()]}")
    return scheduler
