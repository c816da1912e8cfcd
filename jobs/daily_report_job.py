# jobs/daily_report_job.py

from datetime import datetime, timedelta, timezone

from core.logging_config import logger
from core.notifications import send_webhook_message
from models.enums import UserType
from services.data_service import DataService
from services.report_export import format_report_text
from services.report_generator import ReportService


def run(data_service: DataService = None, now: datetime = None) -> dict:
    """
    CLI entry point for the daily report.
    Builds yesterday's report from the API and posts it to the report webhook.
    """
    now = now or datetime.now(timezone.utc)
    yesterday = (now - timedelta(days=1)).date()

    # Reports cover every request, so read through the admin endpoints
    data_service = data_service or DataService(user_type=UserType.system_admin.value)
    service = ReportService(data_service)
    report = service.generate_comprehensive_report("daily", yesterday, now=now)

    text = format_report_text(report)
    if not send_webhook_message(f"```\n{text}```"):
        logger.info(f"Daily report for {report['date']}:\n{text}")

    return report


if __name__ == "__main__":
    run()
