# services/report_export.py

from typing import Any, Dict, Optional
from datetime import date
import csv
import io
import json


REPORT_TITLES = {
    "daily": "Daily Report",
    "weekly": "Weekly Report",
    "monthly": "Monthly Report",
}

RULE = "=" * 60
DIVIDER = "-" * 60


def _signed(value: int) -> str:
    return f"+{value}%" if value > 0 else f"{value}%"


def _section(lines, title: str):
    lines.extend([DIVIDER, title, DIVIDER])


def format_report_text(report: Dict[str, Any]) -> str:
    """Human-readable plain-text rendering of a report."""
    lines = [
        RULE,
        f"Volunteer Match - {REPORT_TITLES.get(report.get('report_type'), 'Report')}",
        RULE,
        "",
        f"Period: {report.get('date_range') or report.get('date')}",
    ]
    if report.get("generated_at"):
        lines.append(f"Generated: {report['generated_at']}")
    lines.append("")

    _section(lines, "Key metrics")
    lines += [
        f"Total matches: {report['total_matches']}",
        f"New users: {report['new_users']}",
        f"Active requests: {report['active_requests']}",
        f"Completion rate: {report['completion_rate']}",
        "",
    ]

    trends = report.get("trends") or {}
    _section(lines, "Growth")
    lines += [
        f"Match growth: {_signed(trends.get('match_growth', 0))}",
        f"User growth: {_signed(trends.get('user_growth', 0))}",
        "",
    ]

    details = report.get("details") or {}

    if details.get("category_breakdown"):
        _section(lines, "Categories")
        for data in details["category_breakdown"].values():
            lines.append(f"{data['name']}: {data['count']} requests (matched: {data['matched']})")
        lines.append("")

    if details.get("user_type_breakdown"):
        breakdown = details["user_type_breakdown"]
        _section(lines, "New users by type")
        lines += [
            f"PIN (requesters): {breakdown.get('pin', 0)}",
            f"CSR volunteers: {breakdown.get('csr', 0)}",
            f"Admins: {breakdown.get('admin', 0)}",
            "",
        ]

    if details.get("top_performers"):
        _section(lines, "Top volunteers")
        for index, volunteer in enumerate(details["top_performers"], start=1):
            lines += [
                f"{index}. {volunteer['name']}",
                f"   Matches: {volunteer['matches']}",
                f"   Categories: {', '.join(volunteer['categories'])}",
            ]
        lines.append("")

    if report.get("system_info"):
        info = report["system_info"]
        _section(lines, "System")
        lines += [
            f"Total users: {info.get('total_users', 0)}",
            f"Total requests: {info.get('total_requests', 0)}",
            f"Health: {info.get('system_health', 'unknown')}",
            "",
        ]

    lines += [RULE, "End of report", RULE]
    return "\n".join(lines) + "\n"


def report_to_csv(report: Dict[str, Any]) -> str:
    """Headline metrics as CSV: metric, value, growth."""
    trends = report.get("trends") or {}
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(["metric", "value", "growth"])
    writer.writerow(["total_matches", report["total_matches"], f"{trends.get('match_growth', 0)}%"])
    writer.writerow(["new_users", report["new_users"], f"{trends.get('user_growth', 0)}%"])
    writer.writerow(["active_requests", report["active_requests"], ""])
    writer.writerow(["completion_rate", report["completion_rate"], ""])
    return output.getvalue()


def report_to_json(report: Dict[str, Any]) -> str:
    return json.dumps(report, indent=2, ensure_ascii=False, default=str)


def report_filename(report: Dict[str, Any], extension: str, prefix: str = "system_report", on: Optional[date] = None) -> str:
    stamp = on.isoformat() if on else report.get("date")
    return f"{prefix}_{report.get('report_type', 'report')}_{stamp}.{extension.lstrip('.')}"
