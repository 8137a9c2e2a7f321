from typing import List, Optional

from runwatch.core.audit_log import build_audit_log_search_url
from runwatch.core.context import padded_range
from runwatch.core.detections import SuspiciousActivity

from .csv_report import to_datetime

TITLE = "# Workflow Run Activity Scan Results"


def format_date(ms: int) -> str:
    return to_datetime(ms).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3] + " UTC"


def _cell(value) -> str:
    return "" if value is None else str(value)


def generate_summary(
    activities: List[SuspiciousActivity],
    days_back: Optional[int],
    time_window: int,
    org: Optional[str] = None,
    context_minutes: int = 0,
) -> str:
    """
    Markdown scan report, suitable for a workflow step summary.

    Context links cover the range searched with `context_minutes` of
    padding around each sequence.
    """
    lines: List[str] = []

    lines.append(TITLE)
    lines.append("")
    lines.append("## Scan Parameters")
    if org:
        lines.append(f"- **Organization:** {org}")
    if days_back is not None:
        lines.append(f"- **Days scanned:** {days_back}")
    lines.append(f"- **Time window:** {time_window} seconds")
    lines.append("")

    lines.append("## Statistics")

    if not activities:
        lines.append("")
        lines.append("✅ **No suspicious activity found.**")
        return "\n".join(lines)

    unique_actors = {a.actor for a in activities}
    unique_repos = {a.repository for a in activities if a.repository}

    lines.append(f"- **Suspicious activity sequences:** {len(activities)}")
    lines.append(f"- **Unique actors:** {len(unique_actors)}")
    lines.append(f"- **Unique repositories affected:** {len(unique_repos)}")
    lines.append("")

    lines.append("## Suspicious Activity Details")
    lines.append("")
    lines.append("| Actor | Repository | Workflow Run ID | Created At | Completed At | Deleted At | Duration (s) |")
    lines.append("|-------|------------|-----------------|------------|--------------|------------|--------------|")

    for a in activities:
        lines.append(
            f"| {a.actor} | {_cell(a.repository)} | {_cell(a.correlation_id)} "
            f"| {format_date(a.created_at)} | {format_date(a.completed_at)} "
            f"| {format_date(a.deleted_at)} | {a.duration_seconds} |"
        )

    with_context = [a for a in activities if a.context_events]
    if with_context:
        lines.append("")
        lines.append("## Context Events")
        lines.append("")
        for a in with_context:
            entry = f"- **{a.actor}** ({format_date(a.created_at)}): {len(a.context_events)} events"
            if org:
                start, end = padded_range(a, context_minutes)
                entry += f" ([audit log]({build_audit_log_search_url(org, a.actor, start, end)}))"
            lines.append(entry)

    return "\n".join(lines)
