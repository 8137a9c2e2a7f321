import csv
import io
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List

from runwatch.core.detections import SuspiciousActivity
from runwatch.core.event import LogEvent

ACTIVITY_HEADER = [
    "Actor",
    "Repository",
    "Workflow Run ID",
    "Created At",
    "Completed At",
    "Deleted At",
    "Duration (seconds)",
]

CONTEXT_HEADER = [
    "Timestamp",
    "Action",
    "Actor",
    "User",
    "Repository",
    "Workflow Run ID",
    "Country",
]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_datetime(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


def iso_timestamp(ms: int) -> str:
    """
    2024-01-01T10:00:00.000Z
    """
    return to_datetime(ms).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _cell(value: Any) -> Any:
    return "" if value is None else value


def _render(header: List[str], rows: Iterable[List[Any]]) -> str:
    buf = io.StringIO()

    # Header unquoted, strings quoted, numbers bare
    buf.write(",".join(header) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for row in rows:
        writer.writerow([_cell(v) for v in row])

    return buf.getvalue().rstrip("\n")


def generate_csv(activities: List[SuspiciousActivity]) -> str:
    return _render(
        ACTIVITY_HEADER,
        (
            [
                a.actor,
                a.repository,
                a.correlation_id,
                iso_timestamp(a.created_at),
                iso_timestamp(a.completed_at),
                iso_timestamp(a.deleted_at),
                a.duration_seconds,
            ]
            for a in activities
        ),
    )


def generate_context_csv(events: List[LogEvent]) -> str:
    return _render(
        CONTEXT_HEADER,
        (
            [
                iso_timestamp(e.timestamp),
                e.action,
                e.actor,
                e.user,
                e.resource,
                e.correlation_id,
                e.country_code,
            ]
            for e in events
        ),
    )
