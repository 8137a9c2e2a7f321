"""Event builders shared by the runwatch tests."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from runwatch.core.event import LogEvent, RunStage

BASE_TIME = 1700000000000


def make_event(
    stage: RunStage,
    timestamp: int,
    actor: str = "user1",
    run_id: Optional[int] = 12345,
    repo: Optional[str] = "org/repo1",
) -> LogEvent:
    return LogEvent(
        timestamp=timestamp,
        action=stage.value,
        actor=actor,
        resource=repo,
        correlation_id=run_id,
    )


def make_triplet(
    base: int = BASE_TIME,
    completed_after: int = 5000,
    deleted_after: int = 10000,
    actor: str = "user1",
    run_id: Optional[int] = 12345,
    repo: Optional[str] = "org/repo1",
) -> List[LogEvent]:
    """Created at base, completed and deleted at the given ms offsets."""
    return [
        make_event(RunStage.CREATED, base, actor, run_id, repo),
        make_event(RunStage.COMPLETED, base + completed_after, actor, run_id, repo),
        make_event(RunStage.DELETED, base + deleted_after, actor, run_id, repo),
    ]


def to_record(event: LogEvent) -> Dict[str, Any]:
    """Raw audit log record as the API returns it."""
    record: Dict[str, Any] = {
        "@timestamp": event.timestamp,
        "action": event.action,
        "actor": event.actor,
    }
    if event.resource is not None:
        record["repo"] = event.resource
    if event.correlation_id is not None:
        record["workflow_run_id"] = event.correlation_id
    if event.user is not None:
        record["user"] = event.user
    if event.country_code is not None:
        record["actor_location"] = {"country_code": event.country_code}
    return record


def write_export(path: Path, events: Iterable[LogEvent]) -> None:
    path.write_text("\n".join(json.dumps(to_record(e)) for e in events))
