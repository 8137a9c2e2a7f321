import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from runwatch.logging_utils import get_logger

logger = get_logger(__name__)


class RunStage(Enum):
    """
    Lifecycle stages of a workflow run, valued by their audit-log action.
    """
    CREATED = "workflows.created_workflow_run"
    COMPLETED = "workflows.completed_workflow_run"
    DELETED = "workflows.delete_workflow_run"

    @classmethod
    def from_action(cls, action: Optional[str]) -> Optional["RunStage"]:
        try:
            return cls(action)
        except ValueError:
            return None


class MalformedEventError(ValueError):
    pass


CorrelationId = Union[int, str]

# 1970-01-01T00:00:00.000Z .. 9999-12-31T23:59:59.999Z
MIN_TIMESTAMP_MS = 0
MAX_TIMESTAMP_MS = 253402300799999


@dataclass(frozen=True)
class LogEvent:
    """
    Canonical audit-log event.
    """
    timestamp: int
    action: str
    actor: str
    resource: Optional[str] = None
    correlation_id: Optional[CorrelationId] = None
    user: Optional[str] = None
    country_code: Optional[str] = None

    @property
    def stage(self) -> Optional[RunStage]:
        return RunStage.from_action(self.action)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "LogEvent":
        """
        Build an event from one raw GitHub audit-log record.

        Tolerates missing optional fields; raises MalformedEventError when
        the timestamp, action or actor cannot be read.
        """
        if not isinstance(record, dict):
            raise MalformedEventError(f"Expected an object, got {type(record).__name__}")

        timestamp = record.get("@timestamp")
        if (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, (int, float))
            or not math.isfinite(timestamp)
            or not MIN_TIMESTAMP_MS <= timestamp <= MAX_TIMESTAMP_MS
        ):
            raise MalformedEventError(f"Invalid @timestamp: {timestamp!r}")

        action = record.get("action")
        if not isinstance(action, str) or not action:
            raise MalformedEventError(f"Invalid action: {action!r}")

        actor = record.get("actor")
        if not isinstance(actor, str) or not actor:
            raise MalformedEventError(f"Invalid actor: {actor!r}")

        location = record.get("actor_location") or {}

        return cls(
            timestamp=int(timestamp),
            action=action,
            actor=actor,
            resource=_optional_str(record.get("repo")),
            correlation_id=_correlation_id(record.get("workflow_run_id")),
            user=_optional_str(record.get("user")),
            country_code=_optional_str(location.get("country_code")) if isinstance(location, dict) else None,
        )


def parse_events(records: Iterable[Dict[str, Any]]) -> List[LogEvent]:
    """
    Parse raw records, dropping the ones that are malformed.
    """
    events: List[LogEvent] = []
    dropped = 0

    for record in records:
        try:
            events.append(LogEvent.from_record(record))
        except MalformedEventError as err:
            dropped += 1
            logger.debug(f"Skipping malformed audit log record: {err}")

    if dropped:
        logger.debug(f"Dropped {dropped} malformed audit log records")

    return events


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _correlation_id(value: Any) -> Optional[CorrelationId]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    return int(text) if text.isdigit() else text
