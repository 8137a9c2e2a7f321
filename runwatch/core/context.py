from typing import List, Tuple

from runwatch.logging_utils import get_logger

from .audit_log import AuditLogSource
from .detections import SuspiciousActivity

logger = get_logger(__name__)


def padded_range(activity: SuspiciousActivity, padding_minutes: int) -> Tuple[int, int]:
    padding_ms = padding_minutes * 60 * 1000
    return activity.created_at - padding_ms, activity.deleted_at + padding_ms


class ContextExpander:
    """
    Attaches surrounding activity by the same actor to flagged sequences.
    """

    def __init__(self, source: AuditLogSource, padding_minutes: int):
        self.source = source
        self.padding_minutes = padding_minutes

    @property
    def enabled(self) -> bool:
        return self.padding_minutes > 0

    def search_range(self, activity: SuspiciousActivity) -> Tuple[int, int]:
        return padded_range(activity, self.padding_minutes)

    def expand(self, activity: SuspiciousActivity) -> SuspiciousActivity:
        if not self.enabled:
            return activity

        start_ms, end_ms = self.search_range(activity)
        events = self.source.fetch_actor_events(activity.actor, start_ms, end_ms)
        logger.info(f"Found {len(events)} context events")

        return activity.with_context(events)

    def expand_all(self, activities: List[SuspiciousActivity]) -> List[SuspiciousActivity]:
        if not self.enabled or not activities:
            return list(activities)

        logger.info("Fetching context audit log events for suspicious activities...")
        return [self.expand(a) for a in activities]
