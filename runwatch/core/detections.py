from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .event import CorrelationId, LogEvent, RunStage


@dataclass(frozen=True)
class SuspiciousActivity:
    """
    A created -> completed -> deleted workflow run sequence inside the window.
    """
    actor: str
    repository: Optional[str]
    correlation_id: Optional[CorrelationId]
    created_at: int
    completed_at: int
    deleted_at: int
    duration_seconds: int
    context_events: Tuple[LogEvent, ...] = ()

    def with_context(self, events: Iterable[LogEvent]) -> "SuspiciousActivity":
        return replace(self, context_events=tuple(events))


def _duration_seconds(span_ms: int) -> int:
    # Halves round up
    return (span_ms + 500) // 1000


def _build_activity(
    created: LogEvent,
    completed: LogEvent,
    deleted: LogEvent,
    correlation_id: Optional[CorrelationId],
) -> SuspiciousActivity:
    return SuspiciousActivity(
        actor=created.actor,
        repository=created.resource or completed.resource or deleted.resource,
        correlation_id=correlation_id,
        created_at=created.timestamp,
        completed_at=completed.timestamp,
        deleted_at=deleted.timestamp,
        duration_seconds=_duration_seconds(deleted.timestamp - created.timestamp),
    )


class SequenceCorrelator:
    """
    Base class for workflow run lifecycle correlators.
    """

    keying: str = "base"

    def __init__(self, window_seconds: int):
        self.window_seconds = window_seconds
        self.window_ms = window_seconds * 1000

    def detect(self, events: Iterable[LogEvent]) -> List[SuspiciousActivity]:
        raise NotImplementedError


# --------------------------------------------------
# Run Identifier Keying (production)
# --------------------------------------------------

class WorkflowRunCorrelator(SequenceCorrelator):
    """
    Correlates lifecycle events by (actor, workflow run id).

    One event per stage is kept per key; a later event of the same stage
    replaces the earlier one. Out-of-order sequences are dropped as-is.
    """

    keying = "run"

    def detect(self, events: Iterable[LogEvent]) -> List[SuspiciousActivity]:
        index = self._index(events)
        suspicious: List[SuspiciousActivity] = []

        for (_, correlation_id), stages in index.items():
            created = stages.get(RunStage.CREATED)
            completed = stages.get(RunStage.COMPLETED)
            deleted = stages.get(RunStage.DELETED)

            if created is None or completed is None or deleted is None:
                continue

            if completed.timestamp < created.timestamp:
                continue
            if deleted.timestamp < completed.timestamp:
                continue

            if deleted.timestamp - created.timestamp > self.window_ms:
                continue

            suspicious.append(_build_activity(created, completed, deleted, correlation_id))

        # sorted() is stable: ties keep first-seen key order
        return sorted(suspicious, key=lambda a: a.created_at)

    def _index(
        self, events: Iterable[LogEvent]
    ) -> Dict[Tuple[str, CorrelationId], Dict[RunStage, LogEvent]]:
        index: Dict[Tuple[str, CorrelationId], Dict[RunStage, LogEvent]] = {}

        for e in events:
            stage = e.stage
            if stage is None:
                continue
            if e.correlation_id is None or not e.actor or not isinstance(e.timestamp, int):
                continue

            index.setdefault((e.actor, e.correlation_id), {})[stage] = e

        return index


# --------------------------------------------------
# Repository Keying (sources without run ids)
# --------------------------------------------------

class RepositoryCorrelator(SequenceCorrelator):
    """
    Greedy matcher over (actor, repository) groups.

    Each event is consumed at most once. Stage lists are sorted copies and
    are never mutated; consumption is tracked by index sets.
    """

    keying = "repository"

    def detect(self, events: Iterable[LogEvent]) -> List[SuspiciousActivity]:
        groups = self._group(events)
        suspicious: List[SuspiciousActivity] = []

        for stages in groups.values():
            suspicious.extend(self._match_group(stages))

        return sorted(suspicious, key=lambda a: a.created_at)

    def _group(
        self, events: Iterable[LogEvent]
    ) -> Dict[Tuple[str, str], Dict[RunStage, List[LogEvent]]]:
        groups: Dict[Tuple[str, str], Dict[RunStage, List[LogEvent]]] = {}

        for e in events:
            stage = e.stage
            if stage is None:
                continue
            if not e.resource or not e.actor or not isinstance(e.timestamp, int):
                continue

            stages = groups.setdefault(
                (e.actor, e.resource), {s: [] for s in RunStage}
            )
            stages[stage].append(e)

        return groups

    def _match_group(self, stages: Dict[RunStage, List[LogEvent]]) -> List[SuspiciousActivity]:
        created = sorted(stages[RunStage.CREATED], key=lambda e: e.timestamp)
        completed = sorted(stages[RunStage.COMPLETED], key=lambda e: e.timestamp)
        deleted = sorted(stages[RunStage.DELETED], key=lambda e: e.timestamp)

        used_completed: Set[int] = set()
        used_deleted: Set[int] = set()
        matches: List[SuspiciousActivity] = []

        for c in created:
            done = self._take_earliest(completed, used_completed, c.timestamp, c.timestamp)
            if done is None:
                continue

            gone = self._take_earliest(deleted, used_deleted, done.timestamp, c.timestamp)
            if gone is None:
                continue

            matches.append(_build_activity(c, done, gone, None))

        return matches

    def _take_earliest(
        self,
        candidates: Sequence[LogEvent],
        used: Set[int],
        not_before: int,
        window_start: int,
    ) -> Optional[LogEvent]:
        for i, e in enumerate(candidates):
            if i in used:
                continue
            if e.timestamp >= not_before and e.timestamp - window_start <= self.window_ms:
                used.add(i)
                return e
        return None


# --------------------------------------------------
# Entry Point
# --------------------------------------------------

CORRELATORS = {
    WorkflowRunCorrelator.keying: WorkflowRunCorrelator,
    RepositoryCorrelator.keying: RepositoryCorrelator,
}


def get_correlator(window_seconds: int, keying: str = "run") -> SequenceCorrelator:
    try:
        correlator_cls = CORRELATORS[keying]
    except KeyError:
        raise ValueError(f"Unknown keying: {keying}") from None
    return correlator_cls(window_seconds)


def find_suspicious_activity(
    events: Iterable[LogEvent],
    window_seconds: int,
    keying: str = "run",
) -> List[SuspiciousActivity]:
    """
    Detect create -> complete -> delete workflow run sequences.

    Pure: no I/O and no mutation of the input. An empty list means nothing
    suspicious was found.
    """
    return get_correlator(window_seconds, keying).detect(events)
