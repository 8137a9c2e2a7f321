"""Tests for context expansion around flagged sequences."""

from helpers import BASE_TIME, make_triplet
from runwatch.core.audit_log import AuditLogSource
from runwatch.core.context import ContextExpander
from runwatch.core.detections import find_suspicious_activity
from runwatch.core.event import LogEvent


class RecordingSource(AuditLogSource):
    def __init__(self, context=None):
        self.context = context or {}
        self.calls = []

    def fetch_workflow_events(self):
        return []

    def fetch_actor_events(self, actor, start_ms, end_ms):
        self.calls.append((actor, start_ms, end_ms))
        return list(self.context.get(actor, []))


def _activities():
    events = make_triplet(actor="user1", run_id=1) + make_triplet(
        base=BASE_TIME + 100000, actor="user2", run_id=2
    )
    return find_suspicious_activity(events, 60)


def test_search_range_is_padded():
    activity = _activities()[0]
    expander = ContextExpander(RecordingSource(), padding_minutes=15)

    assert expander.search_range(activity) == (
        BASE_TIME - 15 * 60 * 1000,
        BASE_TIME + 10000 + 15 * 60 * 1000,
    )


def test_expand_attaches_actor_events():
    extra = LogEvent(timestamp=BASE_TIME - 100000, action="repo.access", actor="user1")
    source = RecordingSource({"user1": [extra]})
    activity = _activities()[0]

    enriched = ContextExpander(source, padding_minutes=10).expand(activity)

    assert enriched.context_events == (extra,)
    assert source.calls == [("user1", BASE_TIME - 600000, BASE_TIME + 10000 + 600000)]


def test_expand_all_queries_once_per_activity():
    source = RecordingSource()

    result = ContextExpander(source, padding_minutes=5).expand_all(_activities())

    assert [call[0] for call in source.calls] == ["user1", "user2"]
    assert all(a.context_events == () for a in result)


def test_zero_padding_disables_expansion():
    source = RecordingSource({"user1": [LogEvent(timestamp=1, action="x", actor="user1")]})
    activities = _activities()

    result = ContextExpander(source, padding_minutes=0).expand_all(activities)

    assert result == activities
    assert source.calls == []


def test_no_activities_means_no_queries():
    source = RecordingSource()

    assert ContextExpander(source, padding_minutes=10).expand_all([]) == []
    assert source.calls == []
