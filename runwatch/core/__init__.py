from .detections import SuspiciousActivity, find_suspicious_activity
from .event import LogEvent, RunStage

__all__ = [
    "LogEvent",
    "RunStage",
    "SuspiciousActivity",
    "find_suspicious_activity",
]
