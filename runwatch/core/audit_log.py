import json
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote

import requests

from runwatch.logging_utils import get_logger

from .event import LogEvent, RunStage, parse_events

logger = get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_WEB_URL = "https://github.com"
API_VERSION = "2022-11-28"
PAGE_SIZE = 100
DEFAULT_TIMEOUT = 30

_NEXT_CURSOR = re.compile(r'<[^>]*[?&]after=([^&>]+)[^>]*>;\s*rel="next"')


class AuditLogError(RuntimeError):
    pass


def _utc_date(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def extract_next_cursor(link_header: Optional[str]) -> Optional[str]:
    """
    Return the `after` cursor of the rel="next" Link entry, if any.
    """
    if not link_header:
        return None

    match = _NEXT_CURSOR.search(link_header)
    if match:
        return unquote(match.group(1))

    return None


def build_workflow_phrase(days_back: int, additional_phrase: str = "", today: Optional[datetime] = None) -> str:
    today = today or datetime.now(timezone.utc)
    start = (today - timedelta(days=days_back)).strftime("%Y-%m-%d")

    action_filters = " ".join(f"action:{stage.value}" for stage in RunStage)
    phrase = f"{action_filters} created:>={start}"

    if additional_phrase and additional_phrase.strip():
        phrase = f"{phrase} {additional_phrase.strip()}"

    return phrase


def build_actor_phrase(actor: str, start_ms: int, end_ms: int) -> str:
    return f"actor:{actor} created:{_utc_date(start_ms)}..{_utc_date(end_ms)}"


def build_audit_log_search_url(org: str, actor: str, start_ms: int, end_ms: int) -> str:
    """
    Link to the organization audit log UI filtered to one actor and range.
    """
    phrase = build_actor_phrase(actor, start_ms, end_ms)
    return f"{GITHUB_WEB_URL}/organizations/{org}/settings/audit-log?q={quote(phrase, safe='')}"


def _filter_range(events: List[LogEvent], actor: str, start_ms: int, end_ms: int) -> List[LogEvent]:
    selected = [
        e for e in events
        if e.actor == actor and start_ms <= e.timestamp <= end_ms
    ]
    return sorted(selected, key=lambda e: e.timestamp)


# ==================================================
# Audit Log Source Contract
# ==================================================

class AuditLogSource(ABC):
    """
    Abstract audit log source.

    A source is responsible ONLY for producing canonical LogEvents;
    correlation happens elsewhere.
    """

    @abstractmethod
    def fetch_workflow_events(self) -> List[LogEvent]:
        raise NotImplementedError

    @abstractmethod
    def fetch_actor_events(self, actor: str, start_ms: int, end_ms: int) -> List[LogEvent]:
        raise NotImplementedError


# ==================================================
# GitHub REST Audit Log Source
# ==================================================

class GitHubAuditLogSource(AuditLogSource):
    """
    Paginated client for the organization (or enterprise) audit log API.
    """

    def __init__(
        self,
        token: str,
        org: str,
        days_back: int = 7,
        additional_phrase: str = "",
        enterprise: bool = False,
        api_url: str = GITHUB_API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.org = org
        self.days_back = days_back
        self.additional_phrase = additional_phrase
        self.enterprise = enterprise
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            }
        )

    @property
    def endpoint(self) -> str:
        scope = "enterprises" if self.enterprise else "orgs"
        return f"{self.api_url}/{scope}/{self.org}/audit-log"

    def fetch_workflow_events(self) -> List[LogEvent]:
        phrase = build_workflow_phrase(self.days_back, self.additional_phrase)
        return parse_events(self._paginate(phrase))

    def fetch_actor_events(self, actor: str, start_ms: int, end_ms: int) -> List[LogEvent]:
        phrase = build_actor_phrase(actor, start_ms, end_ms)
        events = parse_events(self._paginate(phrase))
        return _filter_range(events, actor, start_ms, end_ms)

    def _paginate(self, phrase: str) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        page = 0

        while True:
            params: Dict[str, Any] = {"phrase": phrase, "per_page": PAGE_SIZE}
            if cursor:
                params["after"] = cursor

            response = self._get(params)
            try:
                body = response.json()
            except ValueError as err:
                raise AuditLogError(f"Audit log response is not JSON: {err}") from err

            if not isinstance(body, list):
                raise AuditLogError(f"Unexpected audit log response: {type(body).__name__}")

            records.extend(body)
            page += 1
            logger.debug(f"Audit log page {page}: {len(body)} events (phrase: {phrase})")

            cursor = extract_next_cursor(response.headers.get("link"))
            if not cursor:
                break

        return records

    def _get(self, params: Dict[str, Any]) -> requests.Response:
        try:
            response = self.session.get(self.endpoint, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as err:
            raise AuditLogError(f"Audit log request failed: {err}") from err
        return response


# ==================================================
# JSON / JSONL Export Source
# ==================================================

class JsonAuditLogSource(AuditLogSource):
    """
    Source backed by an exported audit log (JSON array or JSON Lines).
    """

    def __init__(self, path: str):
        self.path = path
        self._events: Optional[List[LogEvent]] = None

    def fetch_workflow_events(self) -> List[LogEvent]:
        return list(self._load())

    def fetch_actor_events(self, actor: str, start_ms: int, end_ms: int) -> List[LogEvent]:
        return _filter_range(self._load(), actor, start_ms, end_ms)

    def _load(self) -> List[LogEvent]:
        if self._events is None:
            self._events = parse_events(self._read_records())
            logger.debug(f"Loaded {len(self._events)} events from {self.path}")
        return self._events

    def _read_records(self) -> List[Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as err:
            raise AuditLogError(f"Cannot read audit log export {self.path}: {err}") from err

        if content.lstrip().startswith("["):
            try:
                return list(json.loads(content))
            except json.JSONDecodeError as err:
                raise AuditLogError(f"Invalid JSON in {self.path}: {err}") from err

        records: List[Any] = []
        for line_num, line in enumerate(content.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue

            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as err:
                raise AuditLogError(
                    f"Invalid JSON on line {line_num}: {err}"
                ) from err

        return records
