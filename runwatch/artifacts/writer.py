import os
import re
from pathlib import Path
from typing import Any, List, Optional, Union

from runwatch.core.event import LogEvent
from runwatch.logging_utils import get_logger
from runwatch.reports.csv_report import generate_context_csv, to_datetime

logger = get_logger(__name__)

ACTIVITY_FILE_TEMPLATE = "suspicious-activity-{org}.csv"
CONTEXT_FILE_TEMPLATE = "context-{actor}-{stamp}{tag}.csv"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


# --------------------------------------------------
# File Name Boundary
# --------------------------------------------------

def sanitize_name(value: str) -> str:
    """
    Make a login or org name safe for use inside a file name.
    """
    return _UNSAFE_CHARS.sub("_", value or "") or "unknown"


def _write(path: Path, content: str) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.debug(f"Wrote {path}")
    return str(path)


# --------------------------------------------------
# Report Artifacts
# --------------------------------------------------

def write_csv(content: str, output_dir: str, org: str) -> str:
    path = Path(output_dir) / ACTIVITY_FILE_TEMPLATE.format(org=sanitize_name(org))
    return _write(path, content)


def write_context_csv(
    events: List[LogEvent],
    output_dir: str,
    actor: str,
    start_ms: int,
    tag: Optional[Union[int, str]] = None,
) -> str:
    """
    `tag` (a run id, or a sequence number) keeps files for runs started by
    the same actor in the same second apart.
    """
    stamp = to_datetime(start_ms).strftime("%Y%m%dT%H%M%S")
    path = Path(output_dir) / CONTEXT_FILE_TEMPLATE.format(
        actor=sanitize_name(actor),
        stamp=stamp,
        tag="" if tag is None else f"-{sanitize_name(str(tag))}",
    )
    return _write(path, generate_context_csv(events))


# --------------------------------------------------
# Workflow Step Files
# --------------------------------------------------

def write_step_summary(markdown: str, summary_path: Optional[str] = None) -> bool:
    summary_path = summary_path or os.environ.get("GITHUB_STEP_SUMMARY")
    if not summary_path:
        return False

    with open(summary_path, "a", encoding="utf-8") as f:
        f.write(markdown)
        f.write("\n")
    return True


def set_output(name: str, value: Any, output_path: Optional[str] = None) -> bool:
    output_path = output_path or os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        return False

    with open(output_path, "a", encoding="utf-8") as f:
        f.write(f"{name}={value}\n")
    return True
