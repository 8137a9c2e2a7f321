# runwatch/cli/commands.py
from typing import List, Optional

from runwatch.artifacts import set_output, write_context_csv, write_csv, write_step_summary
from runwatch.config import ScanConfig
from runwatch.core.audit_log import AuditLogSource, GitHubAuditLogSource, JsonAuditLogSource
from runwatch.core.context import ContextExpander
from runwatch.core.detections import SuspiciousActivity, find_suspicious_activity
from runwatch.logging_utils import get_logger
from runwatch.reports import generate_csv, generate_summary

logger = get_logger("runwatch.cli")


def _report_counts(activities: List[SuspiciousActivity]) -> None:
    unique_actors = {a.actor for a in activities}

    set_output("suspicious-actors-count", len(unique_actors))
    set_output("suspicious-activities-count", len(activities))

    if not activities:
        logger.info("No suspicious activity found.")
    else:
        logger.warning(
            f"Found {len(activities)} suspicious activity sequences from {len(unique_actors)} actors"
        )


# ==================================================
# Live Scan
# ==================================================

def run_scan(config: ScanConfig, source: Optional[AuditLogSource] = None) -> List[SuspiciousActivity]:
    config.validate()

    logger.info(f"Searching audit logs for organization: {config.org}")
    logger.info(f"Looking back {config.days_back} days")
    logger.info(f"Time window: {config.time_window} seconds")

    if source is None:
        source = GitHubAuditLogSource(
            token=config.token,
            org=config.org,
            days_back=config.days_back,
            additional_phrase=config.additional_phrase,
            enterprise=config.enterprise,
        )

    logger.info("Fetching audit log events...")
    events = source.fetch_workflow_events()
    logger.info(f"Retrieved {len(events)} workflow events")

    logger.info("Analyzing events for suspicious activity...")
    activities = find_suspicious_activity(events, config.time_window, config.keying)
    _report_counts(activities)

    expander = ContextExpander(source, config.context_search_minutes)
    activities = expander.expand_all(activities)

    summary = generate_summary(
        activities,
        config.days_back,
        config.time_window,
        org=config.org,
        context_minutes=config.context_search_minutes,
    )
    print(summary)
    if write_step_summary(summary):
        logger.info("Wrote step summary")

    if activities:
        csv_path = write_csv(generate_csv(activities), config.output_dir, config.org)
        logger.info(f"Wrote suspicious activity CSV to {csv_path}")

        for n, a in enumerate(activities, start=1):
            if not a.context_events:
                continue
            start_ms, _ = expander.search_range(a)
            tag = a.correlation_id if a.correlation_id is not None else n
            path = write_context_csv(
                list(a.context_events), config.output_dir, a.actor, start_ms, tag=tag
            )
            logger.info(f"Wrote context CSV for {a.actor} to {path}")

    logger.info("Scan complete.")
    return activities


# ==================================================
# Offline Detection
# ==================================================

def run_detect(
    input_path: str,
    time_window: int,
    keying: str = "run",
    as_csv: bool = False,
) -> List[SuspiciousActivity]:
    config = ScanConfig(time_window=time_window, keying=keying).validate(require_credentials=False)

    events = JsonAuditLogSource(input_path).fetch_workflow_events()
    logger.info(f"Loaded {len(events)} events from {input_path}")

    activities = find_suspicious_activity(events, config.time_window, config.keying)
    _report_counts(activities)

    if as_csv:
        print(generate_csv(activities))
    else:
        print(generate_summary(activities, days_back=None, time_window=config.time_window))

    return activities
