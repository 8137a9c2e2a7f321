import argparse
import os
import sys

from runwatch.cli.commands import run_detect, run_scan
from runwatch.config import DEFAULT_TIME_WINDOW, KEYINGS, ConfigError, ScanConfig
from runwatch.core.audit_log import AuditLogError
from runwatch.logging_utils import get_logger

logger = get_logger("runwatch.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="runwatch",
        description="Detect workflow runs that are created, completed and deleted in quick succession",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan the GitHub audit log")
    scan.add_argument("--org", help="Organization (or enterprise) to scan")
    scan.add_argument("--token", help="GitHub token with audit log read access")
    scan.add_argument("--days-back", help="Days of audit log to scan (default 7)")
    scan.add_argument("--time-window", help="Max seconds from created to deleted (default 60)")
    scan.add_argument(
        "--context-search-minutes",
        help="Minutes of surrounding actor activity to fetch, 0 to disable (default 10)",
    )
    scan.add_argument("--additional-phrase", help="Extra audit log search qualifiers")
    scan.add_argument("--output-dir", help="Directory for CSV artifacts")
    scan.add_argument(
        "--enterprise",
        action="store_true",
        default=None,
        help="Treat --org as an enterprise slug",
    )
    scan.add_argument("--keying", choices=KEYINGS, help="Correlation key (default run)")

    detect = sub.add_parser("detect", help="Scan an exported audit log file")
    detect.add_argument("input", help="JSON or JSONL audit log export")
    detect.add_argument("--time-window", default=str(DEFAULT_TIME_WINDOW))
    detect.add_argument("--keying", choices=KEYINGS, default="run")
    detect.add_argument("--csv", action="store_true", help="Print CSV instead of Markdown")

    return parser


def scan_config(args: argparse.Namespace) -> ScanConfig:
    """
    Environment inputs, overridden by any flag given on the command line.
    """
    flags = {
        "org": args.org,
        "token": args.token,
        "days-back": args.days_back,
        "time-window": args.time_window,
        "context-search-minutes": args.context_search_minutes,
        "additional-phrase": args.additional_phrase,
        "output-dir": args.output_dir,
        "enterprise": args.enterprise,
        "keying": args.keying,
    }

    environ = dict(os.environ)
    for name, value in flags.items():
        if value is None:
            continue
        environ.pop(f"INPUT_{name.upper()}".replace("-", "_"), None)
        environ[f"INPUT_{name.upper()}"] = str(value)

    return ScanConfig.from_env(environ)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "scan":
            run_scan(scan_config(args))
        elif args.command == "detect":
            config = ScanConfig.from_env({"INPUT_TIME-WINDOW": args.time_window})
            run_detect(args.input, config.time_window, keying=args.keying, as_csv=args.csv)
    except (ConfigError, AuditLogError) as err:
        logger.error(str(err))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
