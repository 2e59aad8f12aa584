"""Command line entry points for the churn audit toolkit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from churn_audit.analyses.analyzer import AnalyzerConfig, ChurnAnalyzer
from churn_audit.analyses.churn import ChurnHorizonPolicy
from churn_audit.exports import (
    ReportRow,
    export_report_csv,
    export_report_json,
    rows_to_records,
)
from churn_audit.foundation.activity import ActivityContract, ActivityLoadResult
from churn_audit.pandas.activity import dataframe_to_activity
from churn_audit.pandas.results import (
    CHURN_COLUMNS,
    LIFECYCLE_COLUMNS,
    RETENTION_COLUMNS,
    USER_LIFECYCLE_COLUMNS,
)

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM

# Header for CSV output when a monthly report has no rows
REPORT_COLUMNS = {
    "monthly_retention": RETENTION_COLUMNS,
    "monthly_churn": CHURN_COLUMNS,
    "lifecycle_status": LIFECYCLE_COLUMNS,
    "user_lifecycle": USER_LIFECYCLE_COLUMNS,
}


def _load_activity(
    path: Path, user_col: str, month_col: str, strict: bool
) -> ActivityLoadResult:
    """Load activity rows from a CSV or JSON file."""
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )

    if path.suffix.lower() == ".json":
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
        if not isinstance(payload, list):
            raise ValueError("Expected a list of activity rows in the input file")
        contract = ActivityContract(
            strict=strict, user_field=user_col, month_field=month_col
        )
        return contract.validate_records(payload)

    activity_df = pd.read_csv(path, dtype={user_col: str})
    return dataframe_to_activity(
        activity_df, user_col=user_col, month_col=month_col, strict=strict
    )


def _write_report(
    report_name: str,
    rows: Sequence[ReportRow],
    output: Path | None,
    metadata: dict[str, Any],
) -> None:
    if output is None:
        # stdout fallback enables piping in shell usage.
        json.dump(rows_to_records(rows), fp=sys.stdout, indent=2)
        print()
    elif output.suffix.lower() == ".csv":
        export_report_csv(rows, output, columns=REPORT_COLUMNS.get(report_name))
    else:
        export_report_json(report_name, rows, output, metadata=metadata)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monthly retention, churn and lifecycle reports from an activity log"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "input", type=Path, help="Path to CSV or JSON file with activity rows"
    )
    common.add_argument(
        "--user-col",
        default="user_id",
        help="Column holding the user identifier (default: user_id)",
    )
    common.add_argument(
        "--month-col",
        default="active_month",
        help="Column holding the activity date; truncated to its month (default: active_month)",
    )
    common.add_argument(
        "--start-month",
        help="First month of the analysis window (YYYY-MM or YYYY-MM-01)",
    )
    common.add_argument(
        "--end-month",
        help="Final month of the analysis window and churn horizon (YYYY-MM or YYYY-MM-01)",
    )
    common.add_argument(
        "--churn-policy",
        default=ChurnHorizonPolicy.EXCLUDE_FINAL_MONTH.value,
        choices=[item.value for item in ChurnHorizonPolicy],
        help="Treatment of churn inferred from the final month (default: exclude-final-month)",
    )
    common.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first malformed row instead of skipping it",
    )
    common.add_argument(
        "--output",
        type=Path,
        help="Write the report to this path (.csv or .json); prints JSON to stdout if omitted",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "retention", parents=[common], help="Month-over-month retention per month"
    )
    subparsers.add_parser(
        "churn", parents=[common], help="Inferred churn events per churn month"
    )
    lifecycle = subparsers.add_parser(
        "lifecycle", parents=[common], help="Lifecycle label counts per month"
    )
    lifecycle.add_argument(
        "--per-user",
        action="store_true",
        help="Emit one row per (user, month) instead of counts",
    )
    between = subparsers.add_parser(
        "retention-between",
        parents=[common],
        help="Retention of one month's users into a later month",
    )
    between.add_argument("start", help="Month defining the initial users (YYYY-MM-01)")
    between.add_argument("target", help="Month in which retention is measured (YYYY-MM-01)")
    churn_at = subparsers.add_parser(
        "churn-at",
        parents=[common],
        help="Churn from the previous month into a reference month",
    )
    churn_at.add_argument("reference", help="Reference month (YYYY-MM-01)")
    return parser


def _run_report(args: argparse.Namespace, analyzer: ChurnAnalyzer) -> tuple[str, list[Any]]:
    if args.command == "retention":
        return "monthly_retention", analyzer.monthly_retention()
    if args.command == "churn":
        return "monthly_churn", analyzer.monthly_churn()
    if args.command == "lifecycle":
        if args.per_user:
            return "user_lifecycle", analyzer.user_lifecycle()
        return "lifecycle_status", analyzer.lifecycle_status()
    if args.command == "retention-between":
        return "retention_between", [analyzer.retention_between(args.start, args.target)]
    if args.command == "churn-at":
        return "churn_at", [analyzer.churn_at(args.reference)]
    raise ValueError(f"Unknown command: {args.command}")  # pragma: no cover


def churn_audit_cli(argv: list[str] | None = None) -> int:
    """Run a churn audit report over an activity file.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 for invalid input)
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = AnalyzerConfig(
            start_month=args.start_month,
            end_month=args.end_month,
            churn_policy=ChurnHorizonPolicy(args.churn_policy),
        )

        logger.info(f"Loading activity from {args.input}")
        loaded = _load_activity(args.input, args.user_col, args.month_col, args.strict)
        if not loaded.log:
            logger.error("No valid activity rows found in input file")
            return 1

        analyzer = ChurnAnalyzer(loaded.log, config=config, skipped_rows=loaded.skipped_rows)
        summary = analyzer.summary()
        logger.info(
            f"Analysing {summary['facts']} user-months for {summary['users']} users "
            f"({summary['first_month']} to {summary['last_month']}, "
            f"{summary['skipped_rows']} rows skipped)"
        )

        report_name, rows = _run_report(args, analyzer)
    except (OSError, ValueError) as exc:
        logger.error(f"Invalid input: {exc}")
        return 1

    try:
        _write_report(report_name, rows, args.output, metadata=summary)
    except OSError as exc:
        logger.error(f"Could not write report to {args.output}: {exc}")
        return 1
    return 0


def main() -> None:
    raise SystemExit(churn_audit_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
