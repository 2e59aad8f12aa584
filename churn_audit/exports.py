"""Export churn audit reports to JSON and CSV.

Every report row exposes ``as_dict()`` with column names matching the
downstream reporting schema; these helpers turn those rows into files a
dashboard or spreadsheet can ingest.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence

import pandas as pd

logger = logging.getLogger(__name__)


class ReportRow(Protocol):
    def as_dict(self) -> dict[str, Any]: ...


def _serialise_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def rows_to_records(rows: Iterable[ReportRow]) -> list[dict[str, Any]]:
    """Convert report rows into JSON-serialisable dictionaries.

    Dates become ISO strings and Decimal rates become floats.
    """
    return [
        {key: _serialise_value(value) for key, value in row.as_dict().items()}
        for row in rows
    ]


def export_report_json(
    report_name: str,
    rows: Iterable[ReportRow],
    output_path: str | Path,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Export report rows to a JSON document.

    Parameters
    ----------
    report_name:
        Name of the report (e.g. ``"monthly_retention"``), stored in the file.
    rows:
        Report rows exposing ``as_dict()``.
    output_path:
        Path where the JSON file will be saved. Parent directories are
        created as needed.
    metadata:
        Optional metadata to include (e.g. analysis window, churn policy).

    Examples
    --------
    >>> export_report_json(
    ...     "monthly_churn",
    ...     analyzer.monthly_churn(),
    ...     "reports/churn.json",
    ...     metadata=analyzer.summary(),
    ... )  # doctest: +SKIP
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = rows_to_records(rows)
    payload = {
        "report": report_name,
        "metadata": metadata or {},
        "generated_at": datetime.now().isoformat(),
        "rows": records,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(f"{report_name} report ({len(records)} rows) exported to {output_path}")


def export_report_csv(
    rows: Iterable[ReportRow],
    output_path: str | Path,
    columns: Sequence[str] | None = None,
) -> None:
    """Export report rows to CSV, one row per report row.

    An empty report still produces a file so downstream jobs can distinguish
    "no rows" from "report not run". Pass ``columns`` to give that file a
    header line; otherwise it holds a single blank line.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = rows_to_records(rows)
    df = pd.DataFrame(records, columns=columns)
    df.to_csv(output_path, index=False)

    logger.info(f"Report ({len(records)} rows) exported to {output_path}")
