"""Tests for churn audit report exports."""

import json
from datetime import date
from decimal import Decimal

import pandas as pd

from churn_audit.analyses import ChurnAnalyzer
from churn_audit.analyses.retention import MonthlyRetentionRow
from churn_audit.exports import export_report_csv, export_report_json, rows_to_records
from churn_audit.foundation import ActivityLog


def make_analyzer():
    return ChurnAnalyzer(
        ActivityLog.from_pairs(
            [
                ("U1", date(2023, 1, 1)),
                ("U2", date(2023, 1, 1)),
                ("U1", date(2023, 2, 1)),
            ]
        )
    )


def test_rows_to_records_serialises_dates_and_decimals():
    records = rows_to_records(
        [MonthlyRetentionRow(date(2023, 2, 1), 1, 2, Decimal("0.50"))]
    )
    assert records == [
        {
            "active_month": "2023-02-01",
            "retained_users": 1,
            "total_active_users": 2,
            "retention_rate": 0.5,
        }
    ]
    # must be JSON-serialisable as-is
    json.dumps(records)


def test_export_report_json(tmp_path):
    analyzer = make_analyzer()
    output = tmp_path / "reports" / "churn.json"

    export_report_json(
        "monthly_churn", analyzer.monthly_churn(), output, metadata=analyzer.summary()
    )

    payload = json.loads(output.read_text())
    assert payload["report"] == "monthly_churn"
    assert payload["metadata"]["churn_policy"] == "exclude-final-month"
    assert payload["rows"] == [
        {
            "churn_month": "2023-02-01",
            "churned_users": 1,
            "previous_active_users": 2,
            "churn_rate": 0.5,
        }
    ]
    assert "generated_at" in payload


def test_export_report_csv(tmp_path):
    analyzer = make_analyzer()
    output = tmp_path / "lifecycle.csv"

    export_report_csv(analyzer.lifecycle_status(), output)

    df = pd.read_csv(output)
    assert list(df.columns) == ["active_month", "lifecycle_status", "user_count"]
    assert df.to_dict("records") == [
        {"active_month": "2023-01-01", "lifecycle_status": "New", "user_count": 2},
        {"active_month": "2023-02-01", "lifecycle_status": "Retained", "user_count": 1},
    ]


def test_export_single_result_csv(tmp_path):
    analyzer = make_analyzer()
    output = tmp_path / "churn_at.csv"

    export_report_csv([analyzer.churn_at("2023-02-01")], output)

    df = pd.read_csv(output)
    assert df["churn_rate"].iloc[0] == 50.0
    assert df["previous_month"].iloc[0] == "2023-01-01"


def test_export_empty_report_csv_keeps_header(tmp_path):
    output = tmp_path / "churn.csv"

    export_report_csv(
        [], output, columns=["churn_month", "churned_users", "churn_rate"]
    )

    assert output.read_text().strip() == "churn_month,churned_users,churn_rate"
    assert pd.read_csv(output).empty
