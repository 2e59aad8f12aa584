"""Pandas DataFrame adapters for churn audit reports."""

from typing import Dict, Optional, Sequence

import pandas as pd  # type: ignore

from churn_audit.analyses.analyzer import AnalyzerConfig, ChurnAnalyzer
from churn_audit.analyses.churn import ChurnAtResult, MonthlyChurnRow
from churn_audit.analyses.lifecycle import LifecycleCountRow, UserLifecycle
from churn_audit.analyses.retention import (
    MonthlyRetentionRow,
    RetentionBetweenResult,
)
from .activity import dataframe_to_activity
from ._utils import decimal_to_float, month_to_timestamp

RETENTION_COLUMNS = [
    "active_month",
    "retained_users",
    "total_active_users",
    "retention_rate",
]
CHURN_COLUMNS = [
    "churn_month",
    "churned_users",
    "previous_active_users",
    "churn_rate",
]
LIFECYCLE_COLUMNS = ["active_month", "lifecycle_status", "user_count"]
USER_LIFECYCLE_COLUMNS = ["user_id", "active_month", "lifecycle_status"]


def retention_to_dataframe(rows: Sequence[MonthlyRetentionRow]) -> pd.DataFrame:
    """Convert monthly retention rows to a DataFrame.

    Args:
        rows: Output of ChurnAnalyzer.monthly_retention()

    Returns:
        DataFrame with columns: active_month, retained_users,
        total_active_users, retention_rate (float fraction)
    """
    if not rows:
        return pd.DataFrame(columns=RETENTION_COLUMNS)

    return pd.DataFrame(
        [
            {
                "active_month": month_to_timestamp(row.active_month),
                "retained_users": row.retained_users,
                "total_active_users": row.total_active_users,
                "retention_rate": decimal_to_float(row.retention_rate),
            }
            for row in rows
        ],
        columns=RETENTION_COLUMNS,
    )


def churn_to_dataframe(rows: Sequence[MonthlyChurnRow]) -> pd.DataFrame:
    """Convert monthly churn rows to a DataFrame.

    Args:
        rows: Output of ChurnAnalyzer.monthly_churn()

    Returns:
        DataFrame with columns: churn_month, churned_users,
        previous_active_users, churn_rate (float fraction)
    """
    if not rows:
        return pd.DataFrame(columns=CHURN_COLUMNS)

    return pd.DataFrame(
        [
            {
                "churn_month": month_to_timestamp(row.churn_month),
                "churned_users": row.churned_users,
                "previous_active_users": row.previous_active_users,
                "churn_rate": decimal_to_float(row.churn_rate),
            }
            for row in rows
        ],
        columns=CHURN_COLUMNS,
    )


def lifecycle_to_dataframe(rows: Sequence[LifecycleCountRow]) -> pd.DataFrame:
    """Convert lifecycle count rows to a long-format DataFrame.

    Args:
        rows: Output of ChurnAnalyzer.lifecycle_status()

    Returns:
        DataFrame with columns: active_month, lifecycle_status, user_count

    Example:
        >>> counts = lifecycle_to_dataframe(analyzer.lifecycle_status())
        >>> counts.pivot(index="active_month", columns="lifecycle_status",
        ...              values="user_count").fillna(0)
    """
    if not rows:
        return pd.DataFrame(columns=LIFECYCLE_COLUMNS)

    return pd.DataFrame(
        [
            {
                "active_month": month_to_timestamp(row.active_month),
                "lifecycle_status": row.lifecycle_status.value,
                "user_count": row.user_count,
            }
            for row in rows
        ],
        columns=LIFECYCLE_COLUMNS,
    )


def user_lifecycle_to_dataframe(rows: Sequence[UserLifecycle]) -> pd.DataFrame:
    """Convert per-user lifecycle labels to a DataFrame."""
    if not rows:
        return pd.DataFrame(columns=USER_LIFECYCLE_COLUMNS)

    return pd.DataFrame(
        [
            {
                "user_id": row.user_id,
                "active_month": month_to_timestamp(row.active_month),
                "lifecycle_status": row.lifecycle_status.value,
            }
            for row in rows
        ],
        columns=USER_LIFECYCLE_COLUMNS,
    )


def retention_between_to_dataframe(result: RetentionBetweenResult) -> pd.DataFrame:
    """Convert a retention-between result to a single-row DataFrame."""
    return pd.DataFrame(
        [
            {
                "start_month": month_to_timestamp(result.start_month),
                "target_month": month_to_timestamp(result.target_month),
                "initial_users": result.initial_users,
                "retained_users": result.retained_users,
                "retention_rate": decimal_to_float(result.retention_rate),
            }
        ]
    )


def churn_at_to_dataframe(result: ChurnAtResult) -> pd.DataFrame:
    """Convert a churn-at result to a single-row DataFrame."""
    return pd.DataFrame(
        [
            {
                "reference_month": month_to_timestamp(result.reference_month),
                "previous_month": month_to_timestamp(result.previous_month),
                "starting_users": result.starting_users,
                "churned_users": result.churned_users,
                "churn_rate": decimal_to_float(result.churn_rate),
            }
        ]
    )


def analyze_churn_df(
    activity_df: pd.DataFrame,
    config: Optional[AnalyzerConfig] = None,
    user_col: str = "user_id",
    month_col: str = "active_month",
) -> Dict[str, pd.DataFrame]:
    """Run the monthly churn audit reports on an activity DataFrame.

    Convenience function combining conversion and analysis.

    Args:
        activity_df: DataFrame with user and activity date columns
        config: Optional analysis window and churn policy
        user_col: Name of the user identifier column
        month_col: Name of the activity date column

    Returns:
        Dictionary with keys:
        - 'retention': monthly retention
        - 'churn': monthly churn
        - 'lifecycle': lifecycle counts per month and label

    Example:
        >>> reports = analyze_churn_df(events, month_col="event_ts")
        >>> reports["retention"].to_csv("retention.csv", index=False)
    """
    # Convert DataFrame -> ActivityLog
    loaded = dataframe_to_activity(activity_df, user_col=user_col, month_col=month_col)

    # Use core API
    analyzer = ChurnAnalyzer(loaded.log, config=config, skipped_rows=loaded.skipped_rows)

    return {
        "retention": retention_to_dataframe(analyzer.monthly_retention()),
        "churn": churn_to_dataframe(analyzer.monthly_churn()),
        "lifecycle": lifecycle_to_dataframe(analyzer.lifecycle_status()),
    }
