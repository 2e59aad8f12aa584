"""Pandas DataFrame adapters for churn audit components."""

from .activity import (
    activity_to_dataframe,
    dataframe_to_activity,
)
from .results import (
    analyze_churn_df,
    churn_at_to_dataframe,
    churn_to_dataframe,
    lifecycle_to_dataframe,
    retention_between_to_dataframe,
    retention_to_dataframe,
    user_lifecycle_to_dataframe,
)

__all__ = [
    # Activity adapters
    "activity_to_dataframe",
    "dataframe_to_activity",
    # Report adapters
    "analyze_churn_df",
    "churn_at_to_dataframe",
    "churn_to_dataframe",
    "lifecycle_to_dataframe",
    "retention_between_to_dataframe",
    "retention_to_dataframe",
    "user_lifecycle_to_dataframe",
]
