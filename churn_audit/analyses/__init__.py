"""Churn audit analyses.

Reports computed from a monthly activity log:

1. Monthly retention - users active in consecutive months
2. Monthly churn - inferred departures, with an explicit horizon policy
3. Lifecycle status - New / Retained / Resurrected per user-month
4. Retention between two months - parameterised retention
5. Churn at a reference month - parameterised churn

:class:`ChurnAnalyzer` bundles all five over one analysis window.
"""

from .analyzer import AnalyzerConfig, ChurnAnalyzer
from .churn import (
    ChurnAtResult,
    ChurnHorizonPolicy,
    MonthlyChurnRow,
    calculate_churn_at,
    calculate_monthly_churn,
)
from .lifecycle import (
    LifecycleCountRow,
    LifecycleLabel,
    UserLifecycle,
    UserMonthlyStatus,
    build_user_monthly_status,
    classify_status,
    classify_users,
    count_lifecycle_status,
)
from .retention import (
    MonthlyRetentionRow,
    RetentionBetweenResult,
    calculate_monthly_retention,
    calculate_retention_between,
)

__all__ = [
    # Analyzer
    "AnalyzerConfig",
    "ChurnAnalyzer",
    # Churn
    "ChurnAtResult",
    "ChurnHorizonPolicy",
    "MonthlyChurnRow",
    "calculate_churn_at",
    "calculate_monthly_churn",
    # Lifecycle
    "LifecycleCountRow",
    "LifecycleLabel",
    "UserLifecycle",
    "UserMonthlyStatus",
    "build_user_monthly_status",
    "classify_status",
    "classify_users",
    "count_lifecycle_status",
    # Retention
    "MonthlyRetentionRow",
    "RetentionBetweenResult",
    "calculate_monthly_retention",
    "calculate_retention_between",
]
