"""Pandas DataFrame adapters for activity logs."""

import pandas as pd  # type: ignore

from churn_audit.foundation.activity import (
    ActivityContract,
    ActivityLoadResult,
    ActivityLog,
)
from ._utils import month_to_timestamp


def _null_to_none(value):
    # None, NaN, NaT and pd.NA from nullable dtypes all become None
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    return value

def dataframe_to_activity(
    activity_df: pd.DataFrame,
    user_col: str = "user_id",
    month_col: str = "active_month",
    strict: bool = False,
) -> ActivityLoadResult:
    """Normalise an activity DataFrame into a deduplicated activity log.

    Any event-level table works: dates are truncated to the first of their
    month and repeated (user, month) pairs are collapsed.

    Args:
        activity_df: DataFrame with at least a user column and a date column
        user_col: Name of the user identifier column
        month_col: Name of the activity date column (datetime64, period,
            date objects or ISO strings)
        strict: If True, raise on the first malformed row instead of
            skipping it

    Returns:
        ActivityLoadResult with the log and skipped/duplicate row counts

    Raises:
        ValueError: If the DataFrame is missing the user or month column
        InvalidActivityError: In strict mode, for the first malformed row

    Example:
        >>> events = pd.read_csv("events.csv", parse_dates=["event_ts"])
        >>> result = dataframe_to_activity(events, month_col="event_ts")
        >>> print(f"{len(result.log)} user-months, {result.skipped_rows} skipped")
    """
    missing_cols = {user_col, month_col} - set(activity_df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    months = activity_df[month_col]
    if isinstance(months.dtype, pd.PeriodDtype):
        months = months.dt.to_timestamp()

    users = [_null_to_none(v) for v in activity_df[user_col].tolist()]
    if pd.api.types.is_float_dtype(activity_df[user_col]):
        # integer ids widened to float by missing values: 7.0 -> 7
        users = [
            int(v) if isinstance(v, float) and v.is_integer() else v for v in users
        ]

    pairs = zip(users, [_null_to_none(v) for v in months.tolist()])
    contract = ActivityContract(strict=strict)
    return contract.validate_records(pairs)


def activity_to_dataframe(log: ActivityLog) -> pd.DataFrame:
    """Convert an activity log to a DataFrame.

    Args:
        log: Deduplicated activity log

    Returns:
        DataFrame with columns user_id, active_month (datetime64), sorted by
        active_month then user_id
    """
    if not log:
        return pd.DataFrame(columns=["user_id", "active_month"])

    return pd.DataFrame(
        [
            {
                "user_id": fact.user_id,
                "active_month": month_to_timestamp(fact.active_month),
            }
            for fact in log
        ]
    )
