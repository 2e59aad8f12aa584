"""Month-over-month retention.

Two views are provided:

- :func:`calculate_monthly_retention` reports, for every month in the log,
  how many active users were also active in the month immediately before.
- :func:`calculate_retention_between` compares two explicit months, the way a
  parameterised report takes ``@StartMonth`` / ``@TargetMonth``.

Note: monthly retention is attributed to the *arriving* month. A user active
in January and February counts as retained in February, not January.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from churn_audit.analyses._rates import (
    FRACTION_PRECISION,
    PARAMETER_PRECISION,
    safe_ratio,
)
from churn_audit.foundation.activity import ActivityLog
from churn_audit.foundation.errors import InvalidActivityError
from churn_audit.foundation.months import MonthLike, format_month, next_month, parse_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyRetentionRow:
    """Retention summary for a single month.

    Attributes
    ----------
    active_month:
        Month being summarised.
    retained_users:
        Users active in this month whose previous active month was the
        month immediately before.
    total_active_users:
        Distinct users active in this month.
    retention_rate:
        ``retained_users / total_active_users`` as a fraction in [0, 1],
        rounded to 2 decimal places (0 when no users are active).
    """

    active_month: date
    retained_users: int
    total_active_users: int
    retention_rate: Decimal

    def __post_init__(self) -> None:
        if not 0 <= self.retained_users <= self.total_active_users:
            raise ValueError(
                f"retained_users ({self.retained_users}) must be between 0 and "
                f"total_active_users ({self.total_active_users})"
            )
        if not 0 <= self.retention_rate <= 1:
            raise ValueError(f"Retention rate must be 0-1: {self.retention_rate}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "active_month": self.active_month,
            "retained_users": self.retained_users,
            "total_active_users": self.total_active_users,
            "retention_rate": self.retention_rate,
        }


@dataclass(frozen=True)
class RetentionBetweenResult:
    """Retention of one month's users into a later month.

    Attributes
    ----------
    start_month:
        Month defining the initial population.
    target_month:
        Month in which retention is measured.
    initial_users:
        Distinct users active in ``start_month``.
    retained_users:
        Initial users also active in ``target_month``.
    retention_rate:
        Percentage (0-100) of initial users retained. The ratio is rounded to
        4 decimal places before scaling, so 1/3 reports as ``33.33``.
    """

    start_month: date
    target_month: date
    initial_users: int
    retained_users: int
    retention_rate: Decimal

    def __post_init__(self) -> None:
        if not 0 <= self.retained_users <= self.initial_users:
            raise ValueError(
                f"retained_users ({self.retained_users}) must be between 0 and "
                f"initial_users ({self.initial_users})"
            )
        if not 0 <= self.retention_rate <= 100:
            raise ValueError(f"Retention rate must be 0-100: {self.retention_rate}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "start_month": self.start_month,
            "target_month": self.target_month,
            "initial_users": self.initial_users,
            "retained_users": self.retained_users,
            "retention_rate": self.retention_rate,
        }


def calculate_monthly_retention(log: ActivityLog) -> list[MonthlyRetentionRow]:
    """Summarise month-over-month retention for every month in the log.

    Parameters
    ----------
    log:
        Deduplicated activity facts.

    Returns
    -------
    list[MonthlyRetentionRow]
        One row per month present in the log, in ascending month order.

    Examples
    --------
    >>> from datetime import date
    >>> log = ActivityLog.from_pairs([
    ...     ("U1", date(2023, 1, 1)), ("U2", date(2023, 1, 1)), ("U1", date(2023, 2, 1)),
    ... ])
    >>> [(r.retained_users, r.total_active_users) for r in calculate_monthly_retention(log)]
    [(0, 2), (1, 1)]
    """
    retained_counts: dict[date, int] = {}
    for months in log.months_by_user.values():
        for prev, curr in zip(months, months[1:]):
            if next_month(prev) == curr:
                retained_counts[curr] = retained_counts.get(curr, 0) + 1

    rows: list[MonthlyRetentionRow] = []
    for month, users in log.users_by_month.items():
        retained = retained_counts.get(month, 0)
        total = len(users)
        rows.append(
            MonthlyRetentionRow(
                active_month=month,
                retained_users=retained,
                total_active_users=total,
                retention_rate=safe_ratio(retained, total, FRACTION_PRECISION),
            )
        )
    return rows


def calculate_retention_between(
    log: ActivityLog,
    start_month: MonthLike,
    target_month: MonthLike,
) -> RetentionBetweenResult:
    """Measure how many of ``start_month``'s users are active in ``target_month``.

    Parameters
    ----------
    log:
        Deduplicated activity facts.
    start_month:
        First day of the month defining the initial population. Accepts a
        ``date``, ``datetime`` or ISO string.
    target_month:
        First day of the month in which retention is measured. Must not be
        earlier than ``start_month``.

    Raises
    ------
    InvalidActivityError
        If either month is malformed, not a first-of-month date, or
        ``target_month`` precedes ``start_month``.

    Examples
    --------
    >>> from datetime import date
    >>> log = ActivityLog.from_pairs([
    ...     ("U1", date(2023, 1, 1)), ("U2", date(2023, 1, 1)), ("U1", date(2023, 2, 1)),
    ... ])
    >>> result = calculate_retention_between(log, "2023-01-01", "2023-02-01")
    >>> result.initial_users, result.retained_users, float(result.retention_rate)
    (2, 1, 50.0)
    """
    start = parse_month(start_month)
    target = parse_month(target_month)
    if target < start:
        raise InvalidActivityError(
            f"target_month {target.isoformat()} precedes start_month {start.isoformat()}"
        )

    initial = log.users_in(start)
    if not initial:
        logger.warning(
            f"No users active in start month {format_month(start)}; "
            f"retention rate reported as 0"
        )
    retained = initial & log.users_in(target)

    ratio = safe_ratio(len(retained), len(initial), PARAMETER_PRECISION)
    return RetentionBetweenResult(
        start_month=start,
        target_month=target,
        initial_users=len(initial),
        retained_users=len(retained),
        retention_rate=ratio * 100,
    )
