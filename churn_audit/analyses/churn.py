"""Inferred churn.

Churn is never observed directly: a user is considered churned entering month
``M + 1`` when they were active in ``M`` and their next active month is
either missing or more than one month later.

"Missing" is ambiguous at the edge of the data. A user active in the last
month of the log has no later record simply because the log ends there.
:class:`ChurnHorizonPolicy` makes the treatment of that month explicit:

- ``EXCLUDE_FINAL_MONTH`` (default) suppresses churn inferred from activity in
  the horizon month.
- ``TREAT_AS_CHURN`` counts it, matching an unbounded reading of the data.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from churn_audit.analyses._rates import (
    FRACTION_PRECISION,
    PARAMETER_PRECISION,
    safe_percentage,
    safe_ratio,
)
from churn_audit.foundation.activity import ActivityLog
from churn_audit.foundation.months import (
    MonthLike,
    format_month,
    next_month,
    parse_month,
    previous_month,
)

logger = logging.getLogger(__name__)


class ChurnHorizonPolicy(str, Enum):
    """How to treat users whose last observed activity is the horizon month."""

    EXCLUDE_FINAL_MONTH = "exclude-final-month"
    TREAT_AS_CHURN = "treat-as-churn"


@dataclass(frozen=True)
class MonthlyChurnRow:
    """Churn events entering a month.

    Attributes
    ----------
    churn_month:
        First month in which the churned users were no longer active.
    churned_users:
        Users active in the preceding month who were not active in
        ``churn_month``.
    previous_active_users:
        Distinct users active in the month before ``churn_month``.
    churn_rate:
        ``churned_users / previous_active_users`` as a fraction in [0, 1],
        rounded to 2 decimal places.
    """

    churn_month: date
    churned_users: int
    previous_active_users: int
    churn_rate: Decimal

    def __post_init__(self) -> None:
        if not 0 <= self.churned_users <= self.previous_active_users:
            raise ValueError(
                f"churned_users ({self.churned_users}) must be between 0 and "
                f"previous_active_users ({self.previous_active_users})"
            )
        if not 0 <= self.churn_rate <= 1:
            raise ValueError(f"Churn rate must be 0-1: {self.churn_rate}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "churn_month": self.churn_month,
            "churned_users": self.churned_users,
            "previous_active_users": self.previous_active_users,
            "churn_rate": self.churn_rate,
        }


@dataclass(frozen=True)
class ChurnAtResult:
    """Churn between a reference month and the month before it.

    Attributes
    ----------
    reference_month:
        Month in which absence is measured.
    previous_month:
        Month immediately before ``reference_month``; defines the starting
        population.
    starting_users:
        Distinct users active in ``previous_month``.
    churned_users:
        Starting users not active in ``reference_month``.
    churn_rate:
        Percentage (0-100) of starting users who churned, rounded to 4
        decimal places.
    """

    reference_month: date
    previous_month: date
    starting_users: int
    churned_users: int
    churn_rate: Decimal

    def __post_init__(self) -> None:
        if not 0 <= self.churned_users <= self.starting_users:
            raise ValueError(
                f"churned_users ({self.churned_users}) must be between 0 and "
                f"starting_users ({self.starting_users})"
            )
        if not 0 <= self.churn_rate <= 100:
            raise ValueError(f"Churn rate must be 0-100: {self.churn_rate}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "reference_month": self.reference_month,
            "previous_month": self.previous_month,
            "starting_users": self.starting_users,
            "churned_users": self.churned_users,
            "churn_rate": self.churn_rate,
        }


def calculate_monthly_churn(
    log: ActivityLog,
    policy: ChurnHorizonPolicy = ChurnHorizonPolicy.EXCLUDE_FINAL_MONTH,
    horizon: date | None = None,
) -> list[MonthlyChurnRow]:
    """Count inferred churn events per churn month.

    Parameters
    ----------
    log:
        Deduplicated activity facts.
    policy:
        Treatment of activity in the horizon month (see module docstring).
    horizon:
        Final month of the analysis window. Defaults to the latest month in
        the log. Only consulted under ``EXCLUDE_FINAL_MONTH``.

    Returns
    -------
    list[MonthlyChurnRow]
        One row per month with at least one churn event, ascending.

    Raises
    ------
    DateArithmeticError
        If churn would be inferred past the end of the supported calendar.

    Examples
    --------
    >>> from datetime import date
    >>> log = ActivityLog.from_pairs([
    ...     ("U1", date(2023, 1, 1)), ("U2", date(2023, 1, 1)), ("U1", date(2023, 2, 1)),
    ... ])
    >>> [(r.churn_month.month, r.churned_users) for r in calculate_monthly_churn(log)]
    [(2, 1)]
    """
    if horizon is None:
        horizon = log.last_month
    exclude_horizon = ChurnHorizonPolicy(policy) is ChurnHorizonPolicy.EXCLUDE_FINAL_MONTH

    events: Counter[date] = Counter()
    suppressed = 0
    for months in log.months_by_user.values():
        following = list(months[1:]) + [None]
        for month, next_active in zip(months, following):
            if next_active is not None and next_month(month) == next_active:
                continue
            if exclude_horizon and horizon is not None and month >= horizon:
                suppressed += 1
                continue
            events[next_month(month)] += 1

    if suppressed:
        logger.debug(
            f"Suppressed {suppressed} churn events inferred from horizon month "
            f"{format_month(horizon)}"
        )

    rows: list[MonthlyChurnRow] = []
    for churn_month, count in sorted(events.items()):
        base = len(log.users_in(previous_month(churn_month)))
        rows.append(
            MonthlyChurnRow(
                churn_month=churn_month,
                churned_users=count,
                previous_active_users=base,
                churn_rate=safe_ratio(count, base, FRACTION_PRECISION),
            )
        )
    return rows


def calculate_churn_at(log: ActivityLog, reference_month: MonthLike) -> ChurnAtResult:
    """Measure churn from the month before ``reference_month`` into it.

    Parameters
    ----------
    log:
        Deduplicated activity facts.
    reference_month:
        First day of the month in which absence is measured. Accepts a
        ``date``, ``datetime`` or ISO string.

    Raises
    ------
    InvalidActivityError
        If ``reference_month`` is malformed or not a first-of-month date.
    DateArithmeticError
        If ``reference_month`` has no calendar predecessor.

    Examples
    --------
    >>> from datetime import date
    >>> log = ActivityLog.from_pairs([
    ...     ("U1", date(2023, 1, 1)), ("U2", date(2023, 1, 1)), ("U1", date(2023, 2, 1)),
    ... ])
    >>> result = calculate_churn_at(log, "2023-02-01")
    >>> result.starting_users, result.churned_users, float(result.churn_rate)
    (2, 1, 50.0)
    """
    reference = parse_month(reference_month)
    prior = previous_month(reference)

    starting = log.users_in(prior)
    if not starting:
        logger.warning(
            f"No users active in {format_month(prior)}; churn rate reported as 0"
        )
    churned = starting - log.users_in(reference)

    return ChurnAtResult(
        reference_month=reference,
        previous_month=prior,
        starting_users=len(starting),
        churned_users=len(churned),
        churn_rate=safe_percentage(len(churned), len(starting), PARAMETER_PRECISION),
    )
