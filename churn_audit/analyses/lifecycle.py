"""User lifecycle classification (New / Retained / Resurrected).

Every (user, active month) pair in an activity log receives exactly one
lifecycle label:

- **New**: the user's first active month.
- **Retained**: the user was also active in the immediately preceding month.
- **Resurrected**: the user returns after a gap of more than one month.
- **Churned/Unknown**: fallback for statuses that fit none of the above.

The fallback never fires for statuses derived from an :class:`ActivityLog`
(the first three rules are exhaustive once months are distinct and
ascending). It is kept so that hand-built or externally supplied statuses
with an inconsistent history are still labelled rather than rejected, and so
downstream consumers that expect the label in their schema keep working.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from churn_audit.foundation.activity import ActivityLog
from churn_audit.foundation.months import months_between, next_month


class LifecycleLabel(str, Enum):
    """Lifecycle status of a user in one active month."""

    NEW = "New"
    RETAINED = "Retained"
    RESURRECTED = "Resurrected"
    CHURNED_UNKNOWN = "Churned/Unknown"


@dataclass(frozen=True)
class UserMonthlyStatus:
    """One user's active month paired with the month before it.

    Attributes
    ----------
    user_id:
        User identifier.
    active_month:
        Month in which the user was active.
    prev_active_month:
        The user's previous distinct active month, or None for the first.
    first_active_month:
        The user's earliest active month.
    """

    user_id: str
    active_month: date
    prev_active_month: date | None
    first_active_month: date

    @property
    def gap_months(self) -> int | None:
        """Months elapsed since the previous active month (None if first)."""
        if self.prev_active_month is None:
            return None
        return months_between(self.prev_active_month, self.active_month)


@dataclass(frozen=True)
class UserLifecycle:
    """Lifecycle label assigned to a single (user, month) pair."""

    user_id: str
    active_month: date
    lifecycle_status: LifecycleLabel

    def as_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "active_month": self.active_month,
            "lifecycle_status": self.lifecycle_status.value,
        }


@dataclass(frozen=True)
class LifecycleCountRow:
    """Number of users carrying a lifecycle label in a month."""

    active_month: date
    lifecycle_status: LifecycleLabel
    user_count: int

    def __post_init__(self) -> None:
        if self.user_count < 0:
            raise ValueError(f"user_count must be non-negative: {self.user_count}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "active_month": self.active_month,
            "lifecycle_status": self.lifecycle_status.value,
            "user_count": self.user_count,
        }


def build_user_monthly_status(log: ActivityLog) -> list[UserMonthlyStatus]:
    """Pair each user's active months with their immediate predecessor.

    Returns
    -------
    list[UserMonthlyStatus]
        One entry per (user, active month), ordered by month then user.

    Examples
    --------
    >>> from datetime import date
    >>> log = ActivityLog.from_pairs([("U1", date(2023, 1, 1)), ("U1", date(2023, 3, 1))])
    >>> [s.prev_active_month for s in build_user_monthly_status(log)]
    [None, datetime.date(2023, 1, 1)]
    """
    statuses: list[UserMonthlyStatus] = []
    for user_id, months in log.months_by_user.items():
        first = months[0]
        previous: date | None = None
        for month in months:
            statuses.append(
                UserMonthlyStatus(
                    user_id=user_id,
                    active_month=month,
                    prev_active_month=previous,
                    first_active_month=first,
                )
            )
            previous = month
    statuses.sort(key=lambda s: (s.active_month, s.user_id))
    return statuses


def classify_status(status: UserMonthlyStatus) -> LifecycleLabel:
    """Assign the lifecycle label for one user-month status."""
    if status.active_month == status.first_active_month:
        return LifecycleLabel.NEW
    if status.prev_active_month is not None:
        if next_month(status.prev_active_month) == status.active_month:
            return LifecycleLabel.RETAINED
        if status.gap_months > 1:
            return LifecycleLabel.RESURRECTED
    return LifecycleLabel.CHURNED_UNKNOWN


def classify_users(log: ActivityLog) -> list[UserLifecycle]:
    """Label every (user, active month) pair in the log."""
    return [
        UserLifecycle(
            user_id=status.user_id,
            active_month=status.active_month,
            lifecycle_status=classify_status(status),
        )
        for status in build_user_monthly_status(log)
    ]


def count_lifecycle_status(log: ActivityLog) -> list[LifecycleCountRow]:
    """Count users per (active month, lifecycle label).

    Rows are ordered by month, then by label text. Only combinations with at
    least one user are returned.

    Examples
    --------
    >>> from datetime import date
    >>> log = ActivityLog.from_pairs(
    ...     [("U1", date(2023, 1, 1)), ("U1", date(2023, 2, 1)), ("U1", date(2023, 4, 1))]
    ... )
    >>> [(r.active_month.month, r.lifecycle_status.value) for r in count_lifecycle_status(log)]
    [(1, 'New'), (2, 'Retained'), (4, 'Resurrected')]
    """
    counts = Counter(
        (labelled.active_month, labelled.lifecycle_status)
        for labelled in classify_users(log)
    )
    return [
        LifecycleCountRow(active_month=month, lifecycle_status=label, user_count=count)
        for (month, label), count in sorted(
            counts.items(), key=lambda item: (item[0][0], item[0][1].value)
        )
    ]
