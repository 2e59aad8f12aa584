"""ChurnAnalyzer: retention, churn and lifecycle over one activity window.

The analyzer binds an :class:`ActivityLog` to an :class:`AnalyzerConfig`
(month window and churn horizon policy) and exposes the five churn audit
reports as methods. It holds no mutable state; every call recomputes from the
same immutable facts and returns the same rows.

Quick Start
-----------
>>> from datetime import date
>>> from churn_audit.analyses.analyzer import ChurnAnalyzer
>>> analyzer = ChurnAnalyzer.from_records([
...     {"user_id": "U1", "active_month": "2023-01-01"},
...     {"user_id": "U2", "active_month": "2023-01-01"},
...     {"user_id": "U1", "active_month": "2023-02-01"},
... ])
>>> float(analyzer.retention_between("2023-01-01", "2023-02-01").retention_rate)
50.0
>>> float(analyzer.churn_at("2023-02-01").churn_rate)
50.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from churn_audit.analyses.churn import (
    ChurnAtResult,
    ChurnHorizonPolicy,
    MonthlyChurnRow,
    calculate_churn_at,
    calculate_monthly_churn,
)
from churn_audit.analyses.lifecycle import (
    LifecycleCountRow,
    UserLifecycle,
    UserMonthlyStatus,
    build_user_monthly_status,
    classify_users,
    count_lifecycle_status,
)
from churn_audit.analyses.retention import (
    MonthlyRetentionRow,
    RetentionBetweenResult,
    calculate_monthly_retention,
    calculate_retention_between,
)
from churn_audit.foundation.activity import (
    ActivityContract,
    ActivityFact,
    ActivityLog,
)
from churn_audit.foundation.errors import InvalidActivityError
from churn_audit.foundation.months import MonthLike, format_month, parse_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyzerConfig:
    """Configuration for a churn analysis window.

    Attributes
    ----------
    start_month:
        Inclusive first month of the window. Facts before it are dropped.
        None keeps everything from the earliest fact.
    end_month:
        Inclusive final month of the window (the churn horizon). Facts after
        it are dropped. None uses the latest month present in the data.
    churn_policy:
        Treatment of churn inferred from activity in the horizon month.
    """

    start_month: date | None = None
    end_month: date | None = None
    churn_policy: ChurnHorizonPolicy = ChurnHorizonPolicy.EXCLUDE_FINAL_MONTH

    def __post_init__(self) -> None:
        if self.start_month is not None:
            object.__setattr__(self, "start_month", parse_month(self.start_month))
        if self.end_month is not None:
            object.__setattr__(self, "end_month", parse_month(self.end_month))
        if (
            self.start_month is not None
            and self.end_month is not None
            and self.start_month > self.end_month
        ):
            raise InvalidActivityError(
                f"start_month {self.start_month.isoformat()} must not be after "
                f"end_month {self.end_month.isoformat()}"
            )
        object.__setattr__(self, "churn_policy", ChurnHorizonPolicy(self.churn_policy))


class ChurnAnalyzer:
    """Compute retention, churn and lifecycle reports from activity facts.

    Parameters
    ----------
    facts:
        An :class:`ActivityLog` or any iterable of :class:`ActivityFact`.
        Duplicates are collapsed.
    config:
        Analysis window and churn policy. Defaults to the full data range
        with the horizon month excluded from churn.
    skipped_rows:
        Number of malformed source rows rejected before the facts were
        built. Reported back through :meth:`summary`.
    """

    def __init__(
        self,
        facts: ActivityLog | Iterable[ActivityFact],
        config: AnalyzerConfig | None = None,
        skipped_rows: int = 0,
    ) -> None:
        self.config = config or AnalyzerConfig()
        source = facts if isinstance(facts, ActivityLog) else ActivityLog(tuple(facts))
        self.log = source.restrict(self.config.start_month, self.config.end_month)
        self.skipped_rows = skipped_rows

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any] | Sequence[Any]],
        config: AnalyzerConfig | None = None,
        contract: ActivityContract | None = None,
    ) -> "ChurnAnalyzer":
        """Validate raw rows and build an analyzer from the valid ones.

        Malformed rows are skipped and counted (see
        :class:`ActivityContract`); pass a strict contract to raise instead.
        """
        contract = contract or ActivityContract()
        result = contract.validate_records(records)
        return cls(result.log, config=config, skipped_rows=result.skipped_rows)

    @property
    def horizon(self) -> date | None:
        """Final month of the analysis window."""
        return self.config.end_month or self.log.last_month

    def user_monthly_status(self) -> list[UserMonthlyStatus]:
        """Each (user, month) paired with the user's previous active month."""
        return build_user_monthly_status(self.log)

    def monthly_retention(self) -> list[MonthlyRetentionRow]:
        """Month-over-month retention for every month in the window."""
        return calculate_monthly_retention(self.log)

    def monthly_churn(self) -> list[MonthlyChurnRow]:
        """Inferred churn events per churn month under the configured policy."""
        return calculate_monthly_churn(
            self.log, policy=self.config.churn_policy, horizon=self.horizon
        )

    def lifecycle_status(self) -> list[LifecycleCountRow]:
        """User counts per (month, lifecycle label)."""
        return count_lifecycle_status(self.log)

    def user_lifecycle(self) -> list[UserLifecycle]:
        """Lifecycle label for every (user, month) pair."""
        return classify_users(self.log)

    def retention_between(
        self, start_month: MonthLike, target_month: MonthLike
    ) -> RetentionBetweenResult:
        """Share of ``start_month`` users still active in ``target_month``."""
        return calculate_retention_between(self.log, start_month, target_month)

    def churn_at(self, reference_month: MonthLike) -> ChurnAtResult:
        """Share of the previous month's users absent in ``reference_month``."""
        return calculate_churn_at(self.log, reference_month)

    def summary(self) -> dict[str, Any]:
        first = self.log.first_month
        last = self.log.last_month
        return {
            "first_month": format_month(first) if first else None,
            "last_month": format_month(last) if last else None,
            "horizon": format_month(self.horizon) if self.horizon else None,
            "months": len(self.log.months),
            "users": len(self.log.users),
            "facts": len(self.log),
            "skipped_rows": self.skipped_rows,
            "churn_policy": self.config.churn_policy.value,
        }
