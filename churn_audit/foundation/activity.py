"""Activity log contract and value objects.

The activity contract captures the single input shape every churn analysis
relies on: *which user was active in which calendar month*. Upstream event
tables are normalised into :class:`ActivityFact` rows (one per user-month)
and collected into an immutable, deduplicated :class:`ActivityLog`.

Quick Start
-----------
>>> from datetime import date
>>> from churn_audit.foundation.activity import ActivityContract
>>> result = ActivityContract().validate_records(
...     [
...         {"user_id": "U1", "active_month": "2023-01-17"},
...         {"user_id": "U1", "active_month": date(2023, 1, 3)},
...         {"user_id": None, "active_month": "2023-02-01"},
...     ]
... )
>>> len(result.log), result.duplicate_rows, result.skipped_rows
(1, 1, 1)
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import cached_property
from typing import Any, Iterable, Mapping, Sequence

from churn_audit.foundation.errors import InvalidActivityError
from churn_audit.foundation.months import is_month_start, month_start, parse_month

logger = logging.getLogger(__name__)

#: Number of row-level error messages echoed into warning logs.
MAX_LOGGED_ERRORS = 5


@dataclass(frozen=True, order=True)
class ActivityFact:
    """One user observed active in one calendar month.

    Attributes
    ----------
    user_id:
        Opaque user identifier. Compared by equality only.
    active_month:
        First day of the calendar month in which the user was active.
    """

    user_id: str
    active_month: date

    def __post_init__(self) -> None:
        if not isinstance(self.user_id, str) or not self.user_id:
            raise InvalidActivityError(
                f"user_id must be a non-empty string: {self.user_id!r}"
            )
        if isinstance(self.active_month, datetime) or not isinstance(
            self.active_month, date
        ):
            raise InvalidActivityError(
                f"active_month must be a date (not datetime): {self.active_month!r}"
            )
        if not is_month_start(self.active_month):
            raise InvalidActivityError(
                f"active_month must be the first day of a month: "
                f"{self.active_month.isoformat()}"
            )


@dataclass(frozen=True)
class ActivityLog:
    """Immutable, deduplicated set of activity facts.

    Facts are deduplicated and sorted by ``(active_month, user_id)`` on
    construction, so two logs built from the same facts in any order compare
    equal. Derived indexes are computed lazily and cached.
    """

    facts: tuple[ActivityFact, ...] = ()

    def __post_init__(self) -> None:
        unique = sorted(set(self.facts), key=lambda f: (f.active_month, f.user_id))
        object.__setattr__(self, "facts", tuple(unique))

    def __len__(self) -> int:
        return len(self.facts)

    def __iter__(self):
        return iter(self.facts)

    def __bool__(self) -> bool:
        return bool(self.facts)

    @cached_property
    def users_by_month(self) -> Mapping[date, frozenset[str]]:
        """Distinct users active in each month, keyed by month ascending."""
        grouped: dict[date, set[str]] = defaultdict(set)
        for fact in self.facts:
            grouped[fact.active_month].add(fact.user_id)
        return {month: frozenset(users) for month, users in sorted(grouped.items())}

    @cached_property
    def months_by_user(self) -> Mapping[str, tuple[date, ...]]:
        """Each user's distinct active months in ascending order."""
        grouped: dict[str, list[date]] = defaultdict(list)
        # facts are already sorted by month, so each list is ascending
        for fact in self.facts:
            grouped[fact.user_id].append(fact.active_month)
        return {user: tuple(months) for user, months in sorted(grouped.items())}

    @property
    def months(self) -> tuple[date, ...]:
        return tuple(self.users_by_month)

    @property
    def users(self) -> frozenset[str]:
        return frozenset(self.months_by_user)

    @property
    def first_month(self) -> date | None:
        return self.facts[0].active_month if self.facts else None

    @property
    def last_month(self) -> date | None:
        return self.facts[-1].active_month if self.facts else None

    def users_in(self, month: date) -> frozenset[str]:
        """Users active in ``month`` (empty when nobody was)."""
        return self.users_by_month.get(month, frozenset())

    def restrict(self, start: date | None = None, end: date | None = None) -> "ActivityLog":
        """Return a new log containing only facts within ``[start, end]``.

        Raises
        ------
        InvalidActivityError
            If ``start`` is after ``end``.
        """
        if start is not None and end is not None and start > end:
            raise InvalidActivityError(
                f"start month {start.isoformat()} is after end month {end.isoformat()}"
            )
        kept = tuple(
            fact
            for fact in self.facts
            if (start is None or fact.active_month >= start)
            and (end is None or fact.active_month <= end)
        )
        dropped = len(self.facts) - len(kept)
        if dropped:
            logger.info(
                f"Excluded {dropped} out-of-range activity facts "
                f"(window {start} to {end})"
            )
        return ActivityLog(kept)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, date]]) -> "ActivityLog":
        """Build a log from ``(user_id, active_month)`` pairs.

        Months are truncated to the first of the month; any invalid pair
        raises :class:`InvalidActivityError`.
        """
        return cls(
            tuple(ActivityFact(user_id, month_start(month)) for user_id, month in pairs)
        )


@dataclass(frozen=True)
class ActivityLoadResult:
    """Outcome of validating raw activity rows.

    Attributes
    ----------
    log:
        Deduplicated facts built from the valid rows.
    skipped_rows:
        Number of rows rejected as malformed.
    duplicate_rows:
        Number of valid rows that repeated an earlier ``(user, month)`` pair.
    errors:
        One message per skipped row, in input order.
    """

    log: ActivityLog
    skipped_rows: int = 0
    duplicate_rows: int = 0
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_rows(self) -> int:
        return len(self.log) + self.skipped_rows + self.duplicate_rows


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    # pandas.NaT and similar sentinels compare unequal to themselves
    try:
        return bool(value != value)
    except TypeError:
        # pandas.NA propagates through comparisons and refuses bool()
        return True
    except ValueError:
        return False


class ActivityContract:
    """Validate raw activity rows and normalise them into an ActivityLog.

    Dates are truncated to the first day of their month and repeated
    ``(user, month)`` pairs are collapsed. Malformed rows are skipped and
    counted unless ``strict`` is set, in which case the first one raises.
    """

    DEFAULT_USER_FIELD = "user_id"
    DEFAULT_MONTH_FIELD = "active_month"

    def __init__(
        self,
        strict: bool = False,
        user_field: str = DEFAULT_USER_FIELD,
        month_field: str = DEFAULT_MONTH_FIELD,
    ) -> None:
        self.strict = strict
        self.user_field = user_field
        self.month_field = month_field

    def _extract(self, record: Mapping[str, Any] | Sequence[Any]) -> tuple[Any, Any]:
        if isinstance(record, Mapping):
            return record.get(self.user_field), record.get(self.month_field)
        if isinstance(record, (tuple, list)) and len(record) == 2:
            return record[0], record[1]
        raise InvalidActivityError(
            f"Expected a mapping or (user_id, active_month) pair, got {record!r}"
        )

    def normalise_row(self, record: Mapping[str, Any] | Sequence[Any]) -> ActivityFact:
        """Validate a single row and return its normalised fact.

        Raises
        ------
        InvalidActivityError
            If the user identifier or month is missing or malformed.
        """
        raw_user, raw_month = self._extract(record)

        if _is_missing(raw_user):
            raise InvalidActivityError(f"Missing {self.user_field}")
        user_id = str(raw_user).strip()
        if not user_id:
            raise InvalidActivityError(f"Blank {self.user_field}: {raw_user!r}")

        if _is_missing(raw_month):
            raise InvalidActivityError(f"Missing {self.month_field} for user {user_id}")
        try:
            active_month = parse_month(raw_month, require_first_day=False)
        except (TypeError, ValueError) as exc:
            raise InvalidActivityError(
                f"Invalid {self.month_field} for user {user_id}: {raw_month!r}"
            ) from exc

        return ActivityFact(user_id=user_id, active_month=active_month)

    def validate_records(
        self, records: Iterable[Mapping[str, Any] | Sequence[Any]]
    ) -> ActivityLoadResult:
        """Validate raw rows and build an :class:`ActivityLoadResult`.

        Parameters
        ----------
        records:
            Iterable of mappings keyed by :attr:`user_field` and
            :attr:`month_field`, or ``(user_id, active_month)`` pairs.
            Months may be dates, datetimes or ISO strings.

        Raises
        ------
        InvalidActivityError
            In strict mode, for the first malformed row (with its index).
        """
        seen: set[ActivityFact] = set()
        errors: list[str] = []
        duplicates = 0

        for idx, record in enumerate(records):
            try:
                fact = self.normalise_row(record)
            except InvalidActivityError as exc:
                if self.strict:
                    raise InvalidActivityError(f"Row {idx}: {exc}") from exc
                errors.append(f"Row {idx}: {exc}")
                continue

            if fact in seen:
                duplicates += 1
                continue
            seen.add(fact)

        if errors:
            logger.warning(
                f"Skipped {len(errors)} malformed activity rows. "
                f"First {min(len(errors), MAX_LOGGED_ERRORS)}: "
                f"{errors[:MAX_LOGGED_ERRORS]}"
            )
        if duplicates:
            logger.info(f"Collapsed {duplicates} duplicate (user, month) rows")

        return ActivityLoadResult(
            log=ActivityLog(tuple(seen)),
            skipped_rows=len(errors),
            duplicate_rows=duplicates,
            errors=tuple(errors),
        )
