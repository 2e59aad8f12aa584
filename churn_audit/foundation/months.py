"""Calendar-month arithmetic.

Every month in the toolkit is represented as a :class:`datetime.date` pinned
to the first day of the month. Shifting a month ignores day-of-month and
month length entirely, so ``next_month(date(2023, 1, 1))`` is always
``date(2023, 2, 1)``.

Quick Start
-----------
>>> from datetime import date
>>> from churn_audit.foundation.months import next_month, months_between
>>> next_month(date(2023, 12, 1))
datetime.date(2024, 1, 1)
>>> months_between(date(2023, 1, 1), date(2023, 4, 1))
3
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Union

from churn_audit.foundation.errors import DateArithmeticError, InvalidActivityError

MonthLike = Union[date, datetime, str]


def month_start(value: date | datetime) -> date:
    """Truncate a date or datetime to the first day of its month.

    Timezone information on datetimes is discarded after truncation; convert
    to the reporting timezone before calling if that matters.
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, 1)
    if isinstance(value, date):
        return date(value.year, value.month, 1)
    raise InvalidActivityError(
        f"Expected a date or datetime, got {type(value).__name__}: {value!r}"
    )


def is_month_start(value: date) -> bool:
    return value.day == 1


def _parse_iso(text: str) -> date | datetime:
    cleaned = text.strip()
    if not cleaned:
        raise InvalidActivityError("Empty string is not a valid month")

    # Accept "YYYY-MM" as shorthand for the first of the month
    if len(cleaned) == 7 and cleaned[4] == "-":
        cleaned = f"{cleaned}-01"

    try:
        if len(cleaned) == 10:
            return date.fromisoformat(cleaned)
        return datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidActivityError(
            f"Could not parse {text!r} as an ISO date (expected YYYY-MM-DD or YYYY-MM)"
        ) from exc


def parse_month(value: MonthLike, *, require_first_day: bool = True) -> date:
    """Coerce a month parameter into a first-of-month ``date``.

    Parameters
    ----------
    value:
        A ``date``, ``datetime`` or ISO string (``YYYY-MM-DD``, ``YYYY-MM`` or
        a full ISO timestamp).
    require_first_day:
        If True (default), reject values that are not the first day of a
        month instead of silently truncating them. Operation parameters use
        the strict form so a typo such as ``2023-02-15`` is reported rather
        than producing an empty result.

    Raises
    ------
    InvalidActivityError
        If the value is None, unparseable, or not a first-of-month date while
        ``require_first_day`` is set.

    Examples
    --------
    >>> parse_month("2023-02")
    datetime.date(2023, 2, 1)
    >>> parse_month("2023-02-15", require_first_day=False)
    datetime.date(2023, 2, 1)
    """
    if value is None:
        raise InvalidActivityError("Month value must not be None")

    if isinstance(value, str):
        value = _parse_iso(value)

    if isinstance(value, datetime):
        if require_first_day and (
            value.day != 1 or value.time() != datetime.min.time()
        ):
            raise InvalidActivityError(
                f"Month parameter must be midnight on the first day of a month: "
                f"{value.isoformat()}"
            )
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        raise InvalidActivityError(
            f"Unsupported month type {type(value).__name__}: {value!r}"
        )

    if require_first_day and not is_month_start(parsed):
        raise InvalidActivityError(
            f"Month parameter must be the first day of a month: {parsed.isoformat()}"
        )
    return month_start(parsed)


def add_months(month: date, count: int) -> date:
    """Shift a month by ``count`` calendar months (negative shifts backwards).

    Raises
    ------
    DateArithmeticError
        If the result falls outside ``date.min``..``date.max``.
    """
    index = month.year * 12 + (month.month - 1) + count
    year, month_index = divmod(index, 12)
    if not date.min.year <= year <= date.max.year:
        raise DateArithmeticError(
            f"Shifting {month.isoformat()} by {count} month(s) leaves the "
            f"supported calendar range"
        )
    return date(year, month_index + 1, 1)


def next_month(month: date) -> date:
    """Successor month: exactly one calendar month later."""
    return add_months(month, 1)


def previous_month(month: date) -> date:
    """Predecessor month: exactly one calendar month earlier."""
    return add_months(month, -1)


def months_between(earlier: date, later: date) -> int:
    """Number of calendar months from ``earlier`` to ``later``.

    Negative when ``later`` precedes ``earlier``. Days are ignored.
    """
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def month_range(start: date, end: date) -> list[date]:
    """Inclusive list of first-of-month dates from ``start`` to ``end``."""
    current = month_start(start)
    last = month_start(end)
    months: list[date] = []
    while current <= last:
        months.append(current)
        if current == last:
            break
        current = next_month(current)
    return months


def format_month(month: date) -> str:
    """Render a month as ``YYYY-MM`` for logs and cohort-style labels."""
    return month.strftime("%Y-%m")
