"""Foundational building blocks for churn analysis.

This package exposes the activity contract (one row per user-month), the
calendar-month arithmetic every analysis relies on, and the toolkit's
exception types.
"""

from .activity import (
    ActivityContract,
    ActivityFact,
    ActivityLoadResult,
    ActivityLog,
)
from .errors import ChurnAuditError, DateArithmeticError, InvalidActivityError
from .months import (
    add_months,
    format_month,
    month_range,
    month_start,
    months_between,
    next_month,
    parse_month,
    previous_month,
)

__all__ = [
    "ActivityContract",
    "ActivityFact",
    "ActivityLoadResult",
    "ActivityLog",
    "ChurnAuditError",
    "DateArithmeticError",
    "InvalidActivityError",
    "add_months",
    "format_month",
    "month_range",
    "month_start",
    "months_between",
    "next_month",
    "parse_month",
    "previous_month",
]
