"""Exception types raised by the churn audit toolkit.

All errors derive from :class:`ValueError` so callers that already guard
analytics code with ``except ValueError`` keep working.
"""

from __future__ import annotations


class ChurnAuditError(ValueError):
    """Base class for churn audit errors."""


class InvalidActivityError(ChurnAuditError):
    """An activity row or operation parameter is malformed.

    Raised for null or empty user identifiers, unparseable dates, dates that
    are not the first day of a month where one is required, and inverted
    month ranges.
    """


class DateArithmeticError(ChurnAuditError):
    """A month shift would leave the representable calendar range."""
