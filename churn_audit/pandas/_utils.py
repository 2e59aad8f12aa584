"""Shared utilities for pandas conversion operations."""

from datetime import date
from decimal import Decimal

import pandas as pd  # type: ignore


def decimal_to_float(value: Decimal) -> float:
    """Convert Decimal to float for pandas compatibility."""
    return float(value)


def month_to_timestamp(value: date) -> pd.Timestamp:
    """Convert a first-of-month date to a pandas Timestamp.

    Timestamps keep the month columns as ``datetime64[ns]`` so they sort,
    filter and resample like any other pandas time column.
    """
    return pd.Timestamp(value)
