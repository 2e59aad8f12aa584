"""Unit tests for calendar-month arithmetic."""

from datetime import date, datetime

import pytest

from churn_audit.foundation.errors import DateArithmeticError, InvalidActivityError
from churn_audit.foundation.months import (
    add_months,
    format_month,
    month_range,
    month_start,
    months_between,
    next_month,
    parse_month,
    previous_month,
)


class TestMonthStart:
    """Test truncation to the first of the month."""

    def test_truncates_date(self):
        assert month_start(date(2023, 3, 31)) == date(2023, 3, 1)

    def test_truncates_datetime_to_date(self):
        result = month_start(datetime(2023, 3, 15, 23, 59))
        assert result == date(2023, 3, 1)
        assert not isinstance(result, datetime)

    def test_rejects_non_date(self):
        with pytest.raises(InvalidActivityError, match="Expected a date"):
            month_start("2023-03-01")


class TestMonthShifts:
    """Test successor and predecessor months."""

    def test_next_month_ignores_month_length(self):
        assert next_month(date(2023, 1, 1)) == date(2023, 2, 1)
        assert next_month(date(2024, 2, 1)) == date(2024, 3, 1)

    def test_next_month_wraps_year(self):
        assert next_month(date(2023, 12, 1)) == date(2024, 1, 1)

    def test_previous_month_wraps_year(self):
        assert previous_month(date(2024, 1, 1)) == date(2023, 12, 1)

    def test_add_months_multiple_years(self):
        assert add_months(date(2023, 5, 1), 20) == date(2025, 1, 1)
        assert add_months(date(2023, 5, 1), -17) == date(2021, 12, 1)

    def test_previous_month_before_calendar_start_raises(self):
        with pytest.raises(DateArithmeticError, match="supported calendar range"):
            previous_month(date(1, 1, 1))

    def test_next_month_after_calendar_end_raises(self):
        with pytest.raises(DateArithmeticError):
            next_month(date(9999, 12, 1))

    def test_date_arithmetic_error_is_value_error(self):
        with pytest.raises(ValueError):
            previous_month(date(1, 1, 1))


class TestMonthsBetween:
    def test_same_month_is_zero(self):
        assert months_between(date(2023, 4, 1), date(2023, 4, 1)) == 0

    def test_across_years(self):
        assert months_between(date(2022, 11, 1), date(2023, 2, 1)) == 3

    def test_negative_when_reversed(self):
        assert months_between(date(2023, 2, 1), date(2022, 11, 1)) == -3


class TestMonthRange:
    def test_inclusive_range(self):
        assert month_range(date(2023, 11, 1), date(2024, 2, 1)) == [
            date(2023, 11, 1),
            date(2023, 12, 1),
            date(2024, 1, 1),
            date(2024, 2, 1),
        ]

    def test_empty_when_start_after_end(self):
        assert month_range(date(2024, 2, 1), date(2023, 11, 1)) == []

    def test_last_representable_month(self):
        assert month_range(date(9999, 11, 1), date(9999, 12, 1)) == [
            date(9999, 11, 1),
            date(9999, 12, 1),
        ]


class TestParseMonth:
    """Test coercion of month parameters."""

    def test_iso_date_string(self):
        assert parse_month("2023-01-01") == date(2023, 1, 1)

    def test_year_month_shorthand(self):
        assert parse_month("2023-07") == date(2023, 7, 1)

    def test_date_passthrough(self):
        assert parse_month(date(2023, 7, 1)) == date(2023, 7, 1)

    def test_midnight_datetime_accepted(self):
        assert parse_month(datetime(2023, 7, 1)) == date(2023, 7, 1)

    def test_mid_month_rejected_when_strict(self):
        with pytest.raises(InvalidActivityError, match="first day of a month"):
            parse_month("2023-02-15")

    def test_mid_month_datetime_rejected_when_strict(self):
        with pytest.raises(InvalidActivityError, match="first day of a month"):
            parse_month(datetime(2023, 2, 1, 12, 30))

    def test_mid_month_truncated_when_lenient(self):
        assert parse_month("2023-02-15", require_first_day=False) == date(2023, 2, 1)
        assert parse_month(
            datetime(2023, 2, 15, 9), require_first_day=False
        ) == date(2023, 2, 1)

    def test_iso_timestamp_string(self):
        assert parse_month(
            "2023-02-15T10:00:00Z", require_first_day=False
        ) == date(2023, 2, 1)

    def test_timestamp_string_with_time_rejected_when_strict(self):
        with pytest.raises(InvalidActivityError, match="midnight on the first day"):
            parse_month("2023-02-01T10:30")

    def test_midnight_timestamp_string_accepted(self):
        assert parse_month("2023-02-01T00:00:00") == date(2023, 2, 1)

    @pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2023-13-01", "2023-02-30"])
    def test_unparseable_strings_rejected(self, value):
        with pytest.raises(InvalidActivityError):
            parse_month(value)

    def test_none_rejected(self):
        with pytest.raises(InvalidActivityError, match="must not be None"):
            parse_month(None)

    def test_unsupported_type_rejected(self):
        with pytest.raises(InvalidActivityError, match="Unsupported month type"):
            parse_month(202301)


def test_format_month():
    assert format_month(date(2023, 4, 1)) == "2023-04"
