"""Tests for churn audit pandas adapters."""

from datetime import date

import pandas as pd  # type: ignore
import pytest

from churn_audit.analyses import AnalyzerConfig, ChurnAnalyzer, ChurnHorizonPolicy
from churn_audit.foundation import ActivityLog, InvalidActivityError
from churn_audit.pandas import (
    activity_to_dataframe,
    analyze_churn_df,
    churn_at_to_dataframe,
    churn_to_dataframe,
    dataframe_to_activity,
    lifecycle_to_dataframe,
    retention_between_to_dataframe,
    retention_to_dataframe,
    user_lifecycle_to_dataframe,
)


@pytest.fixture
def events_df():
    """Event-level rows: several events per user-month."""
    return pd.DataFrame(
        {
            "user_id": ["U1", "U1", "U2", "U1", "U1"],
            "event_ts": pd.to_datetime(
                [
                    "2023-01-03 09:00",
                    "2023-01-28 17:30",
                    "2023-01-15 12:00",
                    "2023-02-02 08:15",
                    "2023-04-11 10:00",
                ]
            ),
        }
    )


class TestDataFrameToActivity:
    """Test DataFrame -> ActivityLog conversion."""

    def test_truncates_and_deduplicates(self, events_df):
        result = dataframe_to_activity(events_df, month_col="event_ts")

        assert len(result.log) == 4
        assert result.duplicate_rows == 1
        assert result.skipped_rows == 0
        assert result.log.months_by_user["U1"] == (
            date(2023, 1, 1),
            date(2023, 2, 1),
            date(2023, 4, 1),
        )

    def test_missing_column_raises(self, events_df):
        with pytest.raises(ValueError, match="missing required columns"):
            dataframe_to_activity(events_df)

    def test_null_rows_skipped(self):
        df = pd.DataFrame(
            {
                "user_id": ["U1", None, "U3"],
                "active_month": pd.to_datetime(["2023-01-01", "2023-01-01", None]),
            }
        )
        result = dataframe_to_activity(df)
        assert len(result.log) == 1
        assert result.skipped_rows == 2

    @pytest.mark.parametrize(
        "users",
        [
            pd.array(["U1", None, "U3"], dtype="string"),
            pd.array([1, None, 3], dtype="Int64"),
            pd.array(["U1", pd.NA, "U3"], dtype=object),
        ],
        ids=["string", "Int64", "object-na"],
    )
    def test_nullable_user_ids_skipped(self, users):
        df = pd.DataFrame(
            {"user_id": users, "active_month": ["2023-01-01"] * 3}
        )
        result = dataframe_to_activity(df)

        assert result.skipped_rows == 1
        assert len(result.log) == 2
        assert "<NA>" not in result.log.users

    @pytest.mark.parametrize(
        "months",
        [
            pd.array(["2023-01-01", None], dtype="string"),
            pd.array(["2023-01-01", pd.NA], dtype=object),
        ],
        ids=["string", "object-na"],
    )
    def test_nullable_months_skipped(self, months):
        df = pd.DataFrame({"user_id": ["U1", "U2"], "active_month": months})
        result = dataframe_to_activity(df)

        assert result.skipped_rows == 1
        assert result.log.users == frozenset({"U1"})

    def test_nullable_user_id_raises_in_strict_mode(self):
        df = pd.DataFrame(
            {
                "user_id": pd.array(["U1", None], dtype="string"),
                "active_month": ["2023-01-01", "2023-01-01"],
            }
        )
        with pytest.raises(InvalidActivityError, match="Row 1"):
            dataframe_to_activity(df, strict=True)

    def test_null_rows_raise_in_strict_mode(self):
        df = pd.DataFrame({"user_id": [None], "active_month": ["2023-01-01"]})
        with pytest.raises(InvalidActivityError):
            dataframe_to_activity(df, strict=True)

    def test_string_months(self):
        df = pd.DataFrame(
            {"user_id": ["U1", "U2"], "active_month": ["2023-01-01", "2023-02-17"]}
        )
        result = dataframe_to_activity(df)
        assert result.log.months == (date(2023, 1, 1), date(2023, 2, 1))

    def test_period_months(self):
        df = pd.DataFrame(
            {
                "user_id": ["U1", "U1"],
                "active_month": pd.PeriodIndex(["2023-01", "2023-02"], freq="M"),
            }
        )
        result = dataframe_to_activity(df)
        assert result.log.months == (date(2023, 1, 1), date(2023, 2, 1))

    def test_float_widened_integer_ids(self):
        df = pd.DataFrame(
            {
                "user_id": [7, None, 8],
                "active_month": ["2023-01-01", "2023-01-01", "2023-01-01"],
            }
        )
        result = dataframe_to_activity(df)
        assert result.log.users == frozenset({"7", "8"})
        assert result.skipped_rows == 1

    def test_round_trip_to_dataframe(self, events_df):
        log = dataframe_to_activity(events_df, month_col="event_ts").log
        df = activity_to_dataframe(log)

        assert list(df.columns) == ["user_id", "active_month"]
        assert len(df) == 4
        assert df["active_month"].iloc[0] == pd.Timestamp("2023-01-01")

    def test_empty_log_to_dataframe(self):
        df = activity_to_dataframe(ActivityLog())
        assert list(df.columns) == ["user_id", "active_month"]
        assert df.empty


class TestReportDataFrames:
    """Test report row -> DataFrame conversion."""

    @pytest.fixture
    def analyzer(self, events_df):
        log = dataframe_to_activity(events_df, month_col="event_ts").log
        return ChurnAnalyzer(log)

    def test_retention_dataframe(self, analyzer):
        df = retention_to_dataframe(analyzer.monthly_retention())
        assert list(df.columns) == [
            "active_month",
            "retained_users",
            "total_active_users",
            "retention_rate",
        ]
        assert df["total_active_users"].tolist() == [2, 1, 1]
        assert df["retention_rate"].tolist() == [0.0, 1.0, 0.0]

    def test_churn_dataframe(self, analyzer):
        df = churn_to_dataframe(analyzer.monthly_churn())
        assert df["churn_month"].tolist() == [
            pd.Timestamp("2023-02-01"),
            pd.Timestamp("2023-03-01"),
        ]
        assert df["churned_users"].tolist() == [1, 1]
        assert df["churn_rate"].tolist() == [0.5, 1.0]

    def test_lifecycle_dataframe_pivots(self, analyzer):
        df = lifecycle_to_dataframe(analyzer.lifecycle_status())
        wide = df.pivot(
            index="active_month", columns="lifecycle_status", values="user_count"
        ).fillna(0)
        assert wide.loc[pd.Timestamp("2023-01-01"), "New"] == 2
        assert wide.loc[pd.Timestamp("2023-04-01"), "Resurrected"] == 1

    def test_user_lifecycle_dataframe(self, analyzer):
        df = user_lifecycle_to_dataframe(analyzer.user_lifecycle())
        assert list(df.columns) == ["user_id", "active_month", "lifecycle_status"]
        assert df[df["user_id"] == "U1"]["lifecycle_status"].tolist() == [
            "New",
            "Retained",
            "Resurrected",
        ]

    def test_single_row_results(self, analyzer):
        between = retention_between_to_dataframe(
            analyzer.retention_between("2023-01-01", "2023-02-01")
        )
        assert between["retention_rate"].iloc[0] == 50.0
        churn = churn_at_to_dataframe(analyzer.churn_at("2023-02-01"))
        assert churn["churned_users"].iloc[0] == 1
        assert churn["previous_month"].iloc[0] == pd.Timestamp("2023-01-01")

    def test_empty_reports_keep_columns(self):
        assert list(retention_to_dataframe([]).columns)[0] == "active_month"
        assert list(churn_to_dataframe([]).columns)[0] == "churn_month"
        assert list(lifecycle_to_dataframe([]).columns) == [
            "active_month",
            "lifecycle_status",
            "user_count",
        ]
        assert user_lifecycle_to_dataframe([]).empty


def test_analyze_churn_df(events_df):
    reports = analyze_churn_df(
        events_df,
        config=AnalyzerConfig(churn_policy=ChurnHorizonPolicy.TREAT_AS_CHURN),
        month_col="event_ts",
    )
    assert set(reports) == {"retention", "churn", "lifecycle"}
    # U1's April activity churns into May under the unbounded policy
    assert reports["churn"]["churn_month"].iloc[-1] == pd.Timestamp("2023-05-01")
