from datetime import date

import pytest

from churn_audit.foundation import ActivityLog
from churn_audit.synthetic import ActivityScenarioConfig, generate_activity


def test_generate_activity_basic() -> None:
    facts = generate_activity(
        50, date(2023, 1, 1), date(2023, 12, 31), scenario=ActivityScenarioConfig(seed=7)
    )
    assert facts
    assert all(f.active_month.day == 1 for f in facts)
    assert all(date(2023, 1, 1) <= f.active_month <= date(2023, 12, 1) for f in facts)
    # every user appears at least in their acquisition month
    assert len({f.user_id for f in facts}) == 50
    # no duplicate user-months
    assert len(ActivityLog(tuple(facts))) == len(facts)


def test_generate_activity_is_reproducible() -> None:
    scenario = ActivityScenarioConfig(seed=42)
    first = generate_activity(30, date(2023, 1, 1), date(2023, 6, 1), scenario=scenario)
    second = generate_activity(30, date(2023, 1, 1), date(2023, 6, 1), scenario=scenario)
    assert first == second


def test_zero_hazard_keeps_users_active() -> None:
    scenario = ActivityScenarioConfig(churn_hazard=0.0, seed=1)
    facts = generate_activity(20, date(2023, 1, 1), date(2023, 6, 1), scenario=scenario)
    log = ActivityLog(tuple(facts))
    # users never lapse, so every user is active in the final month
    assert log.users_in(date(2023, 6, 1)) == log.users


def test_full_hazard_without_reactivation_gives_single_months() -> None:
    scenario = ActivityScenarioConfig(
        churn_hazard=1.0, reactivation_probability=0.0, seed=1
    )
    facts = generate_activity(20, date(2023, 1, 1), date(2023, 6, 1), scenario=scenario)
    assert len(facts) == 20


def test_empty_and_invalid_inputs() -> None:
    assert generate_activity(0, date(2023, 1, 1), date(2023, 2, 1)) == []
    with pytest.raises(ValueError, match="start date must be <= end date"):
        generate_activity(5, date(2023, 2, 1), date(2023, 1, 1))
    with pytest.raises(ValueError, match="churn_hazard"):
        ActivityScenarioConfig(churn_hazard=1.5)
