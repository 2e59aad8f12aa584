from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import random
from typing import List, Optional

from churn_audit.foundation.activity import ActivityFact
from churn_audit.foundation.months import month_range, month_start


@dataclass(frozen=True)
class ActivityScenarioConfig:
    """Configuration for synthetic activity logs.

    Attributes
    ----------
    churn_hazard: Monthly probability that an active user goes dormant.
    reactivation_probability: Monthly probability that a dormant user returns.
    seed: Optional RNG seed for reproducibility.
    """

    churn_hazard: float = 0.2
    reactivation_probability: float = 0.1
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("churn_hazard", "reactivation_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1]: {value}")


def generate_activity(
    n_users: int,
    start: date,
    end: date,
    *,
    scenario: Optional[ActivityScenarioConfig] = None,
) -> List[ActivityFact]:
    """Generate monthly activity facts for ``n_users`` users.

    Each user is acquired in a uniformly drawn month between ``start`` and
    ``end`` and is active in that month. Every later month the user either
    stays active, goes dormant with probability ``churn_hazard``, or (when
    dormant) comes back with probability ``reactivation_probability``.
    """

    if n_users <= 0:
        return []
    if start > end:
        raise ValueError("start date must be <= end date")

    scenario = scenario or ActivityScenarioConfig()
    rng = random.Random(scenario.seed)
    months = month_range(month_start(start), month_start(end))

    facts: List[ActivityFact] = []
    for i in range(n_users):
        user_id = f"U-{i + 1}"
        acquired = rng.randrange(len(months))
        active = True
        facts.append(ActivityFact(user_id, months[acquired]))
        for month in months[acquired + 1 :]:
            if active:
                active = rng.random() >= scenario.churn_hazard
            else:
                active = rng.random() < scenario.reactivation_probability
            if active:
                facts.append(ActivityFact(user_id, month))
    return facts
