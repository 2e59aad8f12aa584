"""Synthetic activity logs.

Seeded, realistic-but-fake user activity for exercising the churn audit
reports without production data.
"""

from .generator import ActivityScenarioConfig, generate_activity

__all__ = [
    "ActivityScenarioConfig",
    "generate_activity",
]
