"""Churn audit demo with synthetic activity data.

This example walks through the churn audit reports:
1. Generate a synthetic monthly activity log
2. Monthly retention and churn
3. Lifecycle status counts (New / Retained / Resurrected)
4. Parameterised retention and churn for specific months
5. Compare churn horizon policies
"""

from datetime import date

from churn_audit.analyses import AnalyzerConfig, ChurnAnalyzer, ChurnHorizonPolicy
from churn_audit.pandas import (
    churn_to_dataframe,
    lifecycle_to_dataframe,
    retention_to_dataframe,
)
from churn_audit.synthetic import ActivityScenarioConfig, generate_activity


def main():
    """Demonstrate the churn audit reports."""
    print("=" * 80)
    print("Churn Audit Demo with Synthetic Activity Data")
    print("=" * 80)

    # Step 1: Generate synthetic data
    print("\n📊 Step 1: Generating synthetic activity log...")
    facts = generate_activity(
        500,
        date(2023, 1, 1),
        date(2023, 12, 1),
        scenario=ActivityScenarioConfig(
            churn_hazard=0.25, reactivation_probability=0.15, seed=42
        ),
    )
    analyzer = ChurnAnalyzer(facts)
    summary = analyzer.summary()
    print(
        f"✓ {summary['facts']:,} user-months for {summary['users']} users "
        f"({summary['first_month']} to {summary['last_month']})"
    )

    # Step 2: Monthly retention and churn
    print("\n📈 Step 2: Monthly retention and churn...")
    retention = retention_to_dataframe(analyzer.monthly_retention())
    print(retention.to_string(index=False))
    churn = churn_to_dataframe(analyzer.monthly_churn())
    print()
    print(churn.to_string(index=False))

    # Step 3: Lifecycle
    print("\n🔄 Step 3: Lifecycle status per month...")
    lifecycle = lifecycle_to_dataframe(analyzer.lifecycle_status())
    wide = (
        lifecycle.pivot(
            index="active_month", columns="lifecycle_status", values="user_count"
        )
        .fillna(0)
        .astype(int)
    )
    print(wide.to_string())

    # Step 4: Parameterised reports
    print("\n🎯 Step 4: Parameterised reports...")
    between = analyzer.retention_between("2023-03-01", "2023-06-01")
    print(
        f"  March users active in June: {between.retained_users}/{between.initial_users} "
        f"({float(between.retention_rate):.2f}%)"
    )
    churn_at = analyzer.churn_at("2023-07-01")
    print(
        f"  Churn into July: {churn_at.churned_users}/{churn_at.starting_users} "
        f"({float(churn_at.churn_rate):.2f}%)"
    )

    # Step 5: Horizon policies
    print("\n⚖️  Step 5: Churn horizon policies...")
    for policy in ChurnHorizonPolicy:
        policy_analyzer = ChurnAnalyzer(facts, AnalyzerConfig(churn_policy=policy))
        total = sum(row.churned_users for row in policy_analyzer.monthly_churn())
        print(f"  {policy.value:>20}: {total:,} churn events")

    print("\n" + "=" * 80)
    print("✓ Demo complete")
    print("=" * 80)


if __name__ == "__main__":
    main()
