"""Read-only analytics over the ledger."""

from finance_tracker.analytics.aggregator import (
    AnalyticsAggregator,
    months_back_start,
    project_recurring_income,
    savings_status,
)

__all__ = [
    "AnalyticsAggregator",
    "months_back_start",
    "project_recurring_income",
    "savings_status",
]
