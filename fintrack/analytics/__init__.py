"""Aggregation and classification over the ledger (pure functions)."""

from fintrack.analytics.aggregation import (
    BudgetAlert,
    BudgetUtilization,
    CategorySpending,
    DayGroup,
    Totals,
    TrendPoint,
    budget_alerts,
    budget_utilization,
    filter_by_month,
    filter_by_period,
    filter_by_year,
    group_by_day,
    recent_n,
    resolve_category,
    sort_transactions,
    spending_by_category,
    totals,
    trend,
    weekly_trend,
)
from fintrack.analytics.classifier import (
    AllocationReport,
    GroupAllocation,
    allocation,
    classify,
)

__all__ = [
    "AllocationReport",
    "BudgetAlert",
    "BudgetUtilization",
    "CategorySpending",
    "DayGroup",
    "GroupAllocation",
    "Totals",
    "TrendPoint",
    "allocation",
    "budget_alerts",
    "budget_utilization",
    "classify",
    "filter_by_month",
    "filter_by_period",
    "filter_by_year",
    "group_by_day",
    "recent_n",
    "resolve_category",
    "sort_transactions",
    "spending_by_category",
    "totals",
    "trend",
    "weekly_trend",
]
