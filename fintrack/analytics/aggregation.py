"""
Aggregation Engine

DESIGN DECISION: Every derived number the dashboard, history view or an
export shows is computed here, by pure functions over a transaction list
and a category list.

GUARANTEES:
- Never mutates its inputs
- Never throws on empty input (zero totals, a trend of zeros)
- Decimal arithmetic throughout; no rounding beyond the stored cents
- Anything "recent" takes an explicit ordering, never the caller's list order
"""

from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from fintrack.export.formatting import weekday_label
from fintrack.models.ledger import (
    UNCATEGORIZED,
    Category,
    Period,
    SortOrder,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")


class Totals(BaseModel):
    """Income, expenses and their difference for a transaction set."""
    model_config = ConfigDict(frozen=True)

    income: Decimal = ZERO
    expenses: Decimal = ZERO
    balance: Decimal = ZERO


class TrendPoint(BaseModel):
    """One step of a trend series."""
    model_config = ConfigDict(frozen=True)

    day: date  # first day of the bucket
    label: str
    value: Decimal


class DayGroup(BaseModel):
    """Transactions sharing one calendar day, as the history list shows them."""

    day: date
    transactions: list[Transaction]
    income: Decimal
    expenses: Decimal


class CategorySpending(BaseModel):
    category: Category
    spent: Decimal
    share: Decimal  # of total expense, 0..1


class BudgetUtilization(BaseModel):
    """
    Spend against a category's monthly ceiling.

    A zero budget has no meaningful ratio: percentage is then 0 and
    `unbounded` tells whether anything was spent against it.
    """

    category_id: str
    name: str
    budget: Decimal
    spent: Decimal
    percentage: Decimal
    over: bool
    unbounded: bool = False

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.spent


class BudgetAlert(BaseModel):
    category_id: str
    category_name: str
    percentage: Decimal
    spent: Decimal
    limit: Decimal


def _sum(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def _expenses(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.type == TransactionType.EXPENSE]


def _income(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.type == TransactionType.INCOME]


# =============================================================================
# TOTALS
# =============================================================================

def totals(transactions: list[Transaction]) -> Totals:
    """income = Σ INCOME, expenses = Σ EXPENSE, balance = income - expenses."""
    income = _sum(_income(transactions))
    expenses = _sum(_expenses(transactions))
    return Totals(income=income, expenses=expenses, balance=income - expenses)


# =============================================================================
# TREND SERIES
# =============================================================================

def trend(
    transactions: list[Transaction],
    days: int = 7,
    reference_date: Optional[date] = None,
    locale: str = "pt-PT",
) -> list[TrendPoint]:
    """
    Daily expense series for the last `days` days ending at reference_date.

    Always exactly `days` points, oldest first; days without
    expenses are 0.
    """
    if days < 1:
        raise ValueError("days must be at least 1")
    end = reference_date or date.today()
    start = end - timedelta(days=days - 1)

    per_day: dict[date, Decimal] = {}
    for t in _expenses(transactions):
        if start <= t.date <= end:
            per_day[t.date] = per_day.get(t.date, ZERO) + t.amount

    points = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        points.append(TrendPoint(
            day=day,
            label=weekday_label(day, locale),
            value=per_day.get(day, ZERO),
        ))
    return points


def weekly_trend(
    transactions: list[Transaction],
    weeks: int = 4,
    reference_date: Optional[date] = None,
) -> list[TrendPoint]:
    """
    Expense series in 7-day buckets, the last one ending at reference_date.

    Labels are the ISO date of each bucket's first day.
    """
    if weeks < 1:
        raise ValueError("weeks must be at least 1")
    end = reference_date or date.today()
    first = end - timedelta(days=7 * weeks - 1)

    buckets = [ZERO] * weeks
    for t in _expenses(transactions):
        if first <= t.date <= end:
            buckets[(t.date - first).days // 7] += t.amount

    points = []
    for index, value in enumerate(buckets):
        day = first + timedelta(days=7 * index)
        points.append(TrendPoint(day=day, label=day.isoformat(), value=value))
    return points


# =============================================================================
# FILTERS AND ORDERING
# =============================================================================

def filter_by_month(transactions: list[Transaction], month: int, year: int) -> list[Transaction]:
    """Transactions dated in the given calendar month. Idempotent."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    return [t for t in transactions if t.date.month == month and t.date.year == year]


def filter_by_year(transactions: list[Transaction], year: int) -> list[Transaction]:
    return [t for t in transactions if t.date.year == year]


def filter_by_period(
    transactions: list[Transaction],
    period: Optional[Period],
) -> list[Transaction]:
    """A month, a whole year, or everything when period is None."""
    if period is None:
        return list(transactions)
    return [t for t in transactions if period.contains(t.date)]


def sort_transactions(
    transactions: list[Transaction],
    order: SortOrder = SortOrder.DATE_DESC,
) -> list[Transaction]:
    """
    Explicitly ordered copy.

    The sort is stable: transactions on the same day keep their
    insertion order.
    """
    if order == SortOrder.INSERTION:
        return list(transactions)
    return sorted(
        transactions,
        key=lambda t: t.date,
        reverse=order == SortOrder.DATE_DESC,
    )


def recent_n(
    transactions: list[Transaction],
    n: int,
    order: SortOrder = SortOrder.DATE_DESC,
) -> list[Transaction]:
    """First n transactions after ordering them explicitly."""
    if n <= 0:
        return []
    return sort_transactions(transactions, order)[:n]


def group_by_day(transactions: list[Transaction]) -> list[DayGroup]:
    """Day groups, newest day first; within a day, insertion order."""
    grouped: "OrderedDict[date, list[Transaction]]" = OrderedDict()
    for t in sort_transactions(transactions, SortOrder.DATE_DESC):
        grouped.setdefault(t.date, []).append(t)
    return [
        DayGroup(
            day=day,
            transactions=items,
            income=_sum(_income(items)),
            expenses=_sum(_expenses(items)),
        )
        for day, items in grouped.items()
    ]


# =============================================================================
# CATEGORIES AND BUDGETS
# =============================================================================

def resolve_category(category_id: Optional[str], categories: list[Category]) -> Category:
    """The referenced category, or UNCATEGORIZED when it doesn't resolve."""
    if category_id:
        for category in categories:
            if category.id == category_id:
                return category
    return UNCATEGORIZED


def spending_by_category(
    transactions: list[Transaction],
    categories: list[Category],
) -> list[CategorySpending]:
    """
    Expense per category, largest first.

    Unresolvable references are pooled under UNCATEGORIZED.
    """
    spent: dict[str, Decimal] = {}
    resolved: dict[str, Category] = {}
    for t in _expenses(transactions):
        category = resolve_category(t.category_id, categories)
        resolved[category.id] = category
        spent[category.id] = spent.get(category.id, ZERO) + t.amount

    total = sum(spent.values(), ZERO)
    rows = [
        CategorySpending(
            category=resolved[cid],
            spent=amount,
            share=amount / total if total else ZERO,
        )
        for cid, amount in spent.items()
    ]
    rows.sort(key=lambda r: r.spent, reverse=True)
    return rows


def budget_utilization(
    transactions: list[Transaction],
    categories: list[Category],
    month: int,
    year: int,
) -> list[BudgetUtilization]:
    """
    Spent vs. budget for every non-income category in a month.

    percentage = spent / budget; a zero budget yields percentage 0
    with `unbounded` set when there was any spend.
    """
    in_month = _expenses(filter_by_month(transactions, month, year))

    result = []
    for category in categories:
        if category.is_income:
            continue
        spent = _sum(t for t in in_month if t.category_id == category.id)
        if category.budget > 0:
            percentage = spent / category.budget
            unbounded = False
        else:
            percentage = ZERO
            unbounded = spent > 0
        result.append(BudgetUtilization(
            category_id=category.id,
            name=category.name,
            budget=category.budget,
            spent=spent,
            percentage=percentage,
            over=spent > category.budget,
            unbounded=unbounded,
        ))
    return result


def budget_alerts(
    utilizations: list[BudgetUtilization],
    threshold: float = 0.8,
) -> list[BudgetAlert]:
    """Categories at or past `threshold` of their budget, most used first."""
    limit = Decimal(str(threshold))
    alerts = [
        BudgetAlert(
            category_id=u.category_id,
            category_name=u.name,
            percentage=u.percentage,
            spent=u.spent,
            limit=u.budget,
        )
        for u in utilizations
        if u.unbounded or (u.budget > 0 and u.percentage >= limit)
    ]
    alerts.sort(key=lambda a: a.percentage, reverse=True)
    return alerts
