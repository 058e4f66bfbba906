"""Tests for the aggregation engine."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import TODAY, make_transaction
from fintrack.analytics import (
    budget_alerts,
    budget_utilization,
    filter_by_month,
    filter_by_period,
    filter_by_year,
    group_by_day,
    recent_n,
    sort_transactions,
    spending_by_category,
    totals,
    trend,
    weekly_trend,
)
from fintrack.models.ledger import (
    UNCATEGORIZED,
    Category,
    CategoryGroup,
    Period,
    SortOrder,
    TransactionType,
    default_categories,
)


INCOME = TransactionType.INCOME


class TestTotals:
    def test_scenario_a(self, scenario_a):
        """Salary 2500, rent 750, groceries 45.50."""
        result = totals(scenario_a)
        assert result.income == Decimal("2500")
        assert result.expenses == Decimal("795.50")
        assert result.balance == Decimal("1704.50")

    def test_balance_law(self, scenario_a):
        """Test that balance is income minus expenses, exactly."""
        extra = scenario_a + [make_transaction("0.10"), make_transaction("0.20")]
        result = totals(extra)
        assert result.balance == result.income - result.expenses
        assert result.expenses == Decimal("795.80")

    def test_empty(self):
        result = totals([])
        assert result.income == result.expenses == result.balance == Decimal("0")

    def test_does_not_mutate_input(self, scenario_a):
        before = list(scenario_a)
        totals(scenario_a)
        assert scenario_a == before


class TestTrend:
    """Tests for the daily trend series."""

    def test_fixed_length_and_ascending(self):
        series = trend([], days=7, reference_date=TODAY)
        assert len(series) == 7
        assert series[0].day == TODAY - timedelta(days=6)
        assert series[-1].day == TODAY
        assert all(point.value == Decimal("0") for point in series)

    def test_only_expenses_count(self, scenario_a):
        series = trend(scenario_a, days=7, reference_date=TODAY)
        assert series[-1].value == Decimal("795.50")

    def test_trend_sum_law(self):
        """Test that the series sums to the expenses inside the window."""
        transactions = [
            make_transaction(10, day=TODAY),
            make_transaction(5, day=TODAY - timedelta(days=3)),
            make_transaction(7, day=TODAY - timedelta(days=6)),
            make_transaction(100, day=TODAY - timedelta(days=7)),  # outside
            make_transaction(50, day=TODAY + timedelta(days=1)),  # outside
            make_transaction(900, INCOME, day=TODAY, category_id="income-cat"),
        ]
        series = trend(transactions, days=7, reference_date=TODAY)
        assert sum(p.value for p in series) == Decimal("22")

    def test_weekday_labels(self):
        series = trend([], days=7, reference_date=TODAY, locale="pt-PT")
        # 2026-10-19 is a Monday
        assert series[-1].label == "seg"
        assert trend([], days=1, reference_date=TODAY, locale="en-US")[0].label == "Mon"

    def test_invalid_days(self):
        with pytest.raises(ValueError):
            trend([], days=0)

    def test_weekly_trend(self):
        transactions = [
            make_transaction(10, day=TODAY),
            make_transaction(20, day=TODAY - timedelta(days=6)),
            make_transaction(30, day=TODAY - timedelta(days=7)),
            make_transaction(40, day=TODAY - timedelta(days=27)),
            make_transaction(99, day=TODAY - timedelta(days=28)),  # outside
        ]
        series = weekly_trend(transactions, weeks=4, reference_date=TODAY)
        assert [p.value for p in series] == [
            Decimal("40"), Decimal("0"), Decimal("30"), Decimal("30"),
        ]
        assert series[0].label == (TODAY - timedelta(days=27)).isoformat()


class TestFilters:
    """Tests for month/year/period filters."""

    @pytest.fixture
    def spread(self):
        return [
            make_transaction(1, day=date(2026, 9, 30)),
            make_transaction(2, day=date(2026, 10, 1)),
            make_transaction(3, day=date(2026, 10, 31)),
            make_transaction(4, day=date(2025, 10, 15)),
        ]

    def test_filter_by_month(self, spread):
        result = filter_by_month(spread, 10, 2026)
        assert [t.amount for t in result] == [Decimal("2"), Decimal("3")]

    def test_filter_is_idempotent(self, spread):
        once = filter_by_month(spread, 10, 2026)
        assert filter_by_month(once, 10, 2026) == once

    def test_invalid_month(self, spread):
        with pytest.raises(ValueError):
            filter_by_month(spread, 13, 2026)

    def test_filter_by_year(self, spread):
        assert len(filter_by_year(spread, 2026)) == 3

    def test_filter_by_period(self, spread):
        assert len(filter_by_period(spread, Period(year=2026, month=9))) == 1
        assert len(filter_by_period(spread, Period(year=2025))) == 1
        assert filter_by_period(spread, None) == spread


class TestOrdering:
    """Tests for explicit ordering of 'recent' transactions."""

    @pytest.fixture
    def ledger(self):
        return [
            make_transaction(1, day=date(2026, 10, 1), tx_id="old"),
            make_transaction(2, day=date(2026, 10, 19), tx_id="T1"),
            make_transaction(3, day=date(2026, 10, 5), tx_id="mid"),
            make_transaction(4, day=date(2026, 10, 19), tx_id="T2"),
        ]

    def test_recent_sorts_by_date_desc(self, ledger):
        """Test that recency never depends on the caller's list order."""
        assert [t.id for t in recent_n(ledger, 3)] == ["T1", "T2", "mid"]

    def test_same_day_keeps_insertion_order(self, ledger):
        result = sort_transactions(ledger, SortOrder.DATE_DESC)
        assert [t.id for t in result[:2]] == ["T1", "T2"]

    def test_ascending_and_insertion(self, ledger):
        assert [t.id for t in sort_transactions(ledger, SortOrder.DATE_ASC)] == [
            "old", "mid", "T1", "T2",
        ]
        assert sort_transactions(ledger, SortOrder.INSERTION) == ledger

    def test_recent_n_bounds(self, ledger):
        assert recent_n(ledger, 0) == []
        assert len(recent_n(ledger, 10)) == 4

    def test_group_by_day(self, ledger):
        ledger.append(make_transaction(50, INCOME, day=date(2026, 10, 19),
                                       category_id="income-cat", tx_id="pay"))
        groups = group_by_day(ledger)
        assert [g.day for g in groups] == [
            date(2026, 10, 19), date(2026, 10, 5), date(2026, 10, 1),
        ]
        assert [t.id for t in groups[0].transactions] == ["T1", "T2", "pay"]
        assert groups[0].expenses == Decimal("6")
        assert groups[0].income == Decimal("50")


class TestBudgets:
    """Tests for budget utilization and alerts."""

    def test_scenario_b(self):
        """Food budget 300, 45.50 spent."""
        transactions = [
            make_transaction("30.00", category_id="2"),
            make_transaction("15.50", category_id="2"),
        ]
        result = budget_utilization(transactions, default_categories(), 10, 2026)
        food = next(u for u in result if u.category_id == "2")
        assert food.spent == Decimal("45.50")
        assert abs(food.percentage - Decimal("0.1517")) < Decimal("0.0001")
        assert food.over is False
        assert food.remaining == Decimal("254.50")

    def test_income_categories_excluded(self):
        result = budget_utilization([], default_categories(), 10, 2026)
        assert len(result) == 7
        assert all(u.category_id != "income-cat" for u in result)

    def test_only_the_month_counts(self):
        transactions = [
            make_transaction(100, category_id="3", day=date(2026, 9, 30)),
            make_transaction(120, category_id="3", day=date(2026, 10, 2)),
        ]
        result = budget_utilization(transactions, default_categories(), 10, 2026)
        transport = next(u for u in result if u.category_id == "3")
        assert transport.spent == Decimal("120")
        assert transport.over is True
        assert transport.percentage == Decimal("1.2")

    def test_zero_budget(self):
        """Test that a zero budget never divides by zero."""
        categories = [Category(id="z", name="Gifts", budget=Decimal("0"))]
        spent = budget_utilization([make_transaction(10, category_id="z")], categories, 10, 2026)
        idle = budget_utilization([], categories, 10, 2026)

        assert spent[0].percentage == Decimal("0")
        assert spent[0].unbounded is True
        assert spent[0].over is True
        assert idle[0].unbounded is False
        assert idle[0].over is False

    def test_alerts(self):
        transactions = [
            make_transaction(90, category_id="3"),  # 90% of 100
            make_transaction(10, category_id="2"),  # 3% of 300
            make_transaction(250, category_id="4"),  # 125% of 200
        ]
        utilizations = budget_utilization(transactions, default_categories(), 10, 2026)
        alerts = budget_alerts(utilizations, threshold=0.8)
        assert [a.category_id for a in alerts] == ["4", "3"]
        assert alerts[0].limit == Decimal("200")
        assert alerts[0].category_name == "Lazer"

    def test_unbounded_spend_alerts(self):
        categories = [Category(id="z", name="Gifts", group=CategoryGroup.WANT)]
        utilizations = budget_utilization(
            [make_transaction(1, category_id="z")], categories, 10, 2026,
        )
        assert [a.category_id for a in budget_alerts(utilizations)] == ["z"]


class TestSpendingByCategory:
    def test_pools_unknown_under_uncategorized(self):
        transactions = [
            make_transaction(30, category_id="2"),
            make_transaction(10, category_id="gone"),
            make_transaction(60, category_id=None),
        ]
        rows = spending_by_category(transactions, default_categories())
        assert rows[0].category == UNCATEGORIZED
        assert rows[0].spent == Decimal("70")
        assert rows[1].share == Decimal("0.3")

    def test_empty(self):
        assert spending_by_category([], default_categories()) == []
