"""Tests for the 50/30/20 budget classifier."""

from decimal import Decimal

from conftest import make_transaction
from fintrack.analytics import allocation, classify
from fintrack.models.ledger import (
    CategoryGroup,
    TransactionType,
    default_categories,
)


class TestClassify:
    def test_groups(self):
        groups = classify(default_categories())
        assert set(groups) == {CategoryGroup.NEED, CategoryGroup.WANT, CategoryGroup.SAVING}
        assert [c.id for c in groups[CategoryGroup.NEED]] == ["1", "2", "3", "5"]
        assert [c.id for c in groups[CategoryGroup.WANT]] == ["4", "6"]
        assert [c.id for c in groups[CategoryGroup.SAVING]] == ["7"]

    def test_income_left_out(self):
        """Test that INCOME categories are skipped, not rejected."""
        groups = classify(default_categories())
        assert all(c.group != CategoryGroup.INCOME for cs in groups.values() for c in cs)

    def test_empty(self):
        assert all(v == [] for v in classify([]).values())


class TestAllocation:
    """Tests for actual spend against the 50/30/20 targets."""

    def test_allocation_with_derived_income(self):
        transactions = [
            make_transaction(2000, TransactionType.INCOME, category_id="income-cat"),
            make_transaction(800, category_id="1"),   # NEED
            make_transaction(200, category_id="2"),   # NEED
            make_transaction(300, category_id="4"),   # WANT
            make_transaction(500, category_id="7"),   # SAVING
        ]
        report = allocation(transactions, default_categories())

        assert report.income == Decimal("2000")
        assert report.total_expense == Decimal("1800")
        need = report.for_group(CategoryGroup.NEED)
        assert need.spent == Decimal("1000")
        assert need.target_amount == Decimal("1000.00")
        assert need.variance == Decimal("0")
        saving = report.for_group(CategoryGroup.SAVING)
        assert saving.target_amount == Decimal("400.00")
        assert saving.variance == Decimal("-100")

    def test_shares_sum_to_one(self):
        transactions = [
            make_transaction(10, category_id="1"),
            make_transaction(20, category_id="4"),
            make_transaction(70, category_id="7"),
        ]
        report = allocation(transactions, default_categories())
        assert sum(g.share for g in report.groups) == Decimal("1")
        assert report.income is None
        assert report.for_group(CategoryGroup.WANT).target_amount is None

    def test_explicit_income_wins(self):
        report = allocation([make_transaction(10, category_id="1")], default_categories(),
                            income=Decimal("1000"))
        assert report.for_group(CategoryGroup.WANT).target_amount == Decimal("300.00")

    def test_unclassified(self):
        """Test that unknown and income categories don't count towards a group."""
        transactions = [
            make_transaction(10, category_id="gone"),
            make_transaction(5, category_id=None),
            make_transaction(7, category_id="income-cat"),
            make_transaction(8, category_id="2"),
        ]
        report = allocation(transactions, default_categories())
        assert report.unclassified == Decimal("22")
        assert report.total_expense == Decimal("30")
        assert report.for_group(CategoryGroup.NEED).spent == Decimal("8")

    def test_zero_expense(self):
        report = allocation([], default_categories())
        assert report.total_expense == Decimal("0")
        assert all(g.share == Decimal("0") for g in report.groups)
        assert [g.target_share for g in report.groups] == [
            Decimal("0.50"), Decimal("0.30"), Decimal("0.20"),
        ]
