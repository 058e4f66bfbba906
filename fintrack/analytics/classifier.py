"""
Budget Classifier (50/30/20)

Spending categories fall into three groups: NEEDs, WANTs and SAVINGs.
The classic rule of thumb allocates 50% / 30% / 20% of income to them.
INCOME categories are not part of any allocation and are simply left out.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from fintrack.models.ledger import (
    Category,
    CategoryGroup,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")

SPENDING_GROUPS = (CategoryGroup.NEED, CategoryGroup.WANT, CategoryGroup.SAVING)

TARGET_SHARES = {
    CategoryGroup.NEED: Decimal("0.50"),
    CategoryGroup.WANT: Decimal("0.30"),
    CategoryGroup.SAVING: Decimal("0.20"),
}


class GroupAllocation(BaseModel):
    group: CategoryGroup
    spent: Decimal
    share: Decimal  # of total expense
    target_share: Decimal
    target_amount: Optional[Decimal] = None  # only when income is known
    variance: Optional[Decimal] = None  # target_amount - spent


class AllocationReport(BaseModel):
    """Where the money went, against the 50/30/20 targets."""

    groups: list[GroupAllocation]
    total_expense: Decimal
    income: Optional[Decimal] = None
    unclassified: Decimal = ZERO

    def for_group(self, group: CategoryGroup) -> GroupAllocation:
        for allocation in self.groups:
            if allocation.group == group:
                return allocation
        raise KeyError(group)


def classify(categories: list[Category]) -> dict[CategoryGroup, list[Category]]:
    """Partition categories into NEED, WANT and SAVING, keeping their order."""
    result: dict[CategoryGroup, list[Category]] = {g: [] for g in SPENDING_GROUPS}
    for category in categories:
        if category.group in result:
            result[category.group].append(category)
    return result


def allocation(
    transactions: list[Transaction],
    categories: list[Category],
    income: Optional[Decimal] = None,
) -> AllocationReport:
    """
    Actual spending per group against the 50/30/20 targets.

    Args:
        transactions: Usually one month of the ledger.
        categories: Category list used to look up each expense's group.
        income: Income to base the targets on. Derived from the INCOME
               transactions when not given; targets stay empty when
               there is none.

    Expenses whose category is missing or belongs to the INCOME group
    are counted as unclassified.
    """
    groups = {c.id: c.group for c in categories}
    spent = {g: ZERO for g in SPENDING_GROUPS}
    unclassified = ZERO
    derived_income = ZERO

    for t in transactions:
        if t.type == TransactionType.INCOME:
            derived_income += t.amount
            continue
        group = groups.get(t.category_id) if t.category_id else None
        if group in spent:
            spent[group] += t.amount
        else:
            unclassified += t.amount

    if income is None and derived_income > 0:
        income = derived_income

    total_expense = sum(spent.values(), ZERO) + unclassified

    rows = []
    for group in SPENDING_GROUPS:
        target_amount = None
        variance = None
        if income is not None:
            target_amount = income * TARGET_SHARES[group]
            variance = target_amount - spent[group]
        rows.append(GroupAllocation(
            group=group,
            spent=spent[group],
            share=spent[group] / total_expense if total_expense else ZERO,
            target_share=TARGET_SHARES[group],
            target_amount=target_amount,
            variance=variance,
        ))

    return AllocationReport(
        groups=rows,
        total_expense=total_expense,
        income=income,
        unclassified=unclassified,
    )
