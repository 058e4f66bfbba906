"""
Export Context

The one input every renderer receives. It carries the already filtered
transactions plus what the document header needs (who, which period,
when it was issued).
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fintrack.analytics.aggregation import Totals, totals
from fintrack.export.formatting import LocaleConventions, get_locale
from fintrack.models.ledger import (
    Category,
    Period,
    Transaction,
    UserProfile,
    default_categories,
)


class ExportContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    transactions: list[Transaction]
    categories: list[Category] = Field(default_factory=default_categories)
    profile: UserProfile = Field(default_factory=UserProfile)
    period: Optional[Period] = None
    issued_on: date = Field(default_factory=date.today)
    product_name: str = "Finance-Tracker"

    @property
    def locale(self) -> LocaleConventions:
        return get_locale(self.profile.locale)

    @property
    def currency(self) -> str:
        return self.profile.currency

    @property
    def totals(self) -> Totals:
        return totals(self.transactions)

    @property
    def is_empty(self) -> bool:
        return not self.transactions
