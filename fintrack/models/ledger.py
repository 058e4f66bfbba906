"""
Core Data Models for FinTrack

These models define the schemas for everything the ledger holds.
They are designed to:
1. Enforce type safety at runtime
2. Keep money exact (Decimal, never binary floats)
3. Serialize to the same JSON layout the legacy app wrote
4. Stay immutable where the ledger relies on it

DESIGN DECISION: Python attributes are snake_case, but the persisted form
uses camelCase aliases (categoryId, isRecurring, hideBalance...). Bundles
written by the original app therefore load without a migration step.
"""

import json
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Form input may carry an ISO string or an already parsed date
DateLike = Union[date, str, None]


def new_id() -> str:
    """Generate a fresh identifier for a transaction or category."""
    return uuid4().hex


def _float_to_decimal(value: Any) -> Any:
    """Route floats through str() so 45.5 stays 45.5 and not 45.49999..."""
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. The amount itself is always positive."""
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


class CategoryGroup(str, Enum):
    """
    50/30/20 allocation groups.

    INCOME is reserved for income-producing categories and is never
    part of a spending allocation.
    """
    NEED = "NEED"
    WANT = "WANT"
    SAVING = "SAVING"
    INCOME = "INCOME"


class SortOrder(str, Enum):
    """Explicit ordering for anything that shows 'recent' items."""
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    INSERTION = "insertion"


class _LedgerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# CORE LEDGER MODELS
# =============================================================================

class Transaction(_LedgerModel):
    """
    A single income or expense entry.

    Transactions are never mutated in place: they are created once
    and deleted by id.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount in minor-unit precision"
    )
    type: TransactionType
    category_id: Optional[str] = Field(
        default=None,
        description="Category reference; unresolvable ids read as uncategorized"
    )
    date: date
    method: str = Field(
        default="",
        max_length=100,
        description="Payment channel label"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    is_recurring: bool = False

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _float_to_decimal(v)

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the type."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount


class Category(_LedgerModel):
    """
    A budgeted spending (or income) category.

    Only budget and color may change after creation; use with_budget()
    and with_color(), which return a new instance.
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="fa-tag")
    color: str = Field(default="#6366F1")
    group: CategoryGroup = CategoryGroup.WANT
    budget: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        decimal_places=2,
        description="Monthly ceiling; meaningless for the INCOME group"
    )

    @field_validator("budget", mode="before")
    @classmethod
    def coerce_budget(cls, v: Any) -> Any:
        return _float_to_decimal(v)

    @property
    def is_income(self) -> bool:
        return self.group == CategoryGroup.INCOME

    def with_budget(self, budget: Union[Decimal, float, int, str]) -> "Category":
        return Category.model_validate({**self.model_dump(), "budget": budget})

    def with_color(self, color: str) -> "Category":
        return Category.model_validate({**self.model_dump(), "color": color})


class UserProfile(_LedgerModel):
    """
    Per-user profile.

    hide_balance only affects display formatting; the underlying numbers
    are never removed. is_dark_mode is presentation only.
    """

    name: str = Field(default="", max_length=100)
    age: int = Field(default=0, ge=0, le=150)
    job: str = Field(default="", max_length=100)
    currency: str = Field(default="EUR", pattern="^[A-Z]{3}$")
    locale: str = Field(default="pt-PT", pattern="^[a-z]{2}-[A-Z]{2}$")
    hide_balance: bool = False
    is_dark_mode: bool = False
    password: Optional[str] = Field(
        default=None,
        description="Opaque; never interpreted by the core"
    )
    birth_date: Optional[date] = None

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def apply(self, update: "ProfileUpdate") -> "UserProfile":
        """Return a copy with only the explicitly set fields of `update` applied."""
        changes = update.model_dump(exclude_unset=True)
        return UserProfile.model_validate({**self.model_dump(), **changes})


class ProfileUpdate(BaseModel):
    """
    Typed partial update for UserProfile.

    Only fields that are explicitly passed are applied, so
    ProfileUpdate(job="Nurse") touches nothing but the job.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    age: Optional[int] = None
    job: Optional[str] = None
    currency: Optional[str] = None
    locale: Optional[str] = None
    hide_balance: Optional[bool] = None
    is_dark_mode: Optional[bool] = None
    password: Optional[str] = None
    birth_date: Optional[date] = None


class TransactionInput(BaseModel):
    """
    Raw transaction data as it arrives from the entry form.

    CRITICAL: This is UNVALIDATED input. It must go through
    TransactionValidator before it becomes a Transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Union[Decimal, int, float, str, None] = None
    type: TransactionType = TransactionType.EXPENSE
    category_id: Optional[str] = None
    date: DateLike = None
    method: str = ""
    description: str = ""
    is_recurring: bool = False


# =============================================================================
# PERIODS
# =============================================================================

class Period(BaseModel):
    """A calendar month (month set) or a whole calendar year (month None)."""
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: Optional[int] = Field(default=None, ge=1, le=12)

    @classmethod
    def month_of(cls, day: date) -> "Period":
        return cls(year=day.year, month=day.month)

    @classmethod
    def year_of(cls, day: date) -> "Period":
        return cls(year=day.year)

    @property
    def is_month(self) -> bool:
        return self.month is not None

    def contains(self, day: date) -> bool:
        if day.year != self.year:
            return False
        return self.month is None or day.month == self.month


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'type_mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage transaction validation.

    Stage 1: Parsing (amount and date can be read at all)
    Stage 2: Semantic checks (positive amount, precision, category fit)
    """

    parse_valid: bool
    semantic_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.parse_valid and self.semantic_valid

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# DEFAULTS
# =============================================================================

INCOME_CATEGORY_ID = "income-cat"

PAYMENT_METHODS = [
    "Cartão Débito",
    "Cartão Crédito",
    "Dinheiro",
    "MB Way",
    "Transferência",
]

DEFAULT_CATEGORIES = [
    Category(id="1", name="Rendas/Casa", icon="fa-house", color="#3B82F6",
             group=CategoryGroup.NEED, budget=Decimal("800")),
    Category(id="2", name="Alimentação", icon="fa-utensils", color="#EF4444",
             group=CategoryGroup.NEED, budget=Decimal("300")),
    Category(id="3", name="Transportes", icon="fa-bus", color="#F59E0B",
             group=CategoryGroup.NEED, budget=Decimal("100")),
    Category(id="4", name="Lazer", icon="fa-gamepad", color="#10B981",
             group=CategoryGroup.WANT, budget=Decimal("200")),
    Category(id="5", name="Saúde", icon="fa-heart-pulse", color="#EC4899",
             group=CategoryGroup.NEED, budget=Decimal("50")),
    Category(id="6", name="Subscrições", icon="fa-tv", color="#8B5CF6",
             group=CategoryGroup.WANT, budget=Decimal("50")),
    Category(id="7", name="Poupança/Inv", icon="fa-piggy-bank", color="#6366F1",
             group=CategoryGroup.SAVING, budget=Decimal("500")),
    Category(id=INCOME_CATEGORY_ID, name="Salário/Rendimento", icon="fa-money-bill-trend-up",
             color="#059669", group=CategoryGroup.INCOME, budget=Decimal("0")),
]

# Stand-in for any category id that no longer resolves
UNCATEGORIZED = Category(
    id="uncategorized",
    name="Uncategorized",
    icon="fa-circle-question",
    color="#9CA3AF",
    group=CategoryGroup.WANT,
    budget=Decimal("0"),
)


def default_categories() -> list[Category]:
    """Fresh copy of the seed categories for a new namespace."""
    return [c.model_copy() for c in DEFAULT_CATEGORIES]


def categories_for_type(
    categories: list[Category],
    transaction_type: TransactionType,
) -> list[Category]:
    """
    Categories a transaction of the given type may be filed under.

    INCOME transactions only go to INCOME-group categories,
    EXPENSE transactions only to the others.
    """
    want_income = transaction_type == TransactionType.INCOME
    return [c for c in categories if c.is_income == want_income]


# =============================================================================
# PERSISTED BUNDLE
# =============================================================================

class LedgerBundle(_LedgerModel):
    """
    Everything persisted for one user namespace.

    Transactions, categories and profile always travel together so a
    session switch can never mix one user's data with another's.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=default_categories)
    profile: UserProfile = Field(default_factory=UserProfile)

    def to_json(self) -> str:
        """
        Serialize deterministically.

        The same ledger state always produces the same bytes, so
        replaying a write is harmless.
        """
        return json.dumps(
            self.model_dump(mode="json", by_alias=True),
            ensure_ascii=False,
            indent=2,
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, raw: str) -> "LedgerBundle":
        return cls.model_validate_json(raw)
