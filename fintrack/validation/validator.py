"""
Two-Stage Transaction Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - PARSING:
- Amount present and readable as a decimal number
- Date present and a real calendar date
- This catches malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Amount strictly positive, in minor-unit precision
- Category matches the transaction type (no expense filed as income)
- Future dates and unknown categories are flagged, not rejected

IMPORTANT: Validation NEVER silently fixes amounts or dates.
The one substitution it performs is documented: an empty description
becomes the localized type label ("Expense", "Despesa", ...).
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from fintrack.errors import ValidationError
from fintrack.export.formatting import CENT, parse_amount, type_label
from fintrack.models.ledger import (
    Category,
    Transaction,
    TransactionInput,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    new_id,
)

# Largest amount a ledger entry may hold; keeps cent quantizing in Decimal precision
MAX_AMOUNT = Decimal("999999999999.99")


def _parse_amount(raw: Union[Decimal, int, float, str, None], locale: str) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, (int, float)):
        return Decimal(str(raw))
    text = raw.strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        pass
    try:
        return parse_amount(text, locale)
    except ValueError:
        return None


def _parse_date(raw: Union[date, str, None]) -> Optional[date]:
    if raw is None:
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        return None


class TransactionValidator:
    """
    Validates transaction input through a two-stage pipeline and
    builds the immutable Transaction.
    """

    def __init__(
        self,
        categories: Optional[list[Category]] = None,
        require_category: bool = False,
        today: Optional[date] = None,
    ):
        """
        Initialize validator.

        Args:
            categories: Categories the transaction may reference.
            require_category: The entry form insists on a category; the
                         ledger itself does not.
            today: Reference date for the future-date warning.
        """
        self._categories = {c.id: c for c in (categories or [])}
        self._require_category = require_category
        self._today = today

    def _validate_parse(
        self,
        data: TransactionInput,
        locale: str,
    ) -> tuple[bool, list[ValidationIssue], Optional[Decimal], Optional[date]]:
        """
        Stage 1: Parsing.

        Returns: (is_valid, list_of_issues, amount, date)
        """
        issues = []

        amount = _parse_amount(data.amount, locale)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing" if data.amount in (None, "") else "invalid_format",
                message="Amount is required and must be a number",
                severity="error",
                suggested_fix="Enter an amount such as 45.50",
            ))

        when = _parse_date(data.date)
        if when is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing" if data.date in (None, "") else "invalid_format",
                message=f"Date {data.date!r} is not a valid calendar date",
                severity="error",
                suggested_fix="Use the YYYY-MM-DD format",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, amount, when

    def _validate_semantic(
        self,
        data: TransactionInput,
        amount: Decimal,
        when: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not amount.is_finite() or amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="The direction comes from the type, not the sign",
            ))
        elif amount > MAX_AMOUNT:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount must not exceed {MAX_AMOUNT}",
                severity="error",
            ))
        elif amount != amount.quantize(CENT):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_precision",
                message=f"Amount {amount} has more than two decimal places",
                severity="error",
            ))

        if data.category_id:
            category = self._categories.get(data.category_id)
            if category is None:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="unknown_reference",
                    message=f"Category {data.category_id} does not exist; "
                            "the transaction will show as uncategorized",
                    severity="warning",
                ))
            elif category.is_income != (data.type == TransactionType.INCOME):
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="type_mismatch",
                    message=(
                        f"Category '{category.name}' cannot hold "
                        f"{data.type.value.lower()} transactions"
                    ),
                    severity="error",
                    suggested_fix="Pick a category offered for this transaction type",
                ))
        elif self._require_category:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="A category is required",
                severity="error",
            ))

        today = self._today or date.today()
        if when > today:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({when}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, data: TransactionInput, locale: str = "pt-PT") -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Stage 2 only runs when stage 1 could parse amount and date.
        """
        parse_valid, issues, amount, when = self._validate_parse(data, locale)

        semantic_valid = False
        if parse_valid:
            semantic_valid, semantic_issues = self._validate_semantic(data, amount, when)
            issues.extend(semantic_issues)

        return ValidationResult(
            parse_valid=parse_valid,
            semantic_valid=semantic_valid,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )

    def build(
        self,
        data: TransactionInput,
        locale: str = "pt-PT",
        transaction_id: Optional[str] = None,
    ) -> Transaction:
        """
        Validate input and create the Transaction.

        Raises:
            ValidationError: If any error-level issue was found
        """
        result = self.validate(data, locale)
        if not result.is_valid:
            errors = [i for i in result.issues if i.severity == "error"]
            raise ValidationError(
                "; ".join(i.message for i in errors),
                issues=result.issues,
            )

        description = data.description.strip() or type_label(data.type, locale)

        return Transaction(
            id=transaction_id or new_id(),
            amount=_parse_amount(data.amount, locale).quantize(CENT),
            type=data.type,
            category_id=data.category_id or None,
            date=_parse_date(data.date),
            method=data.method,
            description=description,
            is_recurring=data.is_recurring,
        )


def ensure_valid_transaction(transaction: Transaction) -> None:
    """
    Re-check an already built Transaction before it enters the ledger.

    Transactions built with model_construct() or loaded from elsewhere
    bypass pydantic validation; this keeps the ledger invariant anyway.

    Raises:
        ValidationError: If amount is not positive or date is not a date
    """
    issues = []
    amount = transaction.amount
    if not isinstance(amount, Decimal) or not amount.is_finite() or amount <= 0:
        issues.append(ValidationIssue(
            field="amount",
            issue_type="invalid_value",
            message="Amount must be greater than zero",
            severity="error",
        ))
    elif amount > MAX_AMOUNT:
        issues.append(ValidationIssue(
            field="amount",
            issue_type="invalid_value",
            message=f"Amount must not exceed {MAX_AMOUNT}",
            severity="error",
        ))
    if not isinstance(transaction.date, date):
        issues.append(ValidationIssue(
            field="date",
            issue_type="invalid_format",
            message=f"Date {transaction.date!r} is not a valid calendar date",
            severity="error",
        ))
    if issues:
        raise ValidationError("; ".join(i.message for i in issues), issues=issues)
