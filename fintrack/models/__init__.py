"""
Data Models Package

This package contains all Pydantic models used by the FinTrack core.
All data flowing through the ledger must conform to these schemas.
"""

from fintrack.models.ledger import (
    DEFAULT_CATEGORIES,
    INCOME_CATEGORY_ID,
    PAYMENT_METHODS,
    UNCATEGORIZED,
    Category,
    CategoryGroup,
    LedgerBundle,
    Period,
    ProfileUpdate,
    SortOrder,
    Transaction,
    TransactionInput,
    TransactionType,
    UserProfile,
    ValidationIssue,
    ValidationResult,
    categories_for_type,
    default_categories,
    new_id,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "INCOME_CATEGORY_ID",
    "PAYMENT_METHODS",
    "UNCATEGORIZED",
    "Category",
    "CategoryGroup",
    "LedgerBundle",
    "Period",
    "ProfileUpdate",
    "SortOrder",
    "Transaction",
    "TransactionInput",
    "TransactionType",
    "UserProfile",
    "ValidationIssue",
    "ValidationResult",
    "categories_for_type",
    "default_categories",
    "new_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
