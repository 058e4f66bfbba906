"""Transaction validation package."""

from fintrack.validation.validator import TransactionValidator, ensure_valid_transaction

__all__ = ["TransactionValidator", "ensure_valid_transaction"]
