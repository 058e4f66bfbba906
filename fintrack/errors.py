"""
Error Taxonomy

Every failure raised by the core derives from FinTrackError.
None of them is fatal: callers recover by fixing input or retrying.
"""

from typing import Optional

from fintrack.models.ledger import ValidationIssue


class FinTrackError(Exception):
    """Base exception for the FinTrack core."""
    pass


class ValidationError(FinTrackError):
    """
    Malformed transaction or category input.

    Raised before any state is touched, so the ledger is never
    left half-updated.
    """

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class NotFoundError(FinTrackError):
    """Strict lookup of a namespace, category or transaction that doesn't exist."""
    pass


class PersistenceError(FinTrackError):
    """Underlying storage unavailable or full."""
    pass


class ExportError(FinTrackError):
    """Export refused (no data) or a renderer failed."""
    pass
