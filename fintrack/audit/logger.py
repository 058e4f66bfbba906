"""
Audit Logger

DESIGN DECISION: Every ledger mutation, session change and export is logged.
This provides:
1. Complete traceability of changes to a user's money data
2. Debugging capability when persistence or export fails
3. A history the user can inspect

The audit logger:
- Always logs locally through structlog
- Gracefully handles failures (a broken audit file never breaks the ledger)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from fintrack.models.audit import AuditEvent, AuditEventBuilder
from fintrack.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(name: Optional[str] = None):
    """Structured logger for modules that log outside the audit trail."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("fintrack.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                stored = self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
            if not stored:
                self._logger.error(
                    "audit_storage_failed",
                    error="storage rejected event",
                    event_id=str(event.event_id),
                )
            return stored

        return True

    def log_transaction_added(
        self,
        namespace: str,
        transaction_id: str,
        transaction_type: str,
        amount: str,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            namespace=namespace,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
        ))

    def log_transaction_removed(self, namespace: str, transaction_id: str) -> None:
        self.log(AuditEventBuilder.transaction_removed(namespace, transaction_id))

    def log_transaction_rejected(self, namespace: str, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.transaction_rejected(namespace, issues))

    def log_ledger_replaced(self, namespace: str, count: int, cleared: bool = False) -> None:
        self.log(AuditEventBuilder.ledger_replaced(namespace, count, cleared=cleared))

    def log_category_changed(
        self,
        namespace: str,
        category_id: str,
        changes: dict,
        created: bool = False,
    ) -> None:
        self.log(AuditEventBuilder.category_changed(
            namespace, category_id, changes, created=created,
        ))

    def log_profile_updated(self, namespace: str, fields: list[str]) -> None:
        self.log(AuditEventBuilder.profile_updated(namespace, fields))

    def log_session_opened(self, namespace: str, new_user: bool) -> None:
        self.log(AuditEventBuilder.session_opened(namespace, new_user))

    def log_session_closed(self, namespace: str) -> None:
        self.log(AuditEventBuilder.session_closed(namespace))

    def log_legacy_migrated(self, namespace: str, transaction_count: int) -> None:
        self.log(AuditEventBuilder.legacy_migrated(namespace, transaction_count))

    def log_namespace_deleted(self, namespace: str) -> None:
        self.log(AuditEventBuilder.namespace_deleted(namespace))

    def log_persistence_failed(self, namespace: str, error_message: str) -> None:
        self.log(AuditEventBuilder.persistence_failed(namespace, error_message))

    def log_export_generated(
        self,
        namespace: str,
        export_format: str,
        filename: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.export_generated(
            namespace, export_format, filename, row_count, correlation_id=correlation_id,
        ))

    def log_export_refused(
        self,
        namespace: str,
        export_format: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.export_refused(
            namespace, export_format, reason, correlation_id=correlation_id,
        ))

    def log_export_failed(
        self,
        namespace: str,
        export_format: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.export_failed(
            namespace, export_format, error_message, correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action that spans several steps
    (e.g., an export that writes a file and logs it).
    """
    return uuid4()
