"""
Audit Models for FinTrack

Every ledger mutation, session change and export is recorded as an
audit event. This provides:
1. Traceability of every change to a user's money data
2. Debugging information when persistence or export fails
3. A way to reconstruct what happened in a namespace

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    TRANSACTION_REJECTED = "transaction_rejected"
    LEDGER_REPLACED = "ledger_replaced"
    LEDGER_CLEARED = "ledger_cleared"

    # Categories and profile
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    PROFILE_UPDATED = "profile_updated"

    # Sessions
    SESSION_OPENED = "session_opened"
    SESSION_CLOSED = "session_closed"
    LEGACY_MIGRATED = "legacy_migrated"
    NAMESPACE_DELETED = "namespace_deleted"

    # Persistence
    PERSISTENCE_FAILED = "persistence_failed"

    # Export
    EXPORT_GENERATED = "export_generated"
    EXPORT_REFUSED = "export_refused"
    EXPORT_FAILED = "export_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which namespace and entity is this about?
    namespace: Optional[str] = Field(
        default=None,
        description="User namespace the event happened in"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'category', 'export')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "namespace": self.namespace,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """One line of the JSON-lines audit file."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added("alice", tx.id, "EXPENSE", "45.50")
        event = AuditEventBuilder.export_generated("alice", "pdf", name, 12)
    """

    @staticmethod
    def transaction_added(
        namespace: str,
        transaction_id: str,
        transaction_type: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            namespace=namespace,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{transaction_type.title()} of {amount} recorded",
            details={"type": transaction_type, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_removed(namespace: str, transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REMOVED,
            namespace=namespace,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction {transaction_id} removed",
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        namespace: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            namespace=namespace,
            entity_type="transaction",
            description=f"Transaction rejected with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def ledger_replaced(namespace: str, count: int, cleared: bool = False) -> AuditEvent:
        if cleared:
            return AuditEvent(
                event_type=AuditEventType.LEDGER_CLEARED,
                severity=AuditSeverity.WARNING,
                namespace=namespace,
                entity_type="ledger",
                description="All ledger data cleared",
                is_user_action=True,
            )
        return AuditEvent(
            event_type=AuditEventType.LEDGER_REPLACED,
            namespace=namespace,
            entity_type="ledger",
            description=f"Ledger replaced with {count} transaction(s)",
            details={"transaction_count": count},
        )

    @staticmethod
    def category_changed(
        namespace: str,
        category_id: str,
        changes: dict[str, Any],
        created: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.CATEGORY_ADDED if created
                else AuditEventType.CATEGORY_UPDATED
            ),
            namespace=namespace,
            entity_type="category",
            entity_id=category_id,
            description=f"Category {category_id} {'added' if created else 'updated'}",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def profile_updated(namespace: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            namespace=namespace,
            entity_type="profile",
            description=f"Profile fields updated: {', '.join(fields) or 'none'}",
            # Field names only; values may include the opaque password
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def session_opened(namespace: str, new_user: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_OPENED,
            namespace=namespace,
            entity_type="session",
            description=f"Session opened for {namespace}",
            details={"new_user": new_user},
            is_user_action=True,
        )

    @staticmethod
    def session_closed(namespace: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_CLOSED,
            namespace=namespace,
            entity_type="session",
            description=f"Session closed for {namespace}",
            is_user_action=True,
        )

    @staticmethod
    def legacy_migrated(namespace: str, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEGACY_MIGRATED,
            namespace=namespace,
            entity_type="ledger",
            description="Legacy single-user data moved into namespace",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def namespace_deleted(namespace: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NAMESPACE_DELETED,
            severity=AuditSeverity.WARNING,
            namespace=namespace,
            entity_type="namespace",
            description=f"Namespace {namespace} deleted",
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(namespace: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            namespace=namespace,
            entity_type="ledger",
            description="Ledger could not be persisted; in-memory state kept",
            error_message=error_message,
        )

    @staticmethod
    def export_generated(
        namespace: str,
        export_format: str,
        filename: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            namespace=namespace,
            entity_type="export",
            correlation_id=correlation_id,
            entity_id=filename,
            description=f"{export_format.upper()} export generated: {filename}",
            details={"format": export_format, "row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def export_refused(namespace: str, export_format: str, reason: str,
                       correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_REFUSED,
            severity=AuditSeverity.WARNING,
            namespace=namespace,
            entity_type="export",
            correlation_id=correlation_id,
            description=f"{export_format.upper()} export refused",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def export_failed(namespace: str, export_format: str, error_message: str,
                      correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_FAILED,
            severity=AuditSeverity.ERROR,
            namespace=namespace,
            entity_type="export",
            correlation_id=correlation_id,
            description=f"{export_format.upper()} export failed",
            error_message=error_message,
        )
