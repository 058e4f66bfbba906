"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the on-disk JSON files as one swappable backend
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from where bytes end up

The ledger is persisted the way the original app used localStorage:
a flat map of string keys to JSON text. The interface is intentionally
that small.
"""

from abc import ABC, abstractmethod
from typing import Optional

from fintrack.errors import NotFoundError, PersistenceError
from fintrack.models.audit import AuditEvent


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for namespaced key/value persistence.

    Any storage implementation (JSON files, SQLite, a browser bridge...)
    must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the text stored under a key.

        Returns:
            The stored text, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store text under a key, replacing whatever was there.

        Raises:
            StorageError: If the write fails (unavailable, quota exceeded)
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List every stored key, sorted."""
        pass

    def exists(self, key: str) -> bool:
        return self.get(key) is not None


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_namespace(self, namespace: str) -> list[AuditEvent]:
        """
        Get all events for one user namespace.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


# Storage failures are persistence failures in the core's taxonomy
StorageError = PersistenceError


class QuotaExceededError(StorageError):
    """Backend refused the write because it is full."""
    pass


__all__ = [
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    "NotFoundError",
    "QuotaExceededError",
    "StorageError",
]
