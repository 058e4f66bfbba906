"""
In-Memory Storage

Used by tests and by throwaway sessions. Behaves exactly like the file
backend minus the disk.
"""

from typing import Optional

from fintrack.models.audit import AuditEvent
from fintrack.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
)


class InMemoryStorage(KeyValueStorageInterface):
    """Dict-backed key/value storage."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit log."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_events_by_namespace(self, namespace: str) -> list[AuditEvent]:
        return sorted(
            (e for e in self.events if e.namespace == namespace),
            key=lambda e: e.timestamp,
        )

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
