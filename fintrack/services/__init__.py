"""Services package."""

from fintrack.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonFileStorage,
    JsonLinesAuditStorage,
    KeyValueStorageInterface,
    NotFoundError,
    QuotaExceededError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "JsonLinesAuditStorage",
    "KeyValueStorageInterface",
    "NotFoundError",
    "QuotaExceededError",
    "StorageError",
]
