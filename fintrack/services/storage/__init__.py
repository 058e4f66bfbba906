"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements JSON files on disk as the backend, but designed to be
swappable.
"""

from fintrack.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    NotFoundError,
    QuotaExceededError,
    StorageError,
)
from fintrack.services.storage.json_file import (
    JsonFileStorage,
    JsonLinesAuditStorage,
    atomic_write,
)
from fintrack.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    # Exceptions
    "NotFoundError",
    "QuotaExceededError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "JsonLinesAuditStorage",
    # Helpers
    "atomic_write",
]
