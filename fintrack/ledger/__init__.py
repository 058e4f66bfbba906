"""Ledger store and per-user sessions."""

from fintrack.ledger.session import (
    ACTIVE_KEY,
    LEGACY_KEYS,
    Session,
    SessionStore,
    namespace_key,
)
from fintrack.ledger.store import LedgerStore

__all__ = [
    "ACTIVE_KEY",
    "LEGACY_KEYS",
    "LedgerStore",
    "Session",
    "SessionStore",
    "namespace_key",
]
