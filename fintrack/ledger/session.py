"""
Profile/Session Store

DESIGN DECISION: There is no module-level "current user". login()
returns a Session that carries the namespace and its LedgerStore, and
every call that touches a user's data goes through that object.

Each user owns one namespace key holding the whole LedgerBundle:

    fintrack_data_<username>   -> {transactions, categories, profile}
    fintrack_active_user       -> last logged-in namespace

Switching users therefore swaps transactions, categories and profile
together in a single read; they can never get out of step.

Single-user installs of the legacy app kept three separate keys
(fintrack_*_v2). The first login of a user without a namespaced bundle
adopts that data and removes the legacy keys.
"""

from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from fintrack.audit.logger import AuditLogger, get_logger
from fintrack.errors import NotFoundError, PersistenceError, ValidationError
from fintrack.export.formatting import quantize
from fintrack.ledger.store import LedgerStore
from fintrack.models.ledger import (
    Category,
    LedgerBundle,
    Transaction,
    UserProfile,
    default_categories,
)
from fintrack.services.storage import KeyValueStorageInterface


NAMESPACE_PREFIX = "fintrack_data_"
ACTIVE_KEY = "fintrack_active_user"

LEGACY_TRANSACTIONS_KEY = "fintrack_transactions_v2"
LEGACY_CATEGORIES_KEY = "fintrack_categories_v2"
LEGACY_PROFILE_KEY = "fintrack_profile_v2"
LEGACY_KEYS = (LEGACY_TRANSACTIONS_KEY, LEGACY_CATEGORIES_KEY, LEGACY_PROFILE_KEY)

_rows_adapter = TypeAdapter(list[dict[str, Any]])
_categories_adapter = TypeAdapter(list[Category])

logger = get_logger(__name__)


def normalize_username(username: str) -> str:
    """Usernames are case-insensitive and ignore surrounding whitespace."""
    return username.strip().lower()


def namespace_key(username: str) -> str:
    """
    Storage key for a user's bundle.

    Raises:
        ValidationError: If the username is empty
    """
    name = normalize_username(username)
    if not name:
        raise ValidationError("Username must not be empty")
    return f"{NAMESPACE_PREFIX}{name}"


def _legacy_transactions(raw: str) -> list[Transaction]:
    """
    Parse the legacy transaction list row by row.

    The legacy form stored whatever parseFloat produced, so amounts are
    rounded half up to cents first. Rows that still fail validation are
    logged and left out; the rest are adopted.

    Raises:
        pydantic.ValidationError: If the payload is not a JSON list of objects
    """
    transactions = []
    for index, row in enumerate(_rows_adapter.validate_json(raw)):
        amount = row.get("amount")
        try:
            if isinstance(amount, (int, float, str)) and not isinstance(amount, bool):
                row = {**row, "amount": quantize(str(amount))}
            transactions.append(Transaction.model_validate(row))
        except (InvalidOperation, PydanticValidationError) as e:
            logger.warning(
                "legacy_transaction_skipped",
                index=index,
                transaction_id=row.get("id"),
                error=str(e),
            )
    return transactions


@dataclass
class Session:
    """An open namespace: who is logged in and their ledger."""

    username: str
    store: LedgerStore
    is_new_user: bool = False

    @property
    def namespace(self) -> str:
        return namespace_key(self.username)

    @property
    def profile(self) -> UserProfile:
        return self.store.profile


class SessionStore:
    """
    Maps users to their persisted LedgerBundle.

    Usage:
        sessions = SessionStore(JsonFileStorage(settings.data_dir))
        session = sessions.login("Alice")
        session.store.add(transaction)   # persisted immediately
    """

    def __init__(
        self,
        backend: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        default_currency: str = "EUR",
        default_locale: str = "pt-PT",
    ):
        self._backend = backend
        self._audit_logger = audit_logger
        self._default_currency = default_currency
        self._default_locale = default_locale

    # =========================================================================
    # BUNDLE IO
    # =========================================================================

    def _read_bundle(self, key: str) -> Optional[LedgerBundle]:
        raw = self._backend.get(key)
        if raw is None:
            return None
        try:
            return LedgerBundle.from_json(raw)
        except PydanticValidationError as e:
            raise PersistenceError(f"Stored bundle {key} is unreadable: {e}") from e

    def _writer(self, key: str):
        def persist(bundle: LedgerBundle) -> None:
            self._backend.set(key, bundle.to_json())
        return persist

    def _new_profile(self, username: str, password: Optional[str]) -> UserProfile:
        return UserProfile(
            name=username,
            currency=self._default_currency,
            locale=self._default_locale,
            password=password,
        )

    # =========================================================================
    # USERS
    # =========================================================================

    def user_exists(self, username: str) -> bool:
        return self._backend.exists(namespace_key(username))

    def users(self) -> list[str]:
        """Every user with a stored namespace, sorted."""
        return sorted(
            key[len(NAMESPACE_PREFIX):]
            for key in self._backend.keys()
            if key.startswith(NAMESPACE_PREFIX)
        )

    def active_user(self) -> Optional[str]:
        """Username of the last session that was not logged out."""
        return self._backend.get(ACTIVE_KEY) or None

    def login(self, username: str, password: Optional[str] = None) -> Session:
        """
        Open a user's namespace, creating it on first login.

        A new user starts with no transactions, the default categories
        and a profile named after them, unless legacy single-user data
        is waiting to be adopted.

        Raises:
            ValidationError: Empty username
            PersistenceError: Stored bundle unreadable or storage unavailable
        """
        key = namespace_key(username)
        name = normalize_username(username)

        bundle = self._read_bundle(key)
        is_new_user = bundle is None

        if bundle is None:
            try:
                legacy = self.load_legacy()
            except PersistenceError as e:
                # Legacy keys stay in place for a later repair
                logger.warning("legacy_data_unreadable", namespace=key, error=str(e))
                legacy = None
            if legacy is not None:
                bundle = legacy.model_copy(update={
                    "profile": legacy.profile if self._backend.exists(LEGACY_PROFILE_KEY)
                    else self._new_profile(name, password),
                })
                self._backend.set(key, bundle.to_json())
                for legacy_key in LEGACY_KEYS:
                    self._backend.delete(legacy_key)
                logger.info(
                    "legacy_data_migrated",
                    namespace=key,
                    transactions=len(bundle.transactions),
                )
                if self._audit_logger:
                    self._audit_logger.log_legacy_migrated(key, len(bundle.transactions))
            else:
                bundle = LedgerBundle(
                    categories=default_categories(),
                    profile=self._new_profile(name, password),
                )
                self._backend.set(key, bundle.to_json())

        self._backend.set(ACTIVE_KEY, name)
        store = LedgerStore(
            bundle=bundle,
            persist=self._writer(key),
            namespace=key,
            audit_logger=self._audit_logger,
        )

        if self._audit_logger:
            self._audit_logger.log_session_opened(key, new_user=is_new_user)
        return Session(username=name, store=store, is_new_user=is_new_user)

    def logout(self, session: Session) -> None:
        """
        Close a session. Pending changes are flushed first.

        Raises:
            PersistenceError: If unsaved changes still cannot be written
        """
        if session.store.has_unsaved_changes:
            session.store.flush()
        if self.active_user() == session.username:
            self._backend.delete(ACTIVE_KEY)
        if self._audit_logger:
            self._audit_logger.log_session_closed(session.namespace)

    def delete_user(self, username: str) -> None:
        """
        Remove a user's namespace entirely.

        Raises:
            NotFoundError: If the user has no namespace
        """
        key = namespace_key(username)
        if not self._backend.delete(key):
            raise NotFoundError(f"User {normalize_username(username)} not found")
        if self.active_user() == normalize_username(username):
            self._backend.delete(ACTIVE_KEY)
        if self._audit_logger:
            self._audit_logger.log_namespace_deleted(key)

    # =========================================================================
    # LEGACY LAYOUT
    # =========================================================================

    def load_legacy(self) -> Optional[LedgerBundle]:
        """
        Read the pre-namespace single-user keys.

        Returns None when no legacy transactions or categories exist.
        Missing pieces fall back to defaults.

        Raises:
            PersistenceError: If legacy data exists but cannot be parsed
        """
        raw_transactions = self._backend.get(LEGACY_TRANSACTIONS_KEY)
        raw_categories = self._backend.get(LEGACY_CATEGORIES_KEY)
        raw_profile = self._backend.get(LEGACY_PROFILE_KEY)
        if raw_transactions is None and raw_categories is None:
            return None

        try:
            transactions = _legacy_transactions(raw_transactions) if raw_transactions else []
            categories = (
                _categories_adapter.validate_json(raw_categories)
                if raw_categories else default_categories()
            )
            profile = (
                UserProfile.model_validate_json(raw_profile)
                if raw_profile else UserProfile()
            )
        except PydanticValidationError as e:
            raise PersistenceError(f"Legacy data is unreadable: {e}") from e

        return LedgerBundle(
            transactions=transactions,
            categories=categories,
            profile=profile,
        )
