"""
Ledger Store

DESIGN DECISION: The store is the ONLY place a user's transactions,
categories and profile are mutated. Everything else reads copies.

Persistence is immediate: after every mutation the whole namespace
is handed to the `persist` callback. When that fails the in-memory
state is kept (the user's entry is not lost), `has_unsaved_changes`
is raised and the failure propagates as PersistenceError. flush()
retries the write.
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from fintrack.audit.logger import AuditLogger, get_logger
from fintrack.errors import NotFoundError, PersistenceError, ValidationError
from fintrack.models.ledger import (
    UNCATEGORIZED,
    Category,
    CategoryGroup,
    LedgerBundle,
    ProfileUpdate,
    Transaction,
    UserProfile,
    ValidationIssue,
    default_categories,
)
from fintrack.validation.validator import ensure_valid_transaction


PersistCallback = Callable[[LedgerBundle], None]

logger = get_logger(__name__)


class LedgerStore:
    """
    Authoritative in-memory ledger for one namespace.

    Transactions keep insertion order; anything ordered by date is
    derived by the aggregation functions.
    """

    def __init__(
        self,
        bundle: Optional[LedgerBundle] = None,
        persist: Optional[PersistCallback] = None,
        namespace: str = "",
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            bundle: Initial state; a fresh bundle when None.
            persist: Called with the full bundle after every mutation.
            namespace: Namespace name, used for logging and audit only.
            audit_logger: Optional audit trail.
        """
        if bundle is None:
            bundle = LedgerBundle()
        self._transactions: list[Transaction] = list(bundle.transactions)
        self._categories: list[Category] = list(bundle.categories)
        self._profile: UserProfile = bundle.profile
        self._persist = persist
        self._namespace = namespace
        self._audit_logger = audit_logger
        self.has_unsaved_changes = False

    @property
    def namespace(self) -> str:
        return self._namespace

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def snapshot(self) -> LedgerBundle:
        """The current state as one bundle."""
        return LedgerBundle(
            transactions=list(self._transactions),
            categories=list(self._categories),
            profile=self._profile,
        )

    def _save(self) -> None:
        if self._persist is None:
            return
        try:
            self._persist(self.snapshot())
        except Exception as e:
            self.has_unsaved_changes = True
            logger.error(
                "ledger_persist_failed",
                namespace=self._namespace,
                error=str(e),
            )
            if self._audit_logger:
                self._audit_logger.log_persistence_failed(self._namespace, str(e))
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Could not persist ledger: {e}") from e
        self.has_unsaved_changes = False

    def flush(self) -> None:
        """
        Write the current state again.

        Raises:
            PersistenceError: If storage is still failing
        """
        self._save()

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def add(self, transaction: Transaction) -> Transaction:
        """
        Append a transaction.

        Raises:
            ValidationError: Amount not positive, date invalid, or id taken.
                             Nothing is mutated in that case.
            PersistenceError: Added in memory but could not be written
        """
        ensure_valid_transaction(transaction)
        if any(t.id == transaction.id for t in self._transactions):
            raise ValidationError(
                f"Transaction id {transaction.id} already exists",
                issues=[ValidationIssue(
                    field="id",
                    issue_type="duplicate",
                    message=f"Transaction id {transaction.id} already exists",
                    severity="error",
                )],
            )

        self._transactions.append(transaction)
        if self._audit_logger:
            self._audit_logger.log_transaction_added(
                self._namespace,
                transaction.id,
                transaction.type.value,
                str(transaction.amount),
            )
        self._save()
        return transaction

    def remove(self, transaction_id: str) -> bool:
        """Delete by id. Returns False (and changes nothing) if absent."""
        for index, t in enumerate(self._transactions):
            if t.id == transaction_id:
                del self._transactions[index]
                break
        else:
            return False

        if self._audit_logger:
            self._audit_logger.log_transaction_removed(self._namespace, transaction_id)
        self._save()
        return True

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        """
        Replace every transaction. Never merges.

        All transactions are checked before anything changes.
        """
        incoming = list(transactions)
        seen = set()
        for t in incoming:
            ensure_valid_transaction(t)
            if t.id in seen:
                raise ValidationError(f"Duplicate transaction id {t.id}")
            seen.add(t.id)

        self._transactions = incoming
        if self._audit_logger:
            self._audit_logger.log_ledger_replaced(self._namespace, len(incoming))
        self._save()

    def get(self, transaction_id: str) -> Transaction:
        """
        Raises:
            NotFoundError: If no transaction has this id
        """
        for t in self._transactions:
            if t.id == transaction_id:
                return t
        raise NotFoundError(f"Transaction {transaction_id} not found")

    def __len__(self) -> int:
        return len(self._transactions)

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def categories(self) -> list[Category]:
        return list(self._categories)

    def _category_index(self, category_id: str) -> int:
        for index, c in enumerate(self._categories):
            if c.id == category_id:
                return index
        raise NotFoundError(f"Category {category_id} not found")

    def get_category(self, category_id: str) -> Category:
        return self._categories[self._category_index(category_id)]

    def resolve_category(self, category_id: Optional[str]) -> Category:
        """Graceful lookup: anything unknown reads as UNCATEGORIZED."""
        if category_id:
            for c in self._categories:
                if c.id == category_id:
                    return c
        return UNCATEGORIZED

    def add_category(
        self,
        name: str,
        group: CategoryGroup = CategoryGroup.WANT,
        budget: Union[Decimal, int, float, str] = Decimal("0"),
        icon: Optional[str] = None,
        color: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> Category:
        """
        Create a category with a fresh id (unless one is given).

        Raises:
            ValidationError: Bad name or budget, or the id already exists
        """
        data = {"name": name, "group": group, "budget": budget}
        if icon:
            data["icon"] = icon
        if color:
            data["color"] = color
        if category_id:
            data["id"] = category_id

        try:
            category = Category.model_validate(data)
        except ValueError as e:
            raise ValidationError(f"Invalid category: {e}") from e
        if any(c.id == category.id for c in self._categories):
            raise ValidationError(f"Category id {category.id} already exists")

        self._categories.append(category)
        if self._audit_logger:
            self._audit_logger.log_category_changed(
                self._namespace,
                category.id,
                {"name": category.name, "group": category.group.value,
                 "budget": str(category.budget)},
                created=True,
            )
        self._save()
        return category

    def update_category(
        self,
        category_id: str,
        budget: Union[Decimal, int, float, str, None] = None,
        color: Optional[str] = None,
    ) -> Category:
        """
        Change a category's budget and/or color. Nothing else is mutable.

        Raises:
            NotFoundError: Unknown category id
            ValidationError: Negative or malformed budget
        """
        index = self._category_index(category_id)
        category = self._categories[index]
        changes = {}

        try:
            if budget is not None:
                category = category.with_budget(budget)
                changes["budget"] = str(category.budget)
            if color is not None:
                category = category.with_color(color)
                changes["color"] = category.color
        except ValueError as e:
            raise ValidationError(f"Invalid category update: {e}") from e

        if not changes:
            return category

        self._categories[index] = category
        if self._audit_logger:
            self._audit_logger.log_category_changed(self._namespace, category_id, changes)
        self._save()
        return category

    # =========================================================================
    # PROFILE
    # =========================================================================

    @property
    def profile(self) -> UserProfile:
        return self._profile

    def update_profile(self, update: ProfileUpdate) -> UserProfile:
        """
        Apply the explicitly set fields of `update`.

        Raises:
            ValidationError: A set field has an invalid value
        """
        try:
            profile = self._profile.apply(update)
        except ValueError as e:
            raise ValidationError(f"Invalid profile update: {e}") from e

        fields = sorted(update.model_dump(exclude_unset=True))
        self._profile = profile
        if self._audit_logger:
            self._audit_logger.log_profile_updated(self._namespace, fields)
        self._save()
        return profile

    # =========================================================================
    # RESET
    # =========================================================================

    def clear(self) -> None:
        """Clear all data: no transactions, default categories. Profile stays."""
        self._transactions = []
        self._categories = default_categories()
        if self._audit_logger:
            self._audit_logger.log_ledger_replaced(self._namespace, 0, cleared=True)
        self._save()

    # Defined last: the name shadows the builtin inside the class body
    def list(self) -> list[Transaction]:
        """Copy of all transactions, insertion order."""
        return list(self._transactions)
