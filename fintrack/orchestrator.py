"""
Main Orchestrator for FinTrack

This module ties the components together behind the calls the
presentation layer makes:
1. Entry (form input → validate → ledger → persisted)
2. Dashboard and history (ledger → aggregation → numbers)
3. Export (ledger → period filter → pipeline → artifact)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing enters the ledger without passing validation
- Aggregates are always recomputed from the ledger, never cached
- Exports of nothing are refused, not rendered empty
- Every step is audited

It holds no user state of its own; everything belongs to the Session.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional, Union

from fintrack.analytics import (
    AllocationReport,
    BudgetAlert,
    BudgetUtilization,
    DayGroup,
    Totals,
    TrendPoint,
    allocation,
    budget_alerts,
    budget_utilization,
    filter_by_period,
    group_by_day,
    recent_n,
    sort_transactions,
    totals,
    trend,
    weekly_trend,
)
from fintrack.audit import AuditLogger, create_correlation_id
from fintrack.config import Settings, get_settings
from fintrack.errors import ValidationError
from fintrack.export.context import ExportContext
from fintrack.export.formatting import format_currency
from fintrack.export.pipeline import ExportArtifact, ExportFormat, ExportPipeline
from fintrack.ledger import Session, SessionStore
from fintrack.models.ledger import (
    Category,
    CategoryGroup,
    Period,
    ProfileUpdate,
    SortOrder,
    Transaction,
    TransactionInput,
    TransactionType,
    UserProfile,
    categories_for_type,
)
from fintrack.services.storage import (
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonFileStorage,
    JsonLinesAuditStorage,
)
from fintrack.validation import TransactionValidator


class FinanceTracker:
    """
    Everything the presentation layer can do with one logged-in user.

    Usage:
        sessions, audit_logger = create_app_components()
        tracker = FinanceTracker(sessions.login("alice"), audit_logger=audit_logger)
        tracker.create_transaction(TransactionInput(amount="45,50", date="2026-10-19"))
    """

    def __init__(
        self,
        session: Session,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """
        Args:
            session: The open namespace this tracker works on.
            audit_logger: Optional audit trail.
            settings: Defaults to get_settings().
            today: Clock used for trends, budgets and issue dates.
        """
        self._session = session
        self._audit_logger = audit_logger
        self._settings = settings or get_settings()
        self._today = today or date.today
        self._pipeline = ExportPipeline(
            audit_logger=audit_logger,
            namespace=session.namespace,
        )

    @property
    def session(self) -> Session:
        return self._session

    @property
    def profile(self) -> UserProfile:
        return self._session.store.profile

    def _transactions(self, period: Optional[Period] = None) -> list[Transaction]:
        return filter_by_period(self._session.store.list(), period)

    def _current_month(self) -> Period:
        return Period.month_of(self._today())

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def create_transaction(self, data: TransactionInput) -> Transaction:
        """
        Validate form input and add the resulting transaction.

        Raises:
            ValidationError: Input rejected; the ledger is untouched
            PersistenceError: Added in memory but not yet saved
        """
        store = self._session.store
        validator = TransactionValidator(
            categories=store.categories(),
            today=self._today(),
        )
        try:
            transaction = validator.build(data, locale=self.profile.locale)
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_transaction_rejected(
                    self._session.namespace,
                    [issue.model_dump() for issue in e.issues],
                )
            raise
        return store.add(transaction)

    def delete_transaction(self, transaction_id: str) -> bool:
        return self._session.store.remove(transaction_id)

    def list_transactions(
        self,
        period: Optional[Period] = None,
        order: SortOrder = SortOrder.DATE_DESC,
    ) -> list[Transaction]:
        return sort_transactions(self._transactions(period), order)

    def history(self, period: Optional[Period] = None) -> list[DayGroup]:
        """Transactions grouped by day, newest first."""
        return group_by_day(self._transactions(period))

    def get_recent(self, n: int = 5, order: SortOrder = SortOrder.DATE_DESC) -> list[Transaction]:
        return recent_n(self._session.store.list(), n, order)

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def list_categories(self, transaction_type: Optional[TransactionType] = None) -> list[Category]:
        """All categories, or only those a transaction of this type may use."""
        categories = self._session.store.categories()
        if transaction_type is None:
            return categories
        return categories_for_type(categories, transaction_type)

    def add_category(
        self,
        name: str,
        group: CategoryGroup = CategoryGroup.WANT,
        budget: Union[Decimal, int, float, str] = Decimal("0"),
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        return self._session.store.add_category(
            name=name, group=group, budget=budget, icon=icon, color=color,
        )

    def upsert_category_budget(
        self,
        category_id: str,
        new_budget: Union[Decimal, int, float, str],
    ) -> Category:
        return self._session.store.update_category(category_id, budget=new_budget)

    def update_category_color(self, category_id: str, color: str) -> Category:
        return self._session.store.update_category(category_id, color=color)

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    def get_totals(self, period: Optional[Period] = None) -> Totals:
        return totals(self._transactions(period))

    def get_trend(self, days: Optional[int] = None) -> list[TrendPoint]:
        return trend(
            self._session.store.list(),
            days=self._settings.trend_days if days is None else days,
            reference_date=self._today(),
            locale=self.profile.locale,
        )

    def get_weekly_trend(self, weeks: int = 4) -> list[TrendPoint]:
        return weekly_trend(
            self._session.store.list(),
            weeks=weeks,
            reference_date=self._today(),
        )

    def get_budget_utilization(self, period: Optional[Period] = None) -> list[BudgetUtilization]:
        """
        Budget use for a month (the current one by default).

        Raises:
            ValueError: If `period` is a whole year; budgets are monthly
        """
        period = period or self._current_month()
        if not period.is_month:
            raise ValueError("Budget utilization needs a month, not a whole year")
        return budget_utilization(
            self._session.store.list(),
            self._session.store.categories(),
            month=period.month,
            year=period.year,
        )

    def get_budget_alerts(self, period: Optional[Period] = None) -> list[BudgetAlert]:
        return budget_alerts(
            self.get_budget_utilization(period),
            threshold=self._settings.budget_alert_threshold,
        )

    def get_allocation(self, period: Optional[Period] = None) -> AllocationReport:
        period = period or self._current_month()
        return allocation(self._transactions(period), self._session.store.categories())

    # =========================================================================
    # PROFILE AND DATA
    # =========================================================================

    def update_profile(self, update: ProfileUpdate) -> UserProfile:
        return self._session.store.update_profile(update)

    def display_amount(self, value: Decimal, signed: bool = False) -> str:
        """Amount formatted for screen; masked while hide_balance is on."""
        profile = self.profile
        return format_currency(
            value,
            currency=profile.currency,
            locale=profile.locale,
            hidden=profile.hide_balance,
            signed=signed,
        )

    def clear_all_data(self) -> None:
        self._session.store.clear()

    # =========================================================================
    # EXPORT
    # =========================================================================

    def export_context(self, period: Optional[Period] = None) -> ExportContext:
        store = self._session.store
        return ExportContext(
            transactions=sort_transactions(self._transactions(period), SortOrder.DATE_DESC),
            categories=store.categories(),
            profile=store.profile,
            period=period,
            issued_on=self._today(),
            product_name=self._settings.product_name,
        )

    def export_as(
        self,
        export_format: Union[ExportFormat, str],
        period: Optional[Period] = None,
        directory: Optional[Path] = None,
    ) -> ExportArtifact:
        """
        Render the ledger (or one period of it) and optionally save it.

        Exports ignore hide_balance: they always carry real amounts.

        Raises:
            ExportError: Nothing to export, rendering failed, or the
                        file could not be written
        """
        correlation_id = create_correlation_id()
        artifact = self._pipeline.export(
            self.export_context(period),
            ExportFormat(export_format),
            correlation_id=correlation_id,
        )
        if directory is not None:
            self._pipeline.save(artifact, directory)
        return artifact


def create_app_components(
    use_storage: bool = True,
    settings: Optional[Settings] = None,
) -> tuple[SessionStore, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to settings.data_dir.
                    Set to False for testing without disk access.
        settings: Defaults to get_settings().

    Returns:
        (session_store, audit_logger)
    """
    settings = settings or get_settings()

    if use_storage:
        backend = JsonFileStorage(
            settings.data_dir,
            retry_attempts=settings.storage_retry_attempts,
        )
        audit_storage = (
            JsonLinesAuditStorage(settings.audit_log_path)
            if settings.audit_log_enabled else None
        )
    else:
        backend = InMemoryStorage()
        audit_storage = InMemoryAuditStorage() if settings.audit_log_enabled else None

    audit_logger = AuditLogger(audit_storage)
    sessions = SessionStore(
        backend,
        audit_logger=audit_logger,
        default_currency=settings.default_currency,
        default_locale=settings.default_locale,
    )
    return sessions, audit_logger
