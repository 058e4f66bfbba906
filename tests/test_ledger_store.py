"""Tests for the LedgerStore: mutations, lookups and persistence semantics."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import TODAY, make_transaction
from fintrack.errors import NotFoundError, PersistenceError, ValidationError
from fintrack.ledger import LedgerStore
from fintrack.models.audit import AuditEventType
from fintrack.models.ledger import (
    UNCATEGORIZED,
    CategoryGroup,
    LedgerBundle,
    ProfileUpdate,
    Transaction,
    TransactionType,
)


class RecordingPersist:
    """persist callback that remembers every bundle and can be made to fail."""

    def __init__(self):
        self.bundles: list[LedgerBundle] = []
        self.fail = False

    def __call__(self, bundle: LedgerBundle) -> None:
        if self.fail:
            raise PersistenceError("disk full")
        self.bundles.append(bundle)


@pytest.fixture
def persist():
    return RecordingPersist()


@pytest.fixture
def store(persist, audit_logger):
    return LedgerStore(persist=persist, namespace="fintrack_data_alice",
                       audit_logger=audit_logger)


class TestTransactions:
    """Tests for add/remove/replace/list."""

    def test_add_and_list(self, store, scenario_a):
        for tx in scenario_a:
            store.add(tx)
        assert [t.id for t in store.list()] == ["t1", "t2", "t3"]
        assert len(store) == 3

    def test_insertion_order_on_same_day(self, store):
        """Test that two same-day transactions come back in insertion order."""
        t1 = make_transaction(10, tx_id="T1")
        t2 = make_transaction(20, tx_id="T2")
        store.add(t1)
        store.add(t2)
        assert store.list() == [t1, t2]

    def test_list_returns_a_copy(self, store):
        store.add(make_transaction(10))
        listed = store.list()
        listed.clear()
        assert len(store.list()) == 1

    def test_add_rejects_invalid_without_mutating(self, store, persist):
        bad = Transaction.model_construct(
            id="bad", amount=Decimal("0"), type=TransactionType.EXPENSE, date=TODAY,
        )
        with pytest.raises(ValidationError):
            store.add(bad)
        assert store.list() == []
        assert persist.bundles == []

    def test_add_rejects_duplicate_id(self, store):
        store.add(make_transaction(10, tx_id="same"))
        with pytest.raises(ValidationError):
            store.add(make_transaction(99, tx_id="same"))
        assert store.get("same").amount == Decimal("10")

    def test_remove(self, store):
        store.add(make_transaction(10, tx_id="a"))
        assert store.remove("a") is True
        assert store.list() == []

    def test_remove_absent_is_noop(self, store, persist):
        assert store.remove("missing") is False
        assert persist.bundles == []

    def test_replace_all_never_merges(self, store, scenario_a):
        store.add(make_transaction(1, tx_id="old"))
        store.replace_all(scenario_a)
        assert [t.id for t in store.list()] == ["t1", "t2", "t3"]

    def test_replace_all_rejects_duplicates_atomically(self, store):
        store.add(make_transaction(1, tx_id="old"))
        dupes = [make_transaction(1, tx_id="x"), make_transaction(2, tx_id="x")]
        with pytest.raises(ValidationError):
            store.replace_all(dupes)
        assert [t.id for t in store.list()] == ["old"]

    def test_get_is_strict(self, store):
        with pytest.raises(NotFoundError):
            store.get("nope")


class TestCategories:
    """Tests for category lookup and the two mutable fields."""

    def test_resolve_unknown_is_uncategorized(self, store):
        assert store.resolve_category("deleted-long-ago") == UNCATEGORIZED
        assert store.resolve_category(None) == UNCATEGORIZED
        assert store.resolve_category("2").name == "Alimentação"

    def test_update_budget(self, store):
        updated = store.update_category("2", budget="350.00")
        assert updated.budget == Decimal("350.00")
        assert store.get_category("2").budget == Decimal("350.00")

    def test_update_color(self, store):
        store.update_category("4", color="#000000")
        assert store.get_category("4").color == "#000000"
        assert store.get_category("4").budget == Decimal("200")

    def test_update_unknown_category(self, store):
        with pytest.raises(NotFoundError):
            store.update_category("999", budget=10)

    def test_negative_budget_rejected(self, store):
        with pytest.raises(ValidationError):
            store.update_category("2", budget=-5)
        assert store.get_category("2").budget == Decimal("300")

    def test_add_category(self, store, audit_storage):
        category = store.add_category("Pets", group=CategoryGroup.NEED, budget=40)
        assert category in store.categories()
        assert category.color == "#6366F1"
        assert audit_storage.events[-1].event_type == AuditEventType.CATEGORY_ADDED


class TestProfileAndReset:
    def test_update_profile(self, store):
        profile = store.update_profile(ProfileUpdate(job="Nurse", hide_balance=True))
        assert profile.job == "Nurse"
        assert store.profile.hide_balance is True

    def test_clear_restores_defaults(self, store):
        store.add(make_transaction(10))
        store.update_category("2", budget=1)
        store.update_profile(ProfileUpdate(name="alice"))
        store.clear()
        assert store.list() == []
        assert store.get_category("2").budget == Decimal("300")
        assert store.profile.name == "alice"


class TestPersistence:
    """Tests for immediate persistence and failure handling."""

    def test_every_mutation_persists(self, store, persist):
        tx = make_transaction(10, tx_id="a")
        store.add(tx)
        store.update_category("2", budget=100)
        store.remove("a")
        assert len(persist.bundles) == 3
        assert persist.bundles[0].transactions == [tx]
        assert persist.bundles[-1].transactions == []

    def test_failed_write_keeps_memory_state(self, store, persist, audit_storage):
        """Test that a storage failure neither loses the entry nor hides the error."""
        persist.fail = True
        tx = make_transaction(10, tx_id="a")
        with pytest.raises(PersistenceError):
            store.add(tx)

        assert store.list() == [tx]
        assert store.has_unsaved_changes is True
        assert any(e.event_type == AuditEventType.PERSISTENCE_FAILED
                   for e in audit_storage.events)

    def test_flush_retries(self, store, persist):
        persist.fail = True
        with pytest.raises(PersistenceError):
            store.add(make_transaction(10, tx_id="a"))

        persist.fail = False
        store.flush()
        assert store.has_unsaved_changes is False
        assert [t.id for t in persist.bundles[-1].transactions] == ["a"]

    def test_non_storage_errors_are_wrapped(self, audit_logger):
        def broken(bundle):
            raise OSError("read-only file system")

        store = LedgerStore(persist=broken, audit_logger=audit_logger)
        with pytest.raises(PersistenceError):
            store.add(make_transaction(1))

    def test_without_persist_callback(self):
        store = LedgerStore()
        store.add(make_transaction(1, day=date(2026, 1, 1)))
        assert store.has_unsaved_changes is False

    def test_audit_trail(self, store, audit_storage):
        store.add(make_transaction(10, tx_id="a"))
        store.remove("a")
        types = [e.event_type for e in audit_storage.events]
        assert types == [AuditEventType.TRANSACTION_ADDED, AuditEventType.TRANSACTION_REMOVED]
