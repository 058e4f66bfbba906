"""
Shared fixtures.

Everything runs against the in-memory backends; tests that need real
files use tmp_path.
"""

from datetime import date
from decimal import Decimal

import pytest

from fintrack.audit import AuditLogger
from fintrack.config import Settings
from fintrack.ledger import SessionStore
from fintrack.models.ledger import (
    INCOME_CATEGORY_ID,
    Transaction,
    TransactionType,
)
from fintrack.orchestrator import FinanceTracker
from fintrack.services.storage import InMemoryAuditStorage, InMemoryStorage


TODAY = date(2026, 10, 19)


def make_transaction(amount, transaction_type=TransactionType.EXPENSE, day=TODAY,
                     category_id="2", description="", tx_id=None, **extra) -> Transaction:
    data = dict(
        amount=Decimal(str(amount)),
        type=transaction_type,
        date=day,
        category_id=category_id,
        description=description,
        **extra,
    )
    if tx_id:
        data["id"] = tx_id
    return Transaction(**data)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", export_dir=tmp_path / "exports")


@pytest.fixture
def sessions(storage, audit_logger):
    return SessionStore(storage, audit_logger=audit_logger)


@pytest.fixture
def session(sessions):
    return sessions.login("alice")


@pytest.fixture
def tracker(session, audit_logger, settings):
    return FinanceTracker(session, audit_logger=audit_logger, settings=settings,
                          today=lambda: TODAY)


@pytest.fixture
def scenario_a():
    """Salary, rent and groceries on the same day."""
    return [
        make_transaction(2500, TransactionType.INCOME, category_id=INCOME_CATEGORY_ID,
                         description="Salário Mensal", tx_id="t1"),
        make_transaction(750, category_id="1", description="Renda Apartamento", tx_id="t2"),
        make_transaction("45.50", category_id="2", description="Continente Supermercado",
                         tx_id="t3"),
    ]
