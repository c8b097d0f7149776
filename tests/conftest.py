from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from txreview.core.models import Base
from txreview.core.records import BankTransaction
from txreview.core.exceptions import StoreError
from txreview.store.sql import SqlTransactionStore

BUSINESS_ID = "test-business"
CREATED_AT = datetime(2025, 7, 1, 9, 0, 0)


def make_tx(
    description="Coffee",
    amount="10.00",
    day=date(2025, 6, 15),
    business_id=BUSINESS_ID,
    **fields,
) -> BankTransaction:
    """Build a PENDING transaction with sensible defaults."""
    tx = BankTransaction.create(
        business_id=business_id,
        date=day,
        amount=Decimal(amount),
        description=description,
        now=CREATED_AT,
    )
    if fields:
        tx = replace(tx, **fields)
    return tx


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create an in-memory SQLite database for testing."""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return SqlTransactionStore(db_session, BUSINESS_ID)


@pytest.fixture
def seed(store):
    """Save transactions through the store and return them in the given order."""

    def _seed(*transactions):
        return [store.save(tx) for tx in transactions]

    return _seed


class FlakyStore(SqlTransactionStore):
    """Store that fails writes for chosen ids, to exercise error paths."""

    def __init__(self, db, business_id, fail_ids=()):
        super().__init__(db, business_id)
        self.fail_ids = set(fail_ids)
        self.writes = []

    def _check(self, transaction_id):
        if transaction_id in self.fail_ids:
            raise StoreError(f"disk full while writing {transaction_id}")
        self.writes.append(transaction_id)

    def save(self, tx):
        self._check(tx.id)
        return super().save(tx)

    def exclude(self, transaction_id, reason, now):
        self._check(transaction_id)
        return super().exclude(transaction_id, reason, now)

    def skip(self, transaction_id, now):
        self._check(transaction_id)
        return super().skip(transaction_id, now)

    def set_business_flag(self, transaction_id, is_business, now):
        self._check(transaction_id)
        return super().set_business_flag(transaction_id, is_business, now)


@pytest.fixture
def flaky_store(db_session):
    return FlakyStore(db_session, BUSINESS_ID)
