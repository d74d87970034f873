import os
import sys
from datetime import date, datetime
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DB_URL", "sqlite://")

from paintshop.core.errors import NotFoundError, ValidationFailed
from paintshop.db.session import Base, create_db_engine
from paintshop.services import vendor_ledger
from paintshop.models import LedgerEntry


@pytest.fixture()
def db_session():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _add(db, vendor, kind, amount, when, description=None):
    return vendor_ledger.add_transaction(
        db,
        vendor=vendor,
        transaction_type=kind,
        amount=amount,
        description=description,
        when=when,
    )


def test_balance_chain_across_days(db_session):
    t1 = _add(db_session, "Acme", "receivable", 100, datetime(2024, 1, 1, 10))
    t2 = _add(db_session, "Acme", "payable", 30, datetime(2024, 1, 2, 11))

    assert (t1.opening_balance, t1.closing_balance) == (0, 100)
    assert (t2.opening_balance, t2.closing_balance) == (100, 70)
    assert t1.status == "completed"


def test_same_day_entries_share_the_previous_close(db_session):
    _add(db_session, "Acme", "receivable", 100, datetime(2024, 1, 1, 10))
    late = _add(db_session, "Acme", "receivable", 50, datetime(2024, 1, 2, 17))
    early = _add(db_session, "Acme", "payable", 30, datetime(2024, 1, 2, 8))

    assert early.opening_balance == 100
    assert late.opening_balance == 100
    assert early.closing_balance == 70
    assert late.closing_balance == 150


def test_vendors_keep_separate_chains(db_session):
    _add(db_session, "Acme", "receivable", 100, datetime(2024, 1, 1, 10))
    other = _add(db_session, "Zenith", "payable", 40, datetime(2024, 1, 2, 10))

    assert other.opening_balance == 0
    assert other.closing_balance == -40
    assert vendor_ledger.opening_balance_for(db_session, "Acme", date(2024, 1, 2)) == 100
    assert vendor_ledger.opening_balance_for(db_session, "Acme", date(2024, 1, 1)) == 0


def test_invalid_transactions_are_rejected(db_session):
    with pytest.raises(ValidationFailed):
        _add(db_session, "Acme", "refund", 10, datetime(2024, 1, 1))
    with pytest.raises(ValidationFailed):
        _add(db_session, "Acme", "payable", 0, datetime(2024, 1, 1))
    with pytest.raises(ValidationFailed):
        _add(db_session, "  ", "payable", 5, datetime(2024, 1, 1))


def test_daily_ledger_returns_one_day_in_order(db_session):
    _add(db_session, "Acme", "receivable", 10, datetime(2024, 2, 1, 23, 59))
    b = _add(db_session, "Zenith", "payable", 20, datetime(2024, 2, 2, 15))
    a = _add(db_session, "Acme", "payable", 5, datetime(2024, 2, 2, 0, 0))

    assert [entry.id for entry in vendor_ledger.daily_ledger(db_session, date(2024, 2, 2))] == [a.id, b.id]


def test_vendor_ledger_range(db_session):
    _add(db_session, "Acme", "receivable", 100, datetime(2024, 1, 1, 10))
    _add(db_session, "Acme", "payable", 30, datetime(2024, 1, 2, 10))
    _add(db_session, "Acme", "receivable", 5, datetime(2024, 1, 3, 10))

    full = vendor_ledger.vendor_ledger(db_session, "Acme")
    assert full["opening_balance"] == 0
    assert full["closing_balance"] == 75
    assert full["total_transactions"] == 3

    window = vendor_ledger.vendor_ledger(db_session, "Acme", start=date(2024, 1, 2), end=date(2024, 1, 2))
    assert window["opening_balance"] == 100
    assert window["closing_balance"] == 70

    with pytest.raises(NotFoundError):
        vendor_ledger.vendor_ledger(db_session, "Acme", start=date(2024, 3, 1))


def test_day_end_summary_is_deterministic(db_session):
    _add(db_session, "Acme", "receivable", 100, datetime(2024, 1, 1, 10))
    _add(db_session, "Acme", "payable", 30, datetime(2024, 1, 2, 9))
    _add(db_session, "Acme", "receivable", 50, datetime(2024, 1, 2, 16))
    _add(db_session, "Zenith", "payable", 12.5, datetime(2024, 1, 2, 12))

    first = vendor_ledger.day_end_summary(db_session, date(2024, 1, 2))
    second = vendor_ledger.day_end_summary(db_session, date(2024, 1, 2))

    assert first == second
    assert [row["vendor"] for row in first] == ["Acme", "Zenith"]
    acme = first[0]
    assert acme["opening_balance"] == 100
    assert acme["closing_balance"] == 150
    assert acme["total_receivable"] == 50
    assert acme["total_payable"] == 30
    assert acme["transaction_count"] == 2


def test_status_update_and_delete_leave_chain_alone(db_session):
    t1 = _add(db_session, "Acme", "receivable", 100, datetime(2024, 1, 1, 10))
    t2 = _add(db_session, "Acme", "payable", 30, datetime(2024, 1, 2, 10))

    cancelled = vendor_ledger.update_transaction_status(db_session, t1.id, "cancelled")
    assert cancelled.status == "cancelled"
    with pytest.raises(ValidationFailed):
        vendor_ledger.update_transaction_status(db_session, t1.id, "archived")

    vendor_ledger.delete_transaction(db_session, t1.id)
    assert db_session.get(LedgerEntry, t1.id) is None
    remaining = db_session.get(LedgerEntry, t2.id)
    assert remaining.opening_balance == 100
    with pytest.raises(NotFoundError):
        vendor_ledger.delete_transaction(db_session, t1.id)


def test_list_vendors_is_distinct_and_sorted(db_session):
    for vendor in ("Zenith", "Acme", "Zenith", "Bolt"):
        _add(db_session, vendor, "payable", 1, datetime(2024, 1, 1, 10))

    assert vendor_ledger.list_vendors(db_session) == ["Acme", "Bolt", "Zenith"]
