import os
import sys
from pathlib import Path
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("STOCK_RETRY_BACKOFF_MS", "0")

from paintshop.core.errors import NotFoundError, WriteConflictError
from paintshop.db.session import Base, create_db_engine
from paintshop.models import Color, Inventory, Product, User
from paintshop.services.concurrency import is_transient, key_locks, run_with_retry
from paintshop.services import stock
from paintshop.services.stock import adjust_stock, get_stock_row


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


def _seed(db):
    user = User(name="Owner", email="owner@example.com", password_hash="x", role="superadmin")
    product = Product(name="Weather Coat", type="gallon", purchase_price=10, sale_price=15)
    color = Color(name="Ivory", code_name="IVORY", hex_code="#FFFFF0")
    db.add_all([user, product, color])
    db.commit()
    return user, product, color


def _rows(db, product_id):
    return db.execute(select(func.count(Inventory.id)).where(Inventory.product_id == product_id)).scalar()


def test_adjust_creates_row_then_increments(db_session):
    user, product, color = _seed(db_session)

    row = adjust_stock(db_session, product_id=product.id, color_id=color.id, delta=4, actor_id=user.id)
    db_session.commit()
    assert row.quantity == pytest.approx(4)
    assert row.min_stock_level == pytest.approx(5)
    assert row.updated_by_id == user.id

    row = adjust_stock(db_session, product_id=product.id, color_id=color.id, delta=-1.5, actor_id=user.id)
    db_session.commit()
    assert row.quantity == pytest.approx(2.5)
    assert _rows(db_session, product.id) == 1


def test_missing_color_is_its_own_key(db_session):
    user, product, color = _seed(db_session)

    adjust_stock(db_session, product_id=product.id, color_id=None, delta=3, actor_id=user.id)
    adjust_stock(db_session, product_id=product.id, color_id=None, delta=2, actor_id=user.id)
    adjust_stock(db_session, product_id=product.id, color_id=color.id, delta=7, actor_id=user.id)
    db_session.commit()

    assert _rows(db_session, product.id) == 2
    assert get_stock_row(db_session, product.id, None).quantity == pytest.approx(5)
    assert get_stock_row(db_session, product.id, color.id).quantity == pytest.approx(7)


def test_first_adjustment_may_go_negative(db_session):
    user, product, _ = _seed(db_session)

    row = adjust_stock(db_session, product_id=product.id, color_id=None, delta=-2, actor_id=user.id)
    db_session.commit()

    assert row.quantity == pytest.approx(-2)


def test_adjust_does_not_commit(db_session):
    user, product, _ = _seed(db_session)

    adjust_stock(db_session, product_id=product.id, color_id=None, delta=5, actor_id=user.id)
    db_session.rollback()

    assert get_stock_row(db_session, product.id, None) is None


def test_run_with_retry_retries_transient_errors(db_session):
    calls = []

    def _unit():
        calls.append(1)
        if len(calls) < 3:
            raise WriteConflictError("busy")
        return "done"

    assert run_with_retry(db_session, _unit, attempts=5, backoff_ms=0) == "done"
    assert len(calls) == 3


def test_run_with_retry_gives_up_with_write_conflict(db_session):
    calls = []

    def _unit():
        calls.append(1)
        raise OperationalError("UPDATE inventory", {}, Exception("database is locked"))

    with pytest.raises(WriteConflictError) as excinfo:
        run_with_retry(db_session, _unit, operation="test.unit", attempts=3, backoff_ms=0)
    assert len(calls) == 3
    assert excinfo.value.status_code == 500
    assert excinfo.value.details == {"operation": "test.unit", "attempts": 3}


def test_run_with_retry_reraises_business_errors(db_session):
    calls = []

    def _unit():
        calls.append(1)
        raise NotFoundError("Product not found")

    with pytest.raises(NotFoundError):
        run_with_retry(db_session, _unit, attempts=5, backoff_ms=0)
    assert len(calls) == 1


def test_is_transient_classification():
    assert is_transient(OperationalError("stmt", {}, Exception("database is locked")))
    assert is_transient(OperationalError("stmt", {}, Exception("deadlock detected")))
    assert not is_transient(OperationalError("stmt", {}, Exception("no such table: inventory")))
    assert not is_transient(ValueError("nope"))


def test_lost_insert_race_reapplies_delta_to_winning_row(db_session, monkeypatch):
    user, product, color = _seed(db_session)
    adjust_stock(db_session, product_id=product.id, color_id=color.id, delta=3, actor_id=user.id)
    db_session.commit()

    real_increment = stock._increment
    calls = []

    def _miss_first(db, **kwargs):
        calls.append(kwargs["delta"])
        if len(calls) == 1:
            # Another writer inserted the row after our UPDATE matched nothing.
            return 0
        return real_increment(db, **kwargs)

    monkeypatch.setattr(stock, "_increment", _miss_first)

    row = adjust_stock(db_session, product_id=product.id, color_id=color.id, delta=2, actor_id=user.id)
    db_session.commit()

    assert calls == [2, 2]
    assert row.quantity == pytest.approx(5)
    assert _rows(db_session, product.id) == 1


def test_key_locks_treat_missing_color_as_one_key():
    with key_locks((1, None), (1, 0), (2, 5)):
        pass


def test_concurrent_first_writers_share_one_row(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'stock.db'}")
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        user, product, _ = _seed(db)
        user_id, product_id = user.id, product.id

    def _worker(_):
        with SessionLocal() as db:
            def _unit():
                adjust_stock(db, product_id=product_id, color_id=None, delta=1, actor_id=user_id)
                db.commit()

            run_with_retry(db, _unit, operation="test.concurrent")

    workers = 8
    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(_worker, range(workers)))

    with SessionLocal() as db:
        assert _rows(db, product_id) == 1
        assert get_stock_row(db, product_id, None).quantity == pytest.approx(workers)
    engine.dispose()
