import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("STOCK_RETRY_BACKOFF_MS", "0")

from paintshop.db.session import Base, create_db_engine
from paintshop.models import Color, Product, Purchase, User
from paintshop.services.fifo import deplete, restore


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


@pytest.fixture()
def catalog(db_session):
    user = User(name="Owner", email="owner@example.com", password_hash="x")
    product = Product(name="Enamel", type="quarter", purchase_price=4, sale_price=6)
    color = Color(name="Signal Red", code_name="RED", hex_code="#FF0000")
    db_session.add_all([user, product, color])
    db_session.commit()
    return user, product, color


def _lot(db, user, product, color, quantity, day):
    lot = Purchase(
        date=datetime(2024, 3, day, 9, 0),
        product_id=product.id,
        color_id=color.id if color else None,
        supplier="Acme Paints",
        quantity=quantity,
        unit_price=4,
        total_amount=quantity * 4,
        created_by_id=user.id,
    )
    db.add(lot)
    db.commit()
    return lot


def test_oldest_lot_is_consumed_first(db_session, catalog):
    user, product, color = catalog
    older = _lot(db_session, user, product, color, 10, day=1)
    newer = _lot(db_session, user, product, color, 5, day=2)

    result = deplete(db_session, product_id=product.id, color_id=color.id, quantity=12)
    db_session.commit()

    db_session.refresh(older)
    db_session.refresh(newer)
    assert older.quantity == pytest.approx(0)
    assert newer.quantity == pytest.approx(3)
    assert result.depleted == pytest.approx(12)
    assert result.shortfall == 0
    assert result.lots == [(older.id, 10), (newer.id, 2)]


def test_lots_are_walked_by_date_not_insertion(db_session, catalog):
    user, product, color = catalog
    later = _lot(db_session, user, product, color, 4, day=20)
    earlier = _lot(db_session, user, product, color, 4, day=5)

    deplete(db_session, product_id=product.id, color_id=color.id, quantity=3)
    db_session.commit()

    db_session.refresh(later)
    db_session.refresh(earlier)
    assert earlier.quantity == pytest.approx(1)
    assert later.quantity == pytest.approx(4)


def test_shortfall_is_reported_not_raised(db_session, catalog):
    user, product, color = catalog
    first = _lot(db_session, user, product, color, 2, day=1)
    second = _lot(db_session, user, product, color, 1.5, day=2)

    result = deplete(db_session, product_id=product.id, color_id=color.id, quantity=5)
    db_session.commit()

    db_session.refresh(first)
    db_session.refresh(second)
    assert first.quantity == pytest.approx(0)
    assert second.quantity == pytest.approx(0)
    assert result.depleted == pytest.approx(3.5)
    assert result.shortfall == pytest.approx(1.5)


def test_missing_color_only_matches_uncolored_lots(db_session, catalog):
    user, product, color = catalog
    colored = _lot(db_session, user, product, color, 5, day=1)
    plain = _lot(db_session, user, product, None, 5, day=2)

    deplete(db_session, product_id=product.id, color_id=None, quantity=2)
    db_session.commit()

    db_session.refresh(colored)
    db_session.refresh(plain)
    assert colored.quantity == pytest.approx(5)
    assert plain.quantity == pytest.approx(3)


def test_fractional_quantities(db_session, catalog):
    user, product, color = catalog
    lot = _lot(db_session, user, product, color, 2, day=1)

    deplete(db_session, product_id=product.id, color_id=color.id, quantity=0.5)
    db_session.commit()

    db_session.refresh(lot)
    assert lot.quantity == pytest.approx(1.5)


def test_restore_goes_to_oldest_lot(db_session, catalog):
    user, product, color = catalog
    older = _lot(db_session, user, product, color, 10, day=1)
    newer = _lot(db_session, user, product, color, 5, day=2)
    deplete(db_session, product_id=product.id, color_id=color.id, quantity=12)
    db_session.commit()

    target = restore(db_session, product_id=product.id, color_id=color.id, quantity=12)
    db_session.commit()

    db_session.refresh(older)
    db_session.refresh(newer)
    assert target.id == older.id
    assert older.quantity == pytest.approx(12)
    assert newer.quantity == pytest.approx(3)


def test_restore_without_lots_returns_none(db_session, catalog):
    _, product, color = catalog

    assert restore(db_session, product_id=product.id, color_id=color.id, quantity=3) is None
