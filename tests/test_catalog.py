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
os.environ.setdefault("STOCK_RETRY_BACKOFF_MS", "0")

from paintshop.core.errors import NotFoundError, ValidationFailed
from paintshop.crud import colors, contacts, expenses, products
from paintshop.crud.purchases import create_purchase
from paintshop.db.session import Base, create_db_engine
from paintshop.models import Inventory, Purchase, User
from paintshop.services.stock import adjust_stock


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
def user_id(db_session):
    user = User(name="Clerk", email="clerk@example.com", password_hash="x")
    db_session.add(user)
    db_session.commit()
    return user.id


def test_color_uniqueness_and_normalization(db_session, user_id):
    ocean = colors.create_color(db_session, {"name": "Ocean", "code_name": " ocn ", "hex_code": "#00aaff"}, user_id)
    assert ocean.code_name == "OCN"
    assert ocean.hex_code == "#00AAFF"

    with pytest.raises(ValidationFailed):
        colors.create_color(db_session, {"name": "Sky", "code_name": "SKY", "hex_code": "#00AAFF"}, user_id)
    with pytest.raises(ValidationFailed):
        colors.create_color(db_session, {"name": "ocean", "code_name": "OC2", "hex_code": "#111111"}, user_id)

    colors.delete_color(db_session, ocean.id)
    assert colors.list_colors(db_session) == []
    assert colors.find_color_by_code(db_session, "ocn") is None
    # Soft-deleted colors free their hex code.
    sky = colors.create_color(db_session, {"name": "Sky", "code_name": "SKY", "hex_code": "#00aaff"}, user_id)
    assert sky.id != ocean.id


def test_product_duplicates_and_soft_delete(db_session, user_id):
    primer = products.create_product(db_session, {"name": "Primer", "type": "gallon", "code": " ab-1 "}, user_id)
    assert primer.code == "AB-1"
    products.create_product(db_session, {"name": "Primer", "type": "drum"}, user_id)
    with pytest.raises(ValidationFailed):
        products.create_product(db_session, {"name": "primer", "type": "gallon"}, user_id)

    result = products.delete_product(db_session, primer.id)
    assert result == {"id": primer.id, "purged_inventory_rows": 0, "purged_purchases": 0}
    assert [p.type for p in products.list_products(db_session)] == ["drum"]
    assert products.get_product(db_session, primer.id).is_active is False


def test_product_delete_can_purge_stock(db_session, user_id):
    product = products.create_product(db_session, {"name": "Enamel", "type": "quarter"}, user_id)
    db_session.add(
        Purchase(
            date=datetime(2024, 1, 1), product_id=product.id, supplier="Acme", quantity=3,
            unit_price=2, total_amount=6, created_by_id=user_id,
        )
    )
    adjust_stock(db_session, product_id=product.id, color_id=None, delta=3, actor_id=user_id)
    db_session.commit()

    result = products.delete_product(db_session, product.id, purge_stock=True)

    assert result["purged_inventory_rows"] == 1
    assert result["purged_purchases"] == 1
    assert db_session.query(Inventory).count() == 0


def test_contacts_search_and_soft_delete(db_session):
    ali = contacts.create_contact(db_session, {"name": " Ali Traders ", "type": "supplier", "phone": "0300-111"})
    contacts.create_contact(db_session, {"name": "Bilal", "type": "customer", "email": "BILAL@example.com"})
    with pytest.raises(ValidationFailed):
        contacts.create_contact(db_session, {"name": "ali traders", "type": "supplier"})

    assert ali.name == "Ali Traders"
    assert [c.name for c in contacts.list_contacts(db_session, type_="customer")] == ["Bilal"]
    assert [c.name for c in contacts.search_contacts(db_session, "0300")] == ["Ali Traders"]
    assert [c.name for c in contacts.search_contacts(db_session, "bilal@")] == ["Bilal"]

    contacts.delete_contact(db_session, ali.id)
    with pytest.raises(NotFoundError):
        contacts.get_contact(db_session, ali.id)


def test_expense_listing_totals(db_session, user_id):
    expenses.create_expense(
        db_session, {"description": " Rent ", "amount": 500, "category": "rent", "date": datetime(2024, 5, 1)}, user_id
    )
    expenses.create_expense(
        db_session, {"description": "Tea", "amount": 2.25, "category": "other", "date": datetime(2024, 5, 2)}, user_id
    )

    listing = expenses.list_expenses(db_session, start=date(2024, 5, 1), end=date(2024, 5, 31))
    assert listing["count"] == 2
    assert listing["total_amount"] == pytest.approx(502.25)
    assert listing["data"][0].description == "Tea"
    assert expenses.list_expenses(db_session, category="rent")["count"] == 1

    expense_id = listing["data"][1].id
    expenses.delete_expense(db_session, expense_id)
    with pytest.raises(NotFoundError):
        expenses.get_expense(db_session, expense_id)


def test_retired_products_take_no_new_purchases(db_session, user_id):
    product = products.create_product(db_session, {"name": "Varnish", "type": "quarter"}, user_id)
    products.delete_product(db_session, product.id, purge_stock=True)

    with pytest.raises(ValidationFailed):
        create_purchase(
            db_session,
            {"product_id": product.id, "supplier": "Acme", "quantity": 2, "unit_price": 4},
            actor_id=user_id,
        )
    assert db_session.query(Inventory).count() == 0
    assert db_session.query(Purchase).count() == 0
