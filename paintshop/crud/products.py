from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationFailed
from ..core.logging import log_extra
from ..models.inventory import Inventory
from ..models.product import Product
from ..models.purchase import Purchase
from ..services.concurrency import run_locked

logger = logging.getLogger(__name__)


def _normalize(data: dict) -> dict:
    if isinstance(data.get("name"), str):
        data["name"] = data["name"].strip()
    if "code" in data:
        code = (data["code"] or "").strip().upper()
        data["code"] = code or None
    return data


def _ensure_not_duplicate(db: Session, name: str, type_: str, exclude_id: int | None = None) -> None:
    stmt = select(Product.id).where(
        func.lower(Product.name) == name.lower(),
        Product.type == type_,
        Product.is_active.is_(True),
    )
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if db.execute(stmt.limit(1)).first() is not None:
        raise ValidationFailed(f'Product "{name}" of type "{type_}" already exists')


def list_products(db: Session, limit: int = 500, offset: int = 0) -> list[Product]:
    stmt = (
        select(Product)
        .where(Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.execute(stmt).scalars().all())


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(db: Session, payload: dict, actor_id: int | None = None) -> Product:
    data = _normalize(payload.copy())
    _ensure_not_duplicate(db, data["name"], data["type"])
    product = Product(**data, created_by_id=actor_id)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product_id: int, payload: dict) -> Product:
    product = get_product(db, product_id)
    data = _normalize(payload.copy())
    name = data.get("name", product.name)
    type_ = data.get("type", product.type)
    if data.get("is_active", product.is_active):
        _ensure_not_duplicate(db, name, type_, exclude_id=product.id)
    for key, value in data.items():
        setattr(product, key, value)
    db.commit()
    db.refresh(product)
    return product


def _stock_keys(db: Session, product_id: int) -> list[tuple[int, int | None]]:
    keys = {(product_id, None)}
    for model in (Inventory, Purchase):
        stmt = select(model.color_id).where(model.product_id == product_id).distinct()
        keys.update((product_id, color_id) for color_id in db.execute(stmt).scalars())
    return list(keys)


def delete_product(db: Session, product_id: int, *, purge_stock: bool = False) -> dict:
    """Soft-delete a product, optionally purging its stock rows and lots.

    Runs under the key lock of every stock key the product has, so a sale or
    purchase already in flight either commits before the purge or sees the
    product as inactive.
    """

    get_product(db, product_id)
    keys = _stock_keys(db, product_id)

    def _unit() -> dict:
        product = get_product(db, product_id)
        product.is_active = False
        purged_inventory = purged_purchases = 0
        if purge_stock:
            purged_inventory = db.execute(
                delete(Inventory).where(Inventory.product_id == product_id)
            ).rowcount
            purged_purchases = db.execute(
                delete(Purchase).where(Purchase.product_id == product_id)
            ).rowcount
        db.commit()
        return {
            "id": product_id,
            "purged_inventory_rows": purged_inventory,
            "purged_purchases": purged_purchases,
        }

    result = run_locked(db, keys, _unit, operation="product.delete")
    logger.info("product.deleted", extra=log_extra(purge_stock=purge_stock, **result))
    return result
