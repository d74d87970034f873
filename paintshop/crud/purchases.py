"""Purchase journal operations.

Every write runs as one unit of work: the journal row, the matching stock
adjustment and the product's purchase price change commit together. The
unit holds the per-key lock of every (product, color) key it touches and is
retried as a whole on transient write conflicts.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationFailed
from ..core.logging import log_extra
from ..models.color import Color
from ..models.product import Product
from ..models.purchase import Purchase
from ..services.concurrency import run_locked
from ..services.stock import adjust_stock
from ..services.vendor_ledger import end_of_day, start_of_day

logger = logging.getLogger(__name__)


def _require_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id, populate_existing=True)
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    if not product.is_active:
        raise ValidationFailed("Product is inactive", details={"product_id": product_id})
    return product


def _require_color(db: Session, color_id: int | None) -> None:
    if color_id and db.get(Color, color_id) is None:
        raise NotFoundError("Color not found", details={"color_id": color_id})


def _total(quantity: float, unit_price: float) -> float:
    return round(float(quantity) * float(unit_price), 2)


def get_purchase(db: Session, purchase_id: int) -> Purchase:
    purchase = db.get(Purchase, purchase_id)
    if purchase is None:
        raise NotFoundError("Purchase not found")
    return purchase


def list_purchases(
    db: Session,
    *,
    start: date | None = None,
    end: date | None = None,
    supplier: str | None = None,
    product_id: int | None = None,
) -> dict:
    stmt = select(Purchase)
    if start is not None:
        stmt = stmt.where(Purchase.date >= start_of_day(start))
    if end is not None:
        stmt = stmt.where(Purchase.date <= end_of_day(end))
    if supplier and supplier.strip():
        stmt = stmt.where(func.lower(Purchase.supplier).like(f"%{supplier.strip().lower()}%"))
    if product_id is not None:
        stmt = stmt.where(Purchase.product_id == product_id)
    stmt = stmt.order_by(Purchase.date.desc(), Purchase.id.desc())
    rows = list(db.execute(stmt).scalars().unique().all())
    return {
        "count": len(rows),
        "total_amount": round(sum(row.total_amount for row in rows), 2),
        "data": rows,
    }


def create_purchase(db: Session, payload: dict, actor_id: int) -> Purchase:
    product_id = payload["product_id"]
    color_id = payload.get("color_id") or None
    quantity = float(payload["quantity"])
    unit_price = float(payload["unit_price"])

    def _unit() -> Purchase:
        product = _require_product(db, product_id)
        _require_color(db, color_id)
        purchase = Purchase(
            date=payload.get("date") or datetime.now(),
            product_id=product_id,
            color_id=color_id,
            supplier=payload["supplier"].strip(),
            quantity=quantity,
            unit_price=unit_price,
            total_amount=_total(quantity, unit_price),
            created_by_id=actor_id,
        )
        db.add(purchase)
        db.flush()
        adjust_stock(db, product_id=product_id, color_id=color_id, delta=quantity, actor_id=actor_id)
        product.purchase_price = unit_price
        db.commit()
        db.refresh(purchase)
        return purchase

    purchase = run_locked(db, [(product_id, color_id)], _unit, operation="purchase.create")
    logger.info(
        "purchase.created",
        extra=log_extra(
            purchase_id=purchase.id,
            product_id=product_id,
            color_id=color_id,
            quantity=quantity,
            actor_id=actor_id,
        ),
    )
    return purchase


def update_purchase(db: Session, purchase_id: int, payload: dict, actor_id: int) -> Purchase:
    """Edit a purchase and move its stock effect to match.

    A changed (product, color) key takes the stored quantity off the old key
    and puts the new quantity on the new one; an unchanged key is adjusted by
    the difference.
    """

    current = get_purchase(db, purchase_id)
    old_key = (current.product_id, current.color_id)
    new_product_id = payload.get("product_id") or current.product_id
    new_color_id = payload["color_id"] if "color_id" in payload else current.color_id
    new_color_id = new_color_id or None
    new_key = (new_product_id, new_color_id)

    def _unit() -> Purchase:
        purchase = db.get(Purchase, purchase_id, populate_existing=True)
        if purchase is None:
            raise NotFoundError("Purchase not found")
        product = _require_product(db, new_product_id)
        _require_color(db, new_color_id)

        old_product_id, old_color_id = purchase.product_id, purchase.color_id
        old_quantity = purchase.quantity
        new_quantity = float(payload["quantity"]) if payload.get("quantity") is not None else old_quantity
        unit_price = float(payload["unit_price"]) if payload.get("unit_price") is not None else purchase.unit_price

        if (old_product_id, old_color_id or None) != new_key:
            adjust_stock(db, product_id=old_product_id, color_id=old_color_id, delta=-old_quantity, actor_id=actor_id)
            adjust_stock(db, product_id=new_product_id, color_id=new_color_id, delta=new_quantity, actor_id=actor_id)
        elif new_quantity != old_quantity:
            adjust_stock(
                db,
                product_id=new_product_id,
                color_id=new_color_id,
                delta=new_quantity - old_quantity,
                actor_id=actor_id,
            )

        if payload.get("unit_price") is not None and unit_price != purchase.unit_price:
            product.purchase_price = unit_price
        purchase.product_id = new_product_id
        purchase.color_id = new_color_id
        purchase.quantity = new_quantity
        purchase.unit_price = unit_price
        purchase.total_amount = _total(new_quantity, unit_price)
        if payload.get("supplier"):
            purchase.supplier = payload["supplier"].strip()
        if payload.get("date"):
            purchase.date = payload["date"]
        db.commit()
        db.refresh(purchase)
        return purchase

    purchase = run_locked(db, [old_key, new_key], _unit, operation="purchase.update")
    logger.info(
        "purchase.updated",
        extra=log_extra(purchase_id=purchase_id, old_key=list(old_key), new_key=list(new_key), actor_id=actor_id),
    )
    return purchase


def delete_purchase(db: Session, purchase_id: int, actor_id: int) -> None:
    current = get_purchase(db, purchase_id)
    key = (current.product_id, current.color_id)

    def _unit() -> float:
        purchase = db.get(Purchase, purchase_id, populate_existing=True)
        if purchase is None:
            raise NotFoundError("Purchase not found")
        removed = purchase.quantity
        adjust_stock(
            db,
            product_id=purchase.product_id,
            color_id=purchase.color_id,
            delta=-removed,
            actor_id=actor_id,
        )
        db.delete(purchase)
        db.commit()
        return removed

    removed = run_locked(db, [key], _unit, operation="purchase.delete")
    logger.info(
        "purchase.deleted",
        extra=log_extra(purchase_id=purchase_id, quantity=removed, actor_id=actor_id),
    )
