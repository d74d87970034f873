from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import NotFoundError, ValidationFailed
from ..core.logging import log_extra
from ..models.color import Color
from ..models.inventory import Inventory
from ..models.product import Product
from ..services.concurrency import run_locked

logger = logging.getLogger(__name__)

VIRTUAL_PREFIX = "virtual-"


def virtual_id(product_id: int) -> str:
    return f"{VIRTUAL_PREFIX}{product_id}"


def _virtual_row(product: Product, color: Color | None) -> dict[str, Any]:
    return {
        "id": virtual_id(product.id),
        "product_id": product.id,
        "color_id": color.id if color else None,
        "product": product,
        "color": color,
        "quantity": 0.0,
        "min_stock_level": settings.DEFAULT_MIN_STOCK_LEVEL,
        "last_updated": None,
        "updated_by_id": None,
        "is_virtual": True,
        "is_low_stock": False,
    }


def list_inventory(db: Session) -> list[Inventory | dict[str, Any]]:
    """Stock rows for every active product.

    Products that never had stock movement get a synthesized zero row so the
    listing always covers the whole active catalog. Those rows are not
    persisted and carry a string id that update requests reject.
    """

    products = db.execute(select(Product).where(Product.is_active.is_(True))).scalars().all()
    active = {product.id: product for product in products}
    if not active:
        return []

    real_rows = (
        db.execute(select(Inventory).where(Inventory.product_id.in_(tuple(active)))).scalars().unique().all()
    )
    stocked = {row.product_id for row in real_rows}

    codes = {product.code for product in active.values() if product.code and product.id not in stocked}
    colors_by_code: dict[str, Color] = {}
    if codes:
        stmt = select(Color).where(Color.code_name.in_(tuple(codes)), Color.is_active.is_(True))
        colors_by_code = {color.code_name: color for color in db.execute(stmt).scalars()}

    rows: list[Inventory | dict[str, Any]] = list(real_rows)
    for product in active.values():
        if product.id not in stocked:
            rows.append(_virtual_row(product, colors_by_code.get(product.code or "")))

    def _sort_key(row):
        if isinstance(row, dict):
            return (row["product"].name.lower(), 1, row["id"])
        return (row.product.name.lower(), 0, str(row.id))

    rows.sort(key=_sort_key)
    return rows


def list_low_stock(db: Session) -> list[Inventory]:
    """Persisted rows of active products with ``0 < quantity <= min_stock_level``."""

    stmt = (
        select(Inventory)
        .join(Product, Product.id == Inventory.product_id)
        .where(
            Product.is_active.is_(True),
            Inventory.quantity > 0,
            Inventory.quantity <= Inventory.min_stock_level,
        )
        .order_by(Inventory.quantity.asc(), Inventory.id.asc())
    )
    return list(db.execute(stmt).scalars().unique().all())


def _parse_identifier(identifier: str | int) -> int:
    text = str(identifier).strip()
    if text.startswith(VIRTUAL_PREFIX):
        raise ValidationFailed(
            "Virtual inventory rows cannot be updated; record a purchase to create stock",
            details={"id": text},
        )
    try:
        return int(text)
    except ValueError as exc:
        raise NotFoundError("Inventory item not found", details={"id": text}) from exc


def update_inventory(db: Session, identifier: str | int, payload: dict, actor_id: int | None) -> Inventory:
    """Manual correction of a real stock row."""

    inventory_id = _parse_identifier(identifier)
    row = db.get(Inventory, inventory_id)
    if row is None:
        raise NotFoundError("Inventory item not found", details={"id": inventory_id})
    key = (row.product_id, row.color_id)

    def _unit() -> Inventory:
        target = db.get(Inventory, inventory_id, populate_existing=True)
        if target is None:
            raise NotFoundError("Inventory item not found", details={"id": inventory_id})
        if payload.get("quantity") is not None:
            target.quantity = float(payload["quantity"])
        if payload.get("min_stock_level") is not None:
            target.min_stock_level = float(payload["min_stock_level"])
        target.last_updated = datetime.utcnow()
        target.updated_by_id = actor_id
        db.commit()
        db.refresh(target)
        return target

    updated = run_locked(db, [key], _unit, operation="inventory.update")
    logger.info(
        "inventory.corrected",
        extra=log_extra(
            inventory_id=inventory_id,
            quantity=updated.quantity,
            min_stock_level=updated.min_stock_level,
            actor_id=actor_id,
        ),
    )
    return updated
