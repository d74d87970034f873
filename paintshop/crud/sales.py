"""Sale journal operations.

Creating a sale takes its quantity off the stock row and depletes the oldest
purchase lots of the same key; deleting it puts both back. Running out of
purchase history is not an error: the sale is recorded and the response
carries a warning.
"""

from __future__ import annotations

import logging
import secrets
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationFailed
from ..core.logging import log_extra
from ..models.color import Color
from ..models.product import Product
from ..models.sale import Sale
from ..services import fifo
from ..services.concurrency import run_locked
from ..services.stock import adjust_stock
from ..services.vendor_ledger import end_of_day, start_of_day
from .colors import find_color_by_code

logger = logging.getLogger(__name__)


def sale_total(quantity: float, unit_price: float, discount: float = 0) -> float:
    return round(float(quantity) * float(unit_price) * (1 - float(discount or 0) / 100), 2)


def invoice_reference_for(when: datetime) -> str:
    return f"SALE-{when:%Y%m%d}-{1000 + secrets.randbelow(9000)}"


def _shortfall_warning(quantity: float, shortfall: float) -> str:
    return (
        f"Purchase history covers only {quantity - shortfall:g} of {quantity:g} units sold; "
        f"{shortfall:g} units could not be matched to a purchase lot"
    )


def _resolve_color_id(db: Session, product: Product, color_id: int | None) -> int | None:
    if color_id:
        if db.get(Color, color_id) is None:
            raise NotFoundError("Color not found", details={"color_id": color_id})
        return color_id
    color = find_color_by_code(db, product.code)
    return color.id if color else None


def _require_active_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id, populate_existing=True)
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    if not product.is_active:
        raise ValidationFailed("Product is inactive", details={"product_id": product_id})
    return product


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def list_sales(
    db: Session,
    *,
    start: date | None = None,
    end: date | None = None,
    customer_name: str | None = None,
    product_id: int | None = None,
) -> dict:
    stmt = select(Sale)
    if start is not None:
        stmt = stmt.where(Sale.date >= start_of_day(start))
    if end is not None:
        stmt = stmt.where(Sale.date <= end_of_day(end))
    if customer_name and customer_name.strip():
        stmt = stmt.where(func.lower(Sale.customer_name).like(f"%{customer_name.strip().lower()}%"))
    if product_id is not None:
        stmt = stmt.where(Sale.product_id == product_id)
    stmt = stmt.order_by(Sale.date.desc(), Sale.id.desc())
    rows = list(db.execute(stmt).scalars().unique().all())
    return {
        "count": len(rows),
        "total_amount": round(sum(row.total_amount for row in rows), 2),
        "data": rows,
    }


def create_sale(db: Session, payload: dict, actor_id: int) -> Sale:
    """Record a sale. The returned row has a ``warnings`` list attached."""

    product_id = payload["product_id"]
    product = _require_active_product(db, product_id)
    color_id = _resolve_color_id(db, product, payload.get("color_id"))
    quantity = float(payload["quantity"])
    unit_price = float(payload["unit_price"])
    discount = float(payload.get("discount") or 0)

    def _unit() -> tuple[Sale, fifo.DepletionResult]:
        # The product may have been retired while this call waited on the key lock.
        _require_active_product(db, product_id)
        when = payload.get("date") or datetime.now()
        customer = (payload.get("customer_name") or "").strip() or None
        sale = Sale(
            date=when,
            customer_name=customer,
            product_id=product_id,
            color_id=color_id,
            quantity=quantity,
            unit_price=unit_price,
            discount=discount,
            total_amount=sale_total(quantity, unit_price, discount),
            invoice_reference=payload.get("invoice_reference") or invoice_reference_for(when),
            sale_type=payload.get("sale_type") or "daily",
            created_by_id=actor_id,
        )
        db.add(sale)
        db.flush()
        adjust_stock(db, product_id=product_id, color_id=color_id, delta=-quantity, actor_id=actor_id)
        depletion = fifo.deplete(db, product_id=product_id, color_id=color_id, quantity=quantity)
        db.commit()
        db.refresh(sale)
        return sale, depletion

    sale, depletion = run_locked(db, [(product_id, color_id)], _unit, operation="sale.create")

    sale.warnings = []
    if depletion.shortfall > 0:
        sale.warnings.append(_shortfall_warning(quantity, depletion.shortfall))
    logger.info(
        "sale.created",
        extra=log_extra(
            sale_id=sale.id,
            product_id=product_id,
            color_id=color_id,
            quantity=quantity,
            depleted_lots=depletion.lots,
            shortfall=depletion.shortfall,
            actor_id=actor_id,
        ),
    )
    return sale


def delete_sale(db: Session, sale_id: int, actor_id: int) -> list[str]:
    """Reverse a sale's stock effects and delete it. Returns any warnings."""

    current = get_sale(db, sale_id)
    key = (current.product_id, current.color_id)

    def _unit():
        sale = db.get(Sale, sale_id, populate_existing=True)
        if sale is None:
            raise NotFoundError("Sale not found")
        adjust_stock(
            db,
            product_id=sale.product_id,
            color_id=sale.color_id,
            delta=sale.quantity,
            actor_id=actor_id,
        )
        lot = fifo.restore(db, product_id=sale.product_id, color_id=sale.color_id, quantity=sale.quantity)
        quantity = sale.quantity
        lot_id = lot.id if lot is not None else None
        db.delete(sale)
        db.commit()
        return quantity, lot_id

    quantity, lot_id = run_locked(db, [key], _unit, operation="sale.delete")

    warnings: list[str] = []
    if lot_id is None:
        warnings.append(
            f"No purchase lot left for this product and color; {quantity:g} units were returned to stock only"
        )
    logger.info(
        "sale.deleted",
        extra=log_extra(
            sale_id=sale_id,
            quantity=quantity,
            restored_to=lot_id,
            actor_id=actor_id,
        ),
    )
    return warnings
