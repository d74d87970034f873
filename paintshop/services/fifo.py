"""FIFO depletion of purchase lots.

A sale consumes stock from the oldest purchase lots of the same
(product, color) key first, so ``Purchase.quantity`` always shows what is left
of each lot. ``Inventory.quantity`` stays the authoritative on-hand figure;
lot quantities only feed cost and lot reporting. Because of that, running out
of lots is reported as a shortfall instead of failing the sale, and deleting a
sale puts the whole quantity back on the single oldest lot rather than
replaying the original spread.

Two sales of the same key must not walk the lots at the same time. Callers
run their unit of work through :func:`paintshop.services.concurrency.run_locked`,
which holds the per-key lock. On top of that lots are selected ``FOR UPDATE``
where the database supports it, and every decrement is conditional on the lot
still holding enough units.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.orm import Session, lazyload

from ..core.errors import WriteConflictError
from ..core.logging import log_extra
from ..models.purchase import Purchase

logger = logging.getLogger(__name__)


@dataclass
class DepletionResult:
    requested: float
    depleted: float = 0.0
    lots: list[tuple[int, float]] = field(default_factory=list)

    @property
    def shortfall(self) -> float:
        return max(self.requested - self.depleted, 0.0)


def _color_clause(color_id: int | None):
    if color_id:
        return Purchase.color_id == color_id
    return Purchase.color_id.is_(None)


def lots_for(product_id: int, color_id: int | None, *, available_only: bool = False):
    """Purchase lots for a key, oldest first (ties in insertion order)."""

    stmt = (
        select(Purchase)
        .where(Purchase.product_id == product_id, _color_clause(color_id))
        .options(lazyload(Purchase.product), lazyload(Purchase.color))
    )
    if available_only:
        stmt = stmt.where(Purchase.quantity > 0)
    stmt = stmt.order_by(Purchase.date.asc(), Purchase.id.asc())
    return stmt


def deplete(db: Session, *, product_id: int, color_id: int | None, quantity: float) -> DepletionResult:
    """Remove ``quantity`` units from the oldest lots of the key."""

    result = DepletionResult(requested=float(quantity))
    remaining = float(quantity)
    stmt = lots_for(product_id, color_id, available_only=True).with_for_update()
    lots = db.execute(stmt.execution_options(populate_existing=True)).scalars().all()

    for lot in lots:
        if remaining <= 0:
            break
        deduct = min(remaining, lot.quantity)
        changed = db.execute(
            update(Purchase)
            .where(Purchase.id == lot.id, Purchase.quantity >= deduct)
            .values(quantity=Purchase.quantity - deduct)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not changed:
            # Another writer shrank the lot after we read it.
            raise WriteConflictError("purchase lot changed during depletion", details={"purchase_id": lot.id})
        db.expire(lot)
        remaining -= deduct
        result.depleted += deduct
        result.lots.append((lot.id, deduct))

    if result.shortfall > 0:
        logger.warning(
            "fifo.shortfall",
            extra=log_extra(
                product_id=product_id,
                color_id=color_id,
                requested=result.requested,
                shortfall=result.shortfall,
            ),
        )
    return result


def restore(db: Session, *, product_id: int, color_id: int | None, quantity: float) -> Purchase | None:
    """Return ``quantity`` units to the oldest lot of the key.

    Returns the lot that received the units, or ``None`` when the key has no
    purchase history left to restore into.
    """

    oldest = db.execute(lots_for(product_id, color_id).limit(1).with_for_update()).scalars().first()
    if oldest is None:
        logger.warning(
            "fifo.restore_without_lot",
            extra=log_extra(product_id=product_id, color_id=color_id, quantity=quantity),
        )
        return None
    db.execute(
        update(Purchase)
        .where(Purchase.id == oldest.id)
        .values(quantity=Purchase.quantity + float(quantity))
        .execution_options(synchronize_session=False)
    )
    db.expire(oldest)
    return oldest
