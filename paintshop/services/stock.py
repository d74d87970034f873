"""Stock adjustment: the only way journal operations move inventory.

``adjust_stock`` applies a signed delta to the Inventory row for a
(product, color) key as a single ``UPDATE ... SET quantity = quantity + delta``
so concurrent adjustments never lose an increment. A missing row is created
inside a SAVEPOINT; if another transaction inserts the same key first, the
unique constraint rejects our insert and the increment is re-applied to the
row that won.

The function joins the caller's transaction and never commits. Callers run
the whole unit of work (journal write plus adjustment) through
:func:`paintshop.services.concurrency.run_locked`.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import WriteConflictError
from ..core.logging import log_extra
from ..models.inventory import Inventory, color_key_for

logger = logging.getLogger(__name__)


def _increment(db: Session, *, product_id: int, key: int, delta: float, actor_id: int | None, now: datetime) -> int:
    stmt = (
        update(Inventory)
        .where(Inventory.product_id == product_id, Inventory.color_key == key)
        .values(
            quantity=Inventory.quantity + delta,
            last_updated=now,
            updated_by_id=actor_id,
        )
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def get_stock_row(db: Session, product_id: int, color_id: int | None) -> Inventory | None:
    stmt = (
        select(Inventory)
        .where(Inventory.product_id == product_id, Inventory.color_key == color_key_for(color_id))
        .execution_options(populate_existing=True)
    )
    return db.execute(stmt).scalars().first()


def adjust_stock(
    db: Session,
    *,
    product_id: int,
    color_id: int | None,
    delta: float,
    actor_id: int | None,
) -> Inventory:
    """Add ``delta`` to the stock of (product, color), creating the row if needed."""

    key = color_key_for(color_id)
    now = datetime.utcnow()

    if not _increment(db, product_id=product_id, key=key, delta=delta, actor_id=actor_id, now=now):
        try:
            with db.begin_nested():
                db.add(
                    Inventory(
                        product_id=product_id,
                        color_id=color_id or None,
                        color_key=key,
                        quantity=delta,
                        min_stock_level=settings.DEFAULT_MIN_STOCK_LEVEL,
                        last_updated=now,
                        updated_by_id=actor_id,
                    )
                )
        except IntegrityError:
            logger.info(
                "inventory.upsert_race",
                extra=log_extra(product_id=product_id, color_id=color_id),
            )
            if not _increment(db, product_id=product_id, key=key, delta=delta, actor_id=actor_id, now=now):
                raise WriteConflictError(
                    "inventory row vanished during upsert",
                    details={"product_id": product_id, "color_id": color_id},
                )

    row = get_stock_row(db, product_id, color_id)
    if row is None:
        raise WriteConflictError(
            "inventory row missing after adjustment",
            details={"product_id": product_id, "color_id": color_id},
        )
    logger.debug(
        "inventory.adjusted",
        extra=log_extra(product_id=product_id, color_id=color_id, delta=delta, quantity=row.quantity),
    )
    return row
