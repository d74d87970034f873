"""Stock ledger rows: current on-hand quantity per (product, color) key."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.session import Base

# SQL unique constraints treat NULLs as distinct, so "no color" is stored in
# ``color_key`` as 0 to make it a real key value.
NO_COLOR_KEY = 0


def color_key_for(color_id: int | None) -> int:
    return color_id if color_id else NO_COLOR_KEY


class Inventory(Base):
    """On-hand stock for one (product, color) pair.

    ``quantity`` is only ever changed through an atomic increment (see
    ``paintshop.services.stock``) or a manual correction, and is allowed to dip
    below zero when sales outrun recorded purchases.
    """

    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("product_id", "color_key", name="uq_inventory_product_color"),
        Index("ix_inventory_quantity", "quantity"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    color_id = Column(Integer, ForeignKey("colors.id"), nullable=True)
    color_key = Column(Integer, nullable=False, default=NO_COLOR_KEY)
    quantity = Column(Float, nullable=False, default=0)
    min_stock_level = Column(Float, nullable=False, default=5)
    last_updated = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    product = relationship("Product", lazy="joined")
    color = relationship("Color", lazy="joined")

    @property
    def is_low_stock(self) -> bool:
        return 0 < (self.quantity or 0) <= (self.min_stock_level or 0)
