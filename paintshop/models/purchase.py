from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from ..db.session import Base


class Purchase(Base):
    """An incoming stock lot.

    ``quantity`` holds the units of this lot not yet consumed by sales; the FIFO
    engine decrements it in place, so it is not the originally purchased amount.
    """

    __tablename__ = "purchases"
    __table_args__ = (
        Index("ix_purchases_fifo", "product_id", "color_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    color_id = Column(Integer, ForeignKey("colors.id"), nullable=True)
    supplier = Column(String(100), nullable=False, index=True)
    quantity = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    product = relationship("Product", lazy="joined")
    color = relationship("Color", lazy="joined")
