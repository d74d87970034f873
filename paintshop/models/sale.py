from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from ..db.session import Base

SALE_TYPES = ("daily", "bulk", "return")


class Sale(Base):
    __tablename__ = "sales"
    __table_args__ = (Index("ix_sales_product_date", "product_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    customer_name = Column(String(200), nullable=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    color_id = Column(Integer, ForeignKey("colors.id"), nullable=True)
    quantity = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False)
    invoice_reference = Column(String(40), nullable=True, index=True)
    sale_type = Column(String(20), nullable=False, default="daily")
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    product = relationship("Product", lazy="joined")
    color = relationship("Color", lazy="joined")
