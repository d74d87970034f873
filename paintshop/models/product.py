from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String

from ..db.session import Base

PRODUCT_TYPES = ("gallon", "dibbi", "quarter", "p", "drum", "other")


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (Index("ix_products_name_type_active", "name", "type", "is_active"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False)
    purchase_price = Column(Float, nullable=False, default=0)
    sale_price = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0)
    code = Column(String(60), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
