from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from ..db.session import Base


class Color(Base):
    """A paint color. ``code_name`` is the join key used by ``Product.code``."""

    __tablename__ = "colors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False, unique=True)
    code_name = Column(String(60), nullable=False, unique=True, index=True)
    hex_code = Column(String(7), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
