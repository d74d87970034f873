from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String

from ..db.session import Base

CONTACT_TYPES = ("customer", "supplier")


class Contact(Base):
    __tablename__ = "contacts"
    __table_args__ = (Index("ix_contacts_name_type", "name", "type"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, default="customer", index=True)
    phone = Column(String(20), nullable=True, index=True)
    address = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True)
    balance = Column(Float, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
