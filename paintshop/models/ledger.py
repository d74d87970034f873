from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, Text

from ..db.session import Base

TRANSACTION_TYPES = ("payable", "receivable")
LEDGER_STATUSES = ("pending", "completed", "cancelled")


class LedgerEntry(Base):
    """One balance-affecting vendor transaction.

    ``vendor`` is free text rather than a contact reference; entries for the
    same vendor ordered by ``date`` form the running balance chain.
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (Index("ix_ledger_vendor_date", "vendor", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    vendor = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    transaction_type = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False)
    opening_balance = Column(Float, nullable=False, default=0)
    closing_balance = Column(Float, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
