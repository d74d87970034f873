from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class LedgerTransactionCreate(BaseModel):
    vendor: str = Field(min_length=1, max_length=200)
    transaction_type: Literal["payable", "receivable"]
    amount: float = Field(gt=0)
    description: Optional[str] = None
    date: Optional[datetime] = None


class LedgerStatusUpdate(BaseModel):
    status: Literal["pending", "completed", "cancelled"]


class LedgerEntryOut(BaseModel):
    id: int
    date: datetime
    vendor: str
    description: Optional[str] = None
    transaction_type: str
    amount: float
    opening_balance: float
    closing_balance: float
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class VendorLedgerOut(BaseModel):
    vendor: str
    opening_balance: float
    closing_balance: float
    total_transactions: int
    data: list[LedgerEntryOut]


class DayEndVendorSummary(BaseModel):
    vendor: str
    opening_balance: float
    closing_balance: float
    total_receivable: float
    total_payable: float
    transaction_count: int
