from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

ExpenseCategory = Literal["rent", "utilities", "salary", "maintenance", "other"]


class ExpenseCreate(BaseModel):
    date: Optional[datetime] = None
    description: str = Field(min_length=1, max_length=500)
    amount: float = Field(ge=0)
    category: ExpenseCategory = "other"


class ExpenseUpdate(BaseModel):
    date: Optional[datetime] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    amount: Optional[float] = Field(default=None, ge=0)
    category: Optional[ExpenseCategory] = None


class ExpenseOut(BaseModel):
    id: int
    date: datetime
    description: str
    amount: float
    category: str
    created_by_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseList(BaseModel):
    count: int
    total_amount: float
    data: list[ExpenseOut]
