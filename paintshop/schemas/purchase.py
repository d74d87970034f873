from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .color import ColorBrief
from .product import ProductBrief


class PurchaseCreate(BaseModel):
    product_id: int
    color_id: Optional[int] = None
    supplier: str = Field(min_length=1, max_length=100)
    quantity: float = Field(ge=1)
    unit_price: float = Field(ge=0)
    date: Optional[datetime] = None


class PurchaseUpdate(BaseModel):
    product_id: Optional[int] = None
    color_id: Optional[int] = None
    supplier: Optional[str] = Field(default=None, min_length=1, max_length=100)
    quantity: Optional[float] = Field(default=None, ge=1)
    unit_price: Optional[float] = Field(default=None, ge=0)
    date: Optional[datetime] = None


class PurchaseOut(BaseModel):
    id: int
    date: datetime
    product_id: int
    color_id: Optional[int] = None
    product: Optional[ProductBrief] = None
    color: Optional[ColorBrief] = None
    supplier: str
    quantity: float
    unit_price: float
    total_amount: float
    created_by_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseList(BaseModel):
    count: int
    total_amount: float
    data: list[PurchaseOut]


class PurchaseStats(BaseModel):
    period: str
    since: datetime
    total_purchases: Decimal
    total_items: float
    total_orders: int
    average_purchase: Decimal
