from __future__ import annotations

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .color import ColorBrief
from .product import ProductBrief


class SaleCreate(BaseModel):
    customer_name: Optional[str] = Field(default=None, max_length=200)
    product_id: int
    color_id: Optional[int] = None
    quantity: float = Field(ge=0.5)
    unit_price: float = Field(ge=0)
    discount: float = Field(default=0, ge=0, le=100)
    invoice_reference: Optional[str] = Field(default=None, max_length=40)
    sale_type: Literal["daily", "bulk", "return"] = "daily"
    date: Optional[datetime] = None


class SaleOut(BaseModel):
    id: int
    date: datetime
    customer_name: Optional[str] = None
    product_id: int
    color_id: Optional[int] = None
    product: Optional[ProductBrief] = None
    color: Optional[ColorBrief] = None
    quantity: float
    unit_price: float
    discount: float
    total_amount: float
    invoice_reference: Optional[str] = None
    sale_type: str
    created_by_id: int
    created_at: datetime
    warnings: list[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class SaleDeleted(BaseModel):
    id: int
    warnings: list[str] = Field(default_factory=list)


class SaleList(BaseModel):
    count: int
    total_amount: float
    data: list[SaleOut]


class SaleStats(BaseModel):
    period: str
    since: datetime
    total_sales: Decimal
    total_items: float
    total_transactions: int
    average_sale: Decimal


class DailySaleSummary(BaseModel):
    date: date_type
    total_sales: int
    total_quantity: float
    total_amount: Decimal
    average_sale_value: Decimal
