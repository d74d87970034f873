from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

ProductType = Literal["gallon", "dibbi", "quarter", "p", "drum", "other"]


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: ProductType
    purchase_price: float = Field(default=0, ge=0)
    sale_price: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0, le=100)
    code: Optional[str] = Field(default=None, max_length=60)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[ProductType] = None
    purchase_price: Optional[float] = Field(default=None, ge=0)
    sale_price: Optional[float] = Field(default=None, ge=0)
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    code: Optional[str] = Field(default=None, max_length=60)
    is_active: Optional[bool] = None


class ProductBrief(BaseModel):
    id: int
    name: str
    type: str
    code: Optional[str] = None
    purchase_price: float
    sale_price: float

    class Config:
        from_attributes = True


class ProductOut(ProductBrief):
    discount: float
    is_active: bool
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ProductDeleted(BaseModel):
    id: int
    purged_inventory_rows: int = 0
    purged_purchases: int = 0
