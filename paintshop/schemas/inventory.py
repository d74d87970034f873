from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator

from .color import ColorBrief
from .product import ProductBrief


class InventoryOut(BaseModel):
    """A stock row. Virtual rows carry a ``virtual-<product_id>`` string id."""

    id: Union[int, str]
    product_id: int
    color_id: Optional[int] = None
    product: Optional[ProductBrief] = None
    color: Optional[ColorBrief] = None
    quantity: float
    min_stock_level: float
    last_updated: Optional[datetime] = None
    updated_by_id: Optional[int] = None
    is_virtual: bool = False
    is_low_stock: bool = False

    class Config:
        from_attributes = True


class InventoryUpdate(BaseModel):
    quantity: Optional[float] = Field(default=None, ge=0)
    min_stock_level: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_fields(self) -> "InventoryUpdate":
        if self.quantity is None and self.min_stock_level is None:
            raise ValueError("quantity or min_stock_level is required")
        return self
