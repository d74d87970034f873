from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

PHONE_PATTERN = r"^[0-9+\-\s()]*$"
ContactType = Literal["customer", "supplier"]


class ContactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: ContactType = "customer"
    phone: Optional[str] = Field(default=None, max_length=20, pattern=PHONE_PATTERN)
    address: Optional[str] = Field(default=None, max_length=500)
    email: Optional[str] = Field(default=None, max_length=255)
    balance: float = 0


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[ContactType] = None
    phone: Optional[str] = Field(default=None, max_length=20, pattern=PHONE_PATTERN)
    address: Optional[str] = Field(default=None, max_length=500)
    email: Optional[str] = Field(default=None, max_length=255)
    balance: Optional[float] = None
    is_active: Optional[bool] = None


class ContactOut(BaseModel):
    id: int
    name: str
    type: str
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    balance: float
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
