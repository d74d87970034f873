from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

HEX_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


class ColorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    code_name: str = Field(min_length=1, max_length=60)
    hex_code: str = Field(pattern=HEX_PATTERN)


class ColorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    code_name: Optional[str] = Field(default=None, min_length=1, max_length=60)
    hex_code: Optional[str] = Field(default=None, pattern=HEX_PATTERN)
    is_active: Optional[bool] = None


class ColorBrief(BaseModel):
    id: int
    name: str
    code_name: str
    hex_code: str

    class Config:
        from_attributes = True


class ColorOut(ColorBrief):
    is_active: bool
    created_by_id: Optional[int] = None
    created_at: datetime
