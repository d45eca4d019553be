from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from app.schemas.common import ActorSchema


class ItemCreateSchema(ActorSchema):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    name_en: Optional[str] = None
    name_ar: Optional[str] = None
    branch_id: str = Field(min_length=1)
    min_qty: int = Field(default=0, ge=0)
    base_qty: int = Field(default=0, ge=0)
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0)


class ItemOut(BaseModel):
    id: str
    branch_id: str
    name: str
    name_en: Optional[str]
    name_ar: Optional[str]
    min_qty: int
    base_qty: int
    unit_cost: Decimal
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ItemListData(BaseModel):
    total: int
    items: List[ItemOut]
