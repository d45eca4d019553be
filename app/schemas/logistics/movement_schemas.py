from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.enums.movement_type import MovementType
from app.schemas.common import ActorSchema


class MovementCreateSchema(ActorSchema):
    item_id: str = Field(min_length=1)
    branch_id: Optional[str] = None
    type: MovementType
    qty: int = Field(gt=0)
    note: str = ""


class MovementOut(BaseModel):
    id: str
    item_id: str
    branch_id: str
    type: MovementType
    qty: int
    user_id: Optional[str]
    note: str
    reference_type: str
    reference_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class MovementListData(BaseModel):
    total: int
    items: List[MovementOut]


class ReplayEntry(BaseModel):
    movement_id: str
    type: MovementType
    qty: int
    balance: int
    created_at: datetime


class StockReplayOut(BaseModel):
    item_id: str
    branch_id: str
    replayed_qty: int
    current_qty: Optional[int]
    entries: List[ReplayEntry]
