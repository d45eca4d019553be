from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.schemas.common import ActorSchema


class VehicleCreateSchema(ActorSchema):
    plate: str = Field(min_length=1, max_length=32)
    name: Optional[str] = None
    branch_id: Optional[str] = None


class VehicleOut(BaseModel):
    id: str
    plate: str
    name: Optional[str]
    branch_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
