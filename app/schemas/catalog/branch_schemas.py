from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.schemas.common import ActorSchema


class BranchCreateSchema(ActorSchema):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=150)


class BranchOut(BaseModel):
    id: str
    name: str
    is_main_storage: bool = False
    created_at: datetime

    class Config:
        from_attributes = True
