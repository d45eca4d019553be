from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.common import ActorSchema


# =========================
# CREATE / UPDATE
# =========================
class UserCreateSchema(ActorSchema):
    name: str = Field(min_length=1, max_length=150)
    role: str
    password: str = Field(min_length=4)
    branch_id: Optional[str] = None


class UserUpdateSchema(ActorSchema):
    # branch_id may be explicitly cleared with null; omitted means unchanged
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    role: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=4)
    branch_id: Optional[str] = None


# =========================
# RESPONSE SCHEMAS
# =========================
class UserOut(BaseModel):
    id: str
    name: str
    role: str
    branch_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class UserListData(BaseModel):
    total: int
    items: List[UserOut]
