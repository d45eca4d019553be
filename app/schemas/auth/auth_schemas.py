from pydantic import BaseModel, Field
from typing import Optional


class LoginRequest(BaseModel):
    name: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginProfile(BaseModel):
    id: str
    name: str
    role: str
    branch_id: Optional[str]
