from datetime import datetime
from typing import Optional

from fastapi import Query
from pydantic import BaseModel


class UserActivityFilters(BaseModel):
    user_id: Optional[str] = Query(None)
    username: Optional[str] = Query(None)
    # substring of the rendered message, e.g. an item or request id
    search: Optional[str] = Query(None)
    since: Optional[datetime] = Query(None)
    until: Optional[datetime] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query("created_at")
    sort_order: str = Query("desc")


class UserActivityOut(BaseModel):
    id: int
    user_id: Optional[str]
    username_snapshot: str
    message: str
    created_at: datetime

    class Config:
        from_attributes = True


class UserActivityPage(BaseModel):
    total: int
    items: list[UserActivityOut]
