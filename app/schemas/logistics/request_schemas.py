from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.enums.request_priority import RequestPriority
from app.models.enums.request_status import RequestStatus
from app.schemas.common import ActorSchema
from app.schemas.logistics.movement_schemas import MovementOut


# =========================
# COMMANDS
# =========================
class RequestCreateSchema(ActorSchema):
    item_id: str = Field(min_length=1)
    qty: int = Field(gt=0)
    note: str = ""
    priority: RequestPriority = RequestPriority.normal
    urgent_note: Optional[str] = None
    image_url: Optional[str] = None


class RequestAssignSchema(ActorSchema):
    driver_user_id: str = Field(min_length=1)
    eta: Optional[datetime] = None
    eta_label: Optional[str] = Field(default=None, max_length=120)


class RequestClaimSchema(ActorSchema):
    eta: Optional[datetime] = None
    eta_label: Optional[str] = Field(default=None, max_length=120)


class RequestEtaSchema(ActorSchema):
    eta: datetime
    eta_label: Optional[str] = Field(default=None, max_length=120)


class RequestUpdateSchema(ActorSchema):
    qty: Optional[int] = Field(default=None, gt=0)
    note: Optional[str] = None
    priority: Optional[RequestPriority] = None
    urgent_note: Optional[str] = None
    image_url: Optional[str] = None


# =========================
# RESPONSES
# =========================
class RequestOut(BaseModel):
    id: str
    item_id: str
    qty: int
    from_branch_id: str
    to_branch_id: str
    created_by_user_id: str
    note: str
    priority: RequestPriority
    urgent_note: Optional[str]
    image_url: Optional[str]
    status: RequestStatus

    driver_user_id: Optional[str]
    assigned_at: Optional[datetime]
    assigned_by_user_id: Optional[str]
    delivery_eta: Optional[datetime]
    delivery_eta_label: Optional[str]

    created_at: datetime
    delivered_at: Optional[datetime]
    received_by_user_id: Optional[str]

    class Config:
        from_attributes = True


class RequestListData(BaseModel):
    total: int
    items: List[RequestOut]


class DeliveryResult(BaseModel):
    request: RequestOut
    movements: List[MovementOut]
