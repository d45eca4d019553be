from pydantic import BaseModel, Field
from decimal import Decimal

from app.schemas.common import ActorSchema


class BudgetUpsertSchema(ActorSchema):
    branch_id: str = Field(min_length=1)
    month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM")
    planned: Decimal = Field(default=Decimal("0"), ge=0)


class BudgetOut(BaseModel):
    id: str
    branch_id: str
    month: str
    planned: Decimal

    class Config:
        from_attributes = True
