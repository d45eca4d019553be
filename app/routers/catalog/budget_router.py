from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.catalog.budget_schemas import BudgetUpsertSchema
from app.services.catalog.budget_service import upsert_budget, list_budgets
from app.utils.check_roles import require_role
from app.utils.get_user import get_actor
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/budgets", tags=["Budgets"])
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse)
async def upsert_budget_api(
    payload: BudgetUpsertSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info(
        "Upsert budget request",
        extra={"branch_id": payload.branch_id, "month": payload.month},
    )
    budget = await upsert_budget(db, payload, actor)
    return success_response("Budget saved successfully", budget)


@router.get("/", response_model=APIResponse)
async def list_budgets_api(
    branch_id: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["admin", "manager"])),
):
    budgets = await list_budgets(db, branch_id=branch_id, month=month)
    return success_response("Budgets fetched", budgets)
