from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.catalog.branch_schemas import BranchCreateSchema
from app.services.catalog.branch_service import create_branch, list_branches
from app.utils.get_user import get_actor, get_query_actor
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/branches", tags=["Branches"])
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse)
async def create_branch_api(
    payload: BranchCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info("Create branch request", extra={"branch_name": payload.name})
    branch = await create_branch(db, payload, actor)
    return success_response("Branch created successfully", branch)


@router.get("/", response_model=APIResponse)
async def list_branches_api(
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    return success_response("Branches fetched", await list_branches(db))
