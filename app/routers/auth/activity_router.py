from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.users.user_models import User
from app.schemas.support.activity_schemas import UserActivityFilters, UserActivityPage
from app.services.auth.activity_service import list_user_activities
from app.utils.check_roles import require_role
from app.utils.get_user import get_query_actor
from app.utils.logger import get_logger
from app.utils.response import APIResponse, success_response

router = APIRouter(prefix="/activities", tags=["User Activities"])
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[UserActivityPage])
async def list_activities_api(
    filters: UserActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_role(["admin"])),
):
    logger.info("Activity log requested", extra=filters.model_dump(exclude_none=True))
    page = await list_user_activities(db=db, filters=filters)
    return success_response("User activities fetched successfully", page)


@router.get("/mine", response_model=APIResponse[UserActivityPage])
async def list_own_activities_api(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(get_query_actor),
):
    """Any user may read their own trail."""
    filters = UserActivityFilters(
        user_id=actor.id,
        username=None,
        search=None,
        since=None,
        until=None,
        page=page,
        page_size=page_size,
        sort_by="created_at",
        sort_order="desc",
    )
    result = await list_user_activities(db=db, filters=filters)
    return success_response("User activities fetched successfully", result)
