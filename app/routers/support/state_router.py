from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.db import get_db
from app.core.exceptions import AppException, ForbiddenError
from app.core.security import shared_secret_matches
from app.constants.error_codes import ErrorCode
from app.services.support.snapshot_service import export_state
from app.utils.get_user import get_query_actor
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/state", tags=["State"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse)
async def get_state_api(
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    document = await export_state(db)
    return success_response("State fetched", document)


@router.get("/export", response_model=APIResponse)
async def export_state_api(
    key: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if not config.STATE_EXPORT_KEY:
        raise AppException(
            status_code=503,
            message="State export is not configured",
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
        )

    if not shared_secret_matches(key, config.STATE_EXPORT_KEY):
        logger.warning("State export rejected: bad key")
        raise ForbiddenError("Invalid export key")

    logger.info("Full state exported")
    document = await export_state(db, include_secrets=True)
    return success_response("State exported", document)
