from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.auth.auth_schemas import LoginRequest
from app.services.auth.auth_service import login_user
from app.utils.logger import get_logger

logger = get_logger("auth.router")

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login")
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Login attempt", extra={"user_name": payload.name})

    profile = await login_user(db, payload.name, payload.password)

    return {
        "success": True,
        "message": "Login successful",
        "data": profile,
    }
