from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.db import get_db
from app.core.exceptions import UnauthorizedError
from app.models.users.user_models import User
from app.utils.logger import get_logger

logger = get_logger("auth.guard")


async def find_user_by_id(db: AsyncSession, user_id: str | None) -> User | None:
    if not user_id:
        return None
    return await db.get(User, user_id)


async def find_user_by_name(db: AsyncSession, name: str) -> User | None:
    return await db.scalar(
        select(User).where(User.name_key == name.strip().lower())
    )


async def get_actor(db: AsyncSession, actor_user_id: str | None) -> User:
    """Resolve the acting user supplied explicitly with the call."""
    user = await find_user_by_id(db, actor_user_id)
    if not user:
        logger.warning("Unknown actor", extra={"actor_user_id": actor_user_id})
        raise UnauthorizedError()
    return user


async def get_query_actor(
    request: Request,
    actor_user_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await get_actor(db, actor_user_id)
    request.state.user = user
    return user
