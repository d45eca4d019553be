from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.users.user_schemas import (
    UserCreateSchema,
    UserUpdateSchema,
    UserListData,
)
from app.services.users.user_services import (
    create_user,
    list_users,
    get_user_by_id,
    update_user,
    delete_user,
)
from app.utils.check_roles import require_role
from app.utils.get_user import get_actor
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/users", tags=["Users"])
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse)
async def create_user_api(
    payload: UserCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    admin = await get_actor(db, payload.actor_user_id)
    logger.info("Create user request", extra={"user_name": payload.name})
    user = await create_user(db, payload, admin)
    return success_response("User created successfully", user)


@router.get("/", response_model=APIResponse[UserListData])
async def list_users_api(
    role: Optional[str] = Query(None),
    branch_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("List users request", extra={"role": role, "branch_id": branch_id})
    users = await list_users(db, role=role, branch_id=branch_id)
    return success_response("Users fetched", users)


@router.get("/{user_id}", response_model=APIResponse)
async def get_user_api(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Get user by id", extra={"user_id": user_id})
    user = await get_user_by_id(db, user_id)
    return success_response("User fetched", user)


@router.patch("/{user_id}", response_model=APIResponse)
async def update_user_api(
    user_id: str,
    payload: UserUpdateSchema,
    db: AsyncSession = Depends(get_db),
):
    admin = await get_actor(db, payload.actor_user_id)
    logger.info("Update user", extra={"user_id": user_id})
    user = await update_user(db, user_id, payload, admin)
    return success_response("User updated successfully", user)


@router.delete("/{user_id}", response_model=APIResponse)
async def delete_user_api(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Delete user", extra={"user_id": user_id})
    await delete_user(db, user_id, admin)
    return success_response("User deleted successfully")
