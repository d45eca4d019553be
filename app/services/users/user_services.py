from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.models.users.user_models import User
from app.models.catalog.branch_models import Branch
from app.schemas.users.user_schemas import (
    UserCreateSchema,
    UserUpdateSchema,
    UserOut,
    UserListData,
)
from app.core.security import hash_password
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.roles import ALLOWED_ROLES, Role
from app.utils.activity_helpers import emit_actor_activity
from app.utils.check_roles import ensure_role
from app.utils.get_user import find_user_by_name
from app.utils.ids import new_id
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _validate_role(role: str) -> str:
    role = role.strip().lower()
    if role not in ALLOWED_ROLES:
        raise ValidationError("Invalid role", ["role"], ErrorCode.USER_ROLE_INVALID)
    return role


async def _validate_branch(db: AsyncSession, branch_id: str | None) -> None:
    if branch_id and not await db.get(Branch, branch_id):
        raise NotFoundError("Branch not found", ErrorCode.BRANCH_NOT_FOUND)


async def _ensure_name_free(
    db: AsyncSession,
    name: str,
    exclude_user_id: str | None = None,
) -> None:
    existing = await find_user_by_name(db, name)
    if existing and existing.id != exclude_user_id:
        raise ConflictError("Username already exists", ErrorCode.USER_NAME_EXISTS)


# =========================
# CREATE USER
# =========================
async def create_user(db: AsyncSession, payload: UserCreateSchema, admin: User) -> UserOut:
    ensure_role(admin, {Role.ADMIN}, "create users")

    role = _validate_role(payload.role)
    await _ensure_name_free(db, payload.name)
    await _validate_branch(db, payload.branch_id)

    user = User(
        id=new_id("U"),
        name=payload.name.strip(),
        name_key=payload.name.strip().lower(),
        password_hash=hash_password(payload.password),
        role=role,
        branch_id=payload.branch_id,
        created_by_admin_id=admin.id,
    )

    db.add(user)
    await db.flush()

    await emit_actor_activity(
        db,
        admin,
        ActivityCode.CREATE_USER,
        target_name=user.name,
        target_role=user.role.capitalize(),
    )

    await db.commit()

    logger.info("User created", extra={"user_id": user.id})
    return UserOut.model_validate(user)


# =========================
# LIST / GET
# =========================
async def list_users(
    db: AsyncSession,
    *,
    role: str | None,
    branch_id: str | None,
) -> UserListData:
    filters = []
    if role:
        filters.append(User.role == role.lower())
    if branch_id:
        filters.append(User.branch_id == branch_id)

    total = await db.scalar(select(func.count()).select_from(User).where(*filters))
    users = (
        await db.scalars(select(User).where(*filters).order_by(User.name_key.asc()))
    ).all()

    return UserListData(
        total=total or 0,
        items=[UserOut.model_validate(u) for u in users],
    )


async def get_user_by_id(db: AsyncSession, user_id: str) -> UserOut:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", ErrorCode.USER_NOT_FOUND)
    return UserOut.model_validate(user)


# =========================
# UPDATE USER
# =========================
async def update_user(
    db: AsyncSession,
    user_id: str,
    payload: UserUpdateSchema,
    admin: User,
) -> UserOut:
    ensure_role(admin, {Role.ADMIN}, "edit users")

    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", ErrorCode.USER_NOT_FOUND)

    provided = payload.model_fields_set
    changes = []

    if payload.name and payload.name.strip() != user.name:
        await _ensure_name_free(db, payload.name, exclude_user_id=user.id)
        user.name = payload.name.strip()
        user.name_key = user.name.lower()
        changes.append("name")

    if payload.role:
        role = _validate_role(payload.role)
        if role != user.role:
            user.role = role
            changes.append("role")

    if "branch_id" in provided and payload.branch_id != user.branch_id:
        await _validate_branch(db, payload.branch_id)
        user.branch_id = payload.branch_id
        changes.append("branch")

    if payload.password:
        user.password_hash = hash_password(payload.password)
        changes.append("password")

    # -------------------------------------------------
    # NO-OP GUARD
    # -------------------------------------------------
    if not changes:
        raise ValidationError("No changes provided")

    await emit_actor_activity(
        db,
        admin,
        ActivityCode.UPDATE_USER,
        target_name=user.name,
        changes=", ".join(changes),
    )

    await db.commit()

    logger.info("User updated", extra={"user_id": user.id, "changes": changes})
    return UserOut.model_validate(user)


# =========================
# DELETE USER
# =========================
async def delete_user(db: AsyncSession, user_id: str, admin: User) -> None:
    ensure_role(admin, {Role.ADMIN}, "delete users")

    if admin.id == user_id:
        raise ValidationError(
            "Admin cannot delete their own account",
            error_code=ErrorCode.USER_SELF_DELETE,
        )

    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", ErrorCode.USER_NOT_FOUND)

    name = user.name
    await db.delete(user)

    await emit_actor_activity(
        db,
        admin,
        ActivityCode.DELETE_USER,
        target_name=name,
    )

    await db.commit()
    logger.info("User deleted", extra={"user_id": user_id})
