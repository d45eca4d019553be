from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedError
from app.core.security import verify_password
from app.constants.activity_codes import ActivityCode
from app.schemas.auth.auth_schemas import LoginProfile
from app.utils.activity_helpers import emit_actor_activity
from app.utils.get_user import find_user_by_name
from app.utils.logger import get_logger

logger = get_logger("auth.service")


# =====================================================
# LOGIN
# =====================================================
async def login_user(db: AsyncSession, name: str, password: str) -> LoginProfile:
    logger.info("Authenticating user", extra={"user_name": name})

    user = await find_user_by_name(db, name)

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Invalid credentials", extra={"user_name": name})
        raise UnauthorizedError("Invalid credentials")

    await emit_actor_activity(db, user, ActivityCode.LOGIN)
    await db.commit()

    logger.info("Login successful", extra={"user_id": user.id})

    return LoginProfile(
        id=user.id,
        name=user.name,
        role=user.role,
        branch_id=user.branch_id,
    )
