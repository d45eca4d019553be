from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.activity_codes import ActivityCode
from app.constants.activity_templates import ACTIVITY_TEMPLATES
from app.models.support.activity_models import UserActivity
from app.utils.logger import get_logger

logger = get_logger(__name__)


def render_activity(code: ActivityCode, **context) -> str:
    """Fill the audit template for ``code``; a missing placeholder is a programming error."""
    if code not in ACTIVITY_TEMPLATES:
        raise ValueError(f"No activity template for code {code}")
    try:
        return ACTIVITY_TEMPLATES[code].format(**context)
    except KeyError as e:
        raise ValueError(f"Missing activity context key: {e.args[0]} for {code}") from e


async def emit_activity(
    db: AsyncSession,
    *,
    user_id: str | None,
    username: str,
    code: ActivityCode,
    **context,
) -> UserActivity:
    # Added to the caller's session; persisted by the caller's commit
    activity = UserActivity(
        user_id=user_id,
        username_snapshot=username,
        message=render_activity(code, **context),
    )
    db.add(activity)
    logger.debug(activity.message, extra={"user_id": user_id})
    return activity


async def emit_actor_activity(db: AsyncSession, actor, code: ActivityCode, **context) -> UserActivity:
    return await emit_activity(
        db,
        user_id=actor.id,
        username=actor.name,
        code=code,
        actor_role=actor.role.capitalize(),
        actor_name=actor.name,
        **context,
    )
