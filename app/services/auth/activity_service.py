from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.support.activity_models import UserActivity
from app.schemas.support.activity_schemas import UserActivityFilters, UserActivityOut
from app.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": UserActivity.created_at,
    "username": UserActivity.username_snapshot,
}


def _conditions(filters: UserActivityFilters) -> list:
    conditions = []
    if filters.user_id:
        conditions.append(UserActivity.user_id == filters.user_id)
    if filters.username:
        conditions.append(UserActivity.username_snapshot.ilike(f"%{filters.username}%"))
    if filters.search:
        conditions.append(UserActivity.message.ilike(f"%{filters.search}%"))
    if filters.since:
        conditions.append(UserActivity.created_at >= filters.since)
    if filters.until:
        conditions.append(UserActivity.created_at < filters.until)
    return conditions


async def list_user_activities(
    *,
    db: AsyncSession,
    filters: UserActivityFilters,
):
    """Audit trail page, newest first unless asked otherwise."""
    sort_column = ALLOWED_SORT_FIELDS.get(filters.sort_by)
    if sort_column is None:
        raise ValidationError("Invalid sort field", ["sort_by"])
    if filters.since and filters.until and filters.since >= filters.until:
        raise ValidationError("since must be before until", ["since", "until"])

    conditions = _conditions(filters)
    order_fn = desc if filters.sort_order == "desc" else asc

    total = await db.scalar(
        select(func.count(UserActivity.id)).where(*conditions)
    )
    activities = (
        await db.scalars(
            select(UserActivity)
            .where(*conditions)
            .order_by(order_fn(sort_column), order_fn(UserActivity.id))
            .limit(filters.page_size)
            .offset((filters.page - 1) * filters.page_size)
        )
    ).all()

    logger.info(
        "User activities fetched",
        extra={"total": total, "page": filters.page, "page_size": filters.page_size},
    )

    return {
        "total": total or 0,
        "items": [UserActivityOut.model_validate(a) for a in activities],
    }
