from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.exceptions import NotFoundError
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.roles import Role
from app.models.budgets.budget_models import Budget
from app.models.catalog.branch_models import Branch
from app.models.users.user_models import User
from app.schemas.catalog.budget_schemas import BudgetUpsertSchema, BudgetOut
from app.utils.activity_helpers import emit_actor_activity
from app.utils.check_roles import ensure_role
from app.utils.ids import new_id


async def upsert_budget(db: AsyncSession, payload: BudgetUpsertSchema, actor: User) -> BudgetOut:
    ensure_role(actor, {Role.ADMIN}, "set budgets")

    if not await db.get(Branch, payload.branch_id):
        raise NotFoundError("Branch not found", ErrorCode.BRANCH_NOT_FOUND)

    budget = await db.scalar(
        select(Budget).where(
            Budget.branch_id == payload.branch_id,
            Budget.month == payload.month,
        )
    )

    if budget is None:
        budget = Budget(
            id=new_id("BUD"),
            branch_id=payload.branch_id,
            month=payload.month,
            planned=payload.planned,
            created_by_id=actor.id,
        )
        db.add(budget)
    else:
        budget.planned = payload.planned
        budget.updated_by_id = actor.id

    await db.flush()

    await emit_actor_activity(
        db,
        actor,
        ActivityCode.UPSERT_BUDGET,
        branch_id=budget.branch_id,
        month=budget.month,
        planned=budget.planned,
    )

    await db.commit()
    return BudgetOut.model_validate(budget)


async def list_budgets(
    db: AsyncSession,
    *,
    branch_id: str | None,
    month: str | None,
) -> list[BudgetOut]:
    stmt = select(Budget)
    if branch_id:
        stmt = stmt.where(Budget.branch_id == branch_id)
    if month:
        stmt = stmt.where(Budget.month == month)

    rows = (await db.scalars(stmt.order_by(Budget.month.desc(), Budget.branch_id))).all()
    return [BudgetOut.model_validate(b) for b in rows]
