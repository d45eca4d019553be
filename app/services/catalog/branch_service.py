from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.config import MAIN_STORAGE_BRANCH_ID
from app.core.exceptions import ConflictError
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.roles import Role
from app.models.catalog.branch_models import Branch
from app.models.users.user_models import User
from app.schemas.catalog.branch_schemas import BranchCreateSchema, BranchOut
from app.utils.activity_helpers import emit_actor_activity
from app.utils.check_roles import ensure_role
from app.utils.ids import new_id


def _map_branch(branch: Branch) -> BranchOut:
    return BranchOut(
        id=branch.id,
        name=branch.name,
        is_main_storage=branch.id == MAIN_STORAGE_BRANCH_ID,
        created_at=branch.created_at,
    )


async def create_branch(db: AsyncSession, payload: BranchCreateSchema, actor: User) -> BranchOut:
    ensure_role(actor, {Role.ADMIN}, "create branches")

    branch_id = payload.id or new_id("BR")
    if await db.get(Branch, branch_id):
        raise ConflictError("Branch already exists", ErrorCode.BRANCH_EXISTS)

    branch = Branch(id=branch_id, name=payload.name.strip())
    db.add(branch)
    await db.flush()

    await emit_actor_activity(
        db,
        actor,
        ActivityCode.CREATE_BRANCH,
        target_name=branch.name,
    )

    await db.commit()
    return _map_branch(branch)


async def list_branches(db: AsyncSession) -> list[BranchOut]:
    rows = (await db.scalars(select(Branch).order_by(Branch.id.asc()))).all()
    return [_map_branch(b) for b in rows]
