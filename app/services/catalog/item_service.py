# app/services/catalog/item_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.exceptions import ConflictError, NotFoundError
from app.core.locks import stock_locks
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.movement_reference import MovementReference
from app.constants.roles import MANAGEMENT_ROLES
from app.models.catalog.branch_models import Branch
from app.models.catalog.item_models import Item
from app.models.enums.movement_type import MovementType
from app.models.users.user_models import User
from app.schemas.catalog.item_schemas import ItemCreateSchema, ItemOut, ItemListData
from app.services.logistics.ledger_service import apply_movement
from app.utils.activity_helpers import emit_actor_activity
from app.utils.check_roles import ensure_role
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def find_item(db: AsyncSession, item_id: str, branch_id: str) -> Item | None:
    return await db.get(Item, (item_id, branch_id))


# ---------------- CREATE ----------------
async def create_item(db: AsyncSession, payload: ItemCreateSchema, actor: User) -> ItemOut:
    ensure_role(actor, MANAGEMENT_ROLES, "create items")

    if not await db.get(Branch, payload.branch_id):
        raise NotFoundError("Branch not found", ErrorCode.BRANCH_NOT_FOUND)

    async with stock_locks.hold([(payload.id, payload.branch_id)]):
        if await find_item(db, payload.id, payload.branch_id):
            raise ConflictError(
                "Item ID already exists in this branch",
                ErrorCode.ITEM_EXISTS,
            )

        item = Item(
            id=payload.id,
            branch_id=payload.branch_id,
            name=payload.name.strip(),
            name_en=payload.name_en,
            name_ar=payload.name_ar,
            min_qty=payload.min_qty,
            base_qty=0,
            unit_cost=payload.unit_cost,
            created_by_id=actor.id,
            updated_by_id=actor.id,
        )
        db.add(item)
        await db.flush()

        await emit_actor_activity(
            db,
            actor,
            ActivityCode.CREATE_ITEM,
            target_name=item.name,
            branch_id=item.branch_id,
        )

        # Opening stock goes through the ledger so replay reproduces base_qty
        if payload.base_qty:
            await apply_movement(
                db,
                item=item,
                movement_type=MovementType.IN,
                qty=payload.base_qty,
                actor=actor,
                note="Opening balance",
                reference_type=MovementReference.ADJUSTMENT,
            )

        await db.commit()

    logger.info("Item created", extra={"item_id": item.id, "branch_id": item.branch_id})
    return ItemOut.model_validate(item)


# ---------------- LIST ----------------
async def list_items(
    db: AsyncSession,
    *,
    branch_id: str | None,
    search: str | None,
    page: int,
    page_size: int,
) -> ItemListData:
    filters = []
    if branch_id:
        filters.append(Item.branch_id == branch_id)
    if search:
        filters.append(Item.name.ilike(f"%{search}%"))

    total = await db.scalar(select(func.count()).select_from(Item).where(*filters))
    rows = (
        await db.scalars(
            select(Item)
            .where(*filters)
            .order_by(Item.branch_id.asc(), Item.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).all()

    return ItemListData(
        total=total or 0,
        items=[ItemOut.model_validate(i) for i in rows],
    )


async def low_stock_items(db: AsyncSession, branch_id: str | None = None) -> list[ItemOut]:
    stmt = select(Item).where(Item.base_qty < Item.min_qty)
    if branch_id:
        stmt = stmt.where(Item.branch_id == branch_id)

    rows = (await db.scalars(stmt.order_by(Item.branch_id, Item.id))).all()
    return [ItemOut.model_validate(i) for i in rows]
