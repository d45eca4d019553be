from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.config import MAIN_STORAGE_BRANCH_ID
from app.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from app.core.locks import stock_locks
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.movement_reference import MovementReference
from app.constants.roles import MANAGEMENT_ROLES

from app.models.catalog.item_models import Item
from app.models.logistics.movement_models import Movement
from app.models.enums.movement_type import MovementType
from app.models.users.user_models import User

from app.schemas.logistics.movement_schemas import (
    MovementCreateSchema,
    MovementOut,
    MovementListData,
    ReplayEntry,
    StockReplayOut,
)
from app.utils.activity_helpers import emit_actor_activity
from app.utils.check_roles import ensure_role
from app.utils.ids import new_id
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def lock_item(
    db: AsyncSession,
    item_id: str,
    branch_id: str,
) -> Item | None:
    """Fresh read of a stock record; row-locked on databases that support it."""
    return await db.scalar(
        select(Item)
        .where(Item.id == item_id, Item.branch_id == branch_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def upsert_item(
    db: AsyncSession,
    template: Item,
    branch_id: str,
    actor: User,
) -> Item:
    """Stock record for ``template.id`` in ``branch_id``, cloned empty when missing."""
    item = await lock_item(db, template.id, branch_id)
    if item is not None:
        return item

    item = Item(
        id=template.id,
        branch_id=branch_id,
        name=template.name,
        name_en=template.name_en,
        name_ar=template.name_ar,
        min_qty=0,
        base_qty=0,
        unit_cost=template.unit_cost,
        created_by_id=actor.id,
    )
    db.add(item)
    await db.flush()
    return item


def ensure_available(item: Item | None, *, item_id: str, branch_id: str, qty: int) -> Item:
    available = item.base_qty if item else 0
    if item is None or available < qty:
        raise InsufficientStockError(
            item_id=item_id,
            branch_id=branch_id,
            available=available,
            requested=qty,
        )
    return item


async def apply_movement(
    db: AsyncSession,
    *,
    item: Item,
    movement_type: MovementType,
    qty: int,
    actor: User,
    note: str,
    reference_type: MovementReference,
    reference_id: str | None = None,
) -> Movement:
    """Append one ledger entry and apply it to the stock record.

    The caller holds the stock lock for ``(item.id, item.branch_id)``.
    Shortages are rejected, never clamped.
    """
    if qty <= 0:
        raise ValidationError("Movement quantity must be positive", ["qty"])

    if movement_type == MovementType.OUT:
        ensure_available(item, item_id=item.id, branch_id=item.branch_id, qty=qty)
        item.base_qty -= qty
    else:
        item.base_qty += qty

    item.updated_by_id = actor.id

    movement = Movement(
        id=new_id("MOV"),
        item_id=item.id,
        branch_id=item.branch_id,
        type=movement_type,
        qty=qty,
        user_id=actor.id,
        note=note or "",
        reference_type=reference_type.value,
        reference_id=reference_id,
    )
    db.add(movement)
    await db.flush()

    await emit_actor_activity(
        db,
        actor,
        ActivityCode.INVENTORY_MOVEMENT,
        movement_type=movement_type.value,
        qty=qty,
        item_id=item.id,
        branch_id=item.branch_id,
        reference_type=reference_type.value,
        reference_id=reference_id or "-",
    )

    return movement


async def _resolve_movement_branch(
    db: AsyncSession,
    item_id: str,
    branch_id: str | None,
) -> str:
    if branch_id:
        return branch_id

    branches = (
        await db.scalars(select(Item.branch_id).where(Item.id == item_id))
    ).all()

    if not branches:
        raise NotFoundError("Item not found", ErrorCode.ITEM_NOT_FOUND)
    if MAIN_STORAGE_BRANCH_ID in branches:
        return MAIN_STORAGE_BRANCH_ID
    if len(branches) == 1:
        return branches[0]

    raise ValidationError(
        "Item exists in several branches; branch_id is required",
        ["branch_id"],
        ErrorCode.ITEM_AMBIGUOUS,
    )


# =========================
# DIRECT MOVEMENT
# =========================
async def record_movement(
    db: AsyncSession,
    payload: MovementCreateSchema,
    actor: User,
) -> MovementOut:
    ensure_role(actor, MANAGEMENT_ROLES, "record movements")

    branch_id = await _resolve_movement_branch(db, payload.item_id, payload.branch_id)

    async with stock_locks.hold([(payload.item_id, branch_id)]):
        item = await lock_item(db, payload.item_id, branch_id)
        if not item:
            raise NotFoundError("Item not found", ErrorCode.ITEM_NOT_FOUND)

        movement = await apply_movement(
            db,
            item=item,
            movement_type=payload.type,
            qty=payload.qty,
            actor=actor,
            note=payload.note,
            reference_type=MovementReference.ADJUSTMENT,
        )
        await db.commit()

    logger.info(
        "Movement recorded",
        extra={"movement_id": movement.id, "item_id": item.id, "branch_id": branch_id},
    )
    return MovementOut.model_validate(movement)


# =========================
# LIST
# =========================
async def list_movements(
    db: AsyncSession,
    *,
    item_id: str | None,
    branch_id: str | None,
    movement_type: MovementType | None,
    reference_id: str | None,
    page: int,
    page_size: int,
) -> MovementListData:
    filters = []
    if item_id:
        filters.append(Movement.item_id == item_id)
    if branch_id:
        filters.append(Movement.branch_id == branch_id)
    if movement_type:
        filters.append(Movement.type == movement_type)
    if reference_id:
        filters.append(Movement.reference_id == reference_id)

    total = await db.scalar(
        select(func.count()).select_from(Movement).where(*filters)
    )

    rows = (
        await db.scalars(
            select(Movement)
            .where(*filters)
            .order_by(Movement.created_at.desc(), Movement.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).all()

    return MovementListData(
        total=total or 0,
        items=[MovementOut.model_validate(m) for m in rows],
    )


# =========================
# REPLAY
# =========================
async def replay_stock(
    db: AsyncSession,
    *,
    item_id: str,
    branch_id: str,
) -> StockReplayOut:
    movements = (
        await db.scalars(
            select(Movement)
            .where(Movement.item_id == item_id, Movement.branch_id == branch_id)
            .order_by(Movement.created_at.asc(), Movement.id.asc())
        )
    ).all()

    current_qty = await db.scalar(
        select(Item.base_qty).where(Item.id == item_id, Item.branch_id == branch_id)
    )

    if not movements and current_qty is None:
        raise NotFoundError("Item not found", ErrorCode.ITEM_NOT_FOUND)

    balance = 0
    entries = []
    for m in movements:
        balance += m.signed_qty
        entries.append(
            ReplayEntry(
                movement_id=m.id,
                type=m.type,
                qty=m.qty,
                balance=balance,
                created_at=m.created_at,
            )
        )

    return StockReplayOut(
        item_id=item_id,
        branch_id=branch_id,
        replayed_qty=balance,
        current_qty=current_qty,
        entries=entries,
    )
