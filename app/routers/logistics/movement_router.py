from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.movement_type import MovementType
from app.schemas.logistics.movement_schemas import (
    MovementCreateSchema,
    MovementListData,
    StockReplayOut,
)
from app.services.logistics.ledger_service import (
    record_movement,
    list_movements,
    replay_stock,
)
from app.utils.check_roles import require_role
from app.utils.get_user import get_actor
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/movements", tags=["Movements"])
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse)
async def record_movement_api(
    payload: MovementCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info(
        "Record movement request",
        extra={"item_id": payload.item_id, "type": payload.type.value, "qty": payload.qty},
    )
    movement = await record_movement(db, payload, actor)
    return success_response("Movement recorded", movement)


@router.get("/", response_model=APIResponse[MovementListData])
async def list_movements_api(
    item_id: Optional[str] = Query(None),
    branch_id: Optional[str] = Query(None),
    type: Optional[MovementType] = Query(None),
    reference_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["admin", "manager"])),
):
    movements = await list_movements(
        db,
        item_id=item_id,
        branch_id=branch_id,
        movement_type=type,
        reference_id=reference_id,
        page=page,
        page_size=page_size,
    )
    return success_response("Movements fetched", movements)


@router.get("/replay", response_model=APIResponse[StockReplayOut])
async def replay_stock_api(
    item_id: str = Query(..., min_length=1),
    branch_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["admin", "manager"])),
):
    logger.info("Stock replay requested", extra={"item_id": item_id, "branch_id": branch_id})
    replay = await replay_stock(db, item_id=item_id, branch_id=branch_id)
    return success_response("Stock replayed", replay)
