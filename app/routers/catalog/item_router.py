from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.catalog.item_schemas import ItemCreateSchema, ItemListData
from app.services.catalog.item_service import create_item, list_items, low_stock_items
from app.utils.get_user import get_actor, get_query_actor
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/items", tags=["Items"])
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse)
async def create_item_api(
    payload: ItemCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info(
        "Create item request",
        extra={"item_id": payload.id, "branch_id": payload.branch_id},
    )
    item = await create_item(db, payload, actor)
    return success_response("Item created successfully", item)


@router.get("/", response_model=APIResponse[ItemListData])
async def list_items_api(
    branch_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    items = await list_items(
        db,
        branch_id=branch_id,
        search=search,
        page=page,
        page_size=page_size,
    )
    return success_response("Items fetched", items)


@router.get("/low-stock", response_model=APIResponse)
async def low_stock_items_api(
    branch_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    return success_response(
        "Low stock items fetched",
        await low_stock_items(db, branch_id),
    )
