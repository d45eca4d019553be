from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.request_status import RequestStatus
from app.schemas.common import ActorSchema
from app.schemas.logistics.request_schemas import (
    RequestCreateSchema,
    RequestAssignSchema,
    RequestClaimSchema,
    RequestEtaSchema,
    RequestUpdateSchema,
    RequestListData,
    DeliveryResult,
)
from app.services.logistics.request_service import (
    create_request,
    assign_request,
    claim_request,
    update_request_eta,
    update_request,
    confirm_request,
    delete_request,
    get_request,
    list_pending_requests,
    list_requests,
    load_delivered_request,
)
from app.utils.get_user import get_actor, get_query_actor
from app.utils.pdf_generators.delivery_note_pdf import generate_delivery_note_pdf
from app.utils.response import APIResponse, success_response
from app.utils.logger import get_logger

router = APIRouter(prefix="/requests", tags=["Transfer Requests"])
logger = get_logger(__name__)


# =========================
# CREATE / LIST
# =========================
@router.post("/", response_model=APIResponse)
async def create_request_api(
    payload: RequestCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info(
        "Create request",
        extra={"item_id": payload.item_id, "qty": payload.qty, "actor": actor.id},
    )
    request = await create_request(db, payload, actor)
    return success_response("Request created successfully", request)


@router.get("/", response_model=APIResponse[RequestListData])
async def list_requests_api(
    status: Optional[RequestStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    requests = await list_requests(
        db,
        actor,
        status=status,
        page=page,
        page_size=page_size,
    )
    return success_response("Requests fetched", requests)


@router.get("/pending", response_model=APIResponse)
async def list_pending_requests_api(
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    return success_response(
        "Pending requests fetched",
        await list_pending_requests(db, actor),
    )


# =========================
# SINGLE REQUEST
# =========================
@router.get("/{request_id}", response_model=APIResponse)
async def get_request_api(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    return success_response("Request fetched", await get_request(db, request_id, actor))


@router.patch("/{request_id}", response_model=APIResponse)
async def update_request_api(
    request_id: str,
    payload: RequestUpdateSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info("Update request", extra={"request_id": request_id})
    request = await update_request(db, request_id, payload, actor)
    return success_response("Request updated successfully", request)


@router.delete("/{request_id}", response_model=APIResponse)
async def delete_request_api(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    logger.info("Delete request", extra={"request_id": request_id})
    await delete_request(db, request_id, actor)
    return success_response("Request deleted successfully")


# =========================
# TRANSITIONS
# =========================
@router.post("/{request_id}/assign", response_model=APIResponse)
async def assign_request_api(
    request_id: str,
    payload: RequestAssignSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info(
        "Assign driver",
        extra={"request_id": request_id, "driver_user_id": payload.driver_user_id},
    )
    request = await assign_request(db, request_id, payload, actor)
    return success_response("Driver assigned", request)


@router.post("/{request_id}/claim", response_model=APIResponse)
async def claim_request_api(
    request_id: str,
    payload: RequestClaimSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info("Claim request", extra={"request_id": request_id, "driver": actor.id})
    request = await claim_request(db, request_id, payload, actor)
    return success_response("Request claimed", request)


@router.post("/{request_id}/eta", response_model=APIResponse)
async def update_request_eta_api(
    request_id: str,
    payload: RequestEtaSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    request = await update_request_eta(db, request_id, payload, actor)
    return success_response("Delivery ETA updated", request)


@router.post("/{request_id}/confirm", response_model=APIResponse[DeliveryResult])
async def confirm_request_api(
    request_id: str,
    payload: ActorSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    logger.info("Confirm delivery", extra={"request_id": request_id, "actor": actor.id})
    result = await confirm_request(db, request_id, actor)
    return success_response("Delivery confirmed", result)


# =========================
# DELIVERY NOTE
# =========================
@router.get("/{request_id}/delivery-note")
async def download_delivery_note_api(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    request = await load_delivered_request(db, request_id, actor)
    file_path = await generate_delivery_note_pdf(db, request)

    return FileResponse(
        file_path,
        media_type="application/pdf",
        filename=f"DeliveryNote_{request_id}.pdf",
    )
