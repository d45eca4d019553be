from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.config import MAIN_STORAGE_BRANCH_ID
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.core.locks import stock_locks
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.movement_reference import MovementReference
from app.constants.roles import (
    Role,
    MANAGEMENT_ROLES,
    RECEIVING_ROLES,
    BRANCH_SCOPED_ROLES,
    PENDING_VIEW_ROLES,
)

from app.models.catalog.item_models import Item
from app.models.logistics.request_models import TransferRequest
from app.models.enums.movement_type import MovementType
from app.models.enums.request_status import RequestStatus
from app.models.users.user_models import User

from app.schemas.logistics.movement_schemas import MovementOut
from app.schemas.logistics.request_schemas import (
    RequestCreateSchema,
    RequestAssignSchema,
    RequestClaimSchema,
    RequestEtaSchema,
    RequestUpdateSchema,
    RequestOut,
    RequestListData,
    DeliveryResult,
)
from app.services.logistics.ledger_service import (
    apply_movement,
    ensure_available,
    lock_item,
    upsert_item,
)
from app.utils.activity_helpers import emit_actor_activity
from app.utils.check_roles import ensure_role, has_role
from app.utils.get_user import find_user_by_id
from app.utils.ids import new_id, display_id
from app.utils.logger import get_logger

logger = get_logger(__name__)

MANAGEMENT_EDITABLE_FIELDS = frozenset(
    {"qty", "note", "priority", "urgent_note", "image_url"}
)
CREATOR_EDITABLE_FIELDS = frozenset(
    {"note", "priority", "urgent_note", "image_url"}
)
# urgent_note and image_url may be cleared; these may not
NON_NULLABLE_EDIT_FIELDS = frozenset({"qty", "note", "priority"})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _map_request(r: TransferRequest) -> RequestOut:
    return RequestOut.model_validate(r)


async def _get_request(
    db: AsyncSession,
    request_id: str,
    *,
    for_update: bool = False,
) -> TransferRequest:
    stmt = select(TransferRequest).where(TransferRequest.id == request_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)

    request = await db.scalar(stmt)
    if not request:
        raise NotFoundError("Request not found", ErrorCode.REQUEST_NOT_FOUND)
    return request


def _ensure_not_delivered(request: TransferRequest, action: str) -> None:
    if request.status == RequestStatus.delivered:
        raise ConflictError(
            f"Request already delivered; cannot {action}",
            ErrorCode.REQUEST_ALREADY_DELIVERED,
        )


def _apply_eta(
    request: TransferRequest,
    eta: datetime | None,
    eta_label: str | None,
) -> None:
    if eta is not None:
        request.delivery_eta = eta
    if eta_label is not None:
        request.delivery_eta_label = eta_label


def _assign_driver(
    request: TransferRequest,
    driver: User,
    assigned_by: User,
) -> None:
    request.driver_user_id = driver.id
    request.assigned_by_user_id = assigned_by.id
    request.assigned_at = _now()
    request.status = RequestStatus.assigned


def _can_view(actor: User, request: TransferRequest) -> bool:
    if has_role(actor, PENDING_VIEW_ROLES):
        return True
    return (
        request.to_branch_id == actor.branch_id
        or request.created_by_user_id == actor.id
    )


# =========================
# CREATE
# =========================
async def create_request(
    db: AsyncSession,
    payload: RequestCreateSchema,
    actor: User,
) -> RequestOut:
    if has_role(actor, {Role.DRIVER}):
        raise ForbiddenError("Drivers cannot create requests")

    if not actor.branch_id:
        raise ForbiddenError("User is not assigned to a branch")

    if actor.branch_id == MAIN_STORAGE_BRANCH_ID:
        raise ValidationError(
            "Requests must target a branch other than main storage",
            ["branch_id"],
        )

    storage_item = await db.get(Item, (payload.item_id, MAIN_STORAGE_BRANCH_ID))
    if not storage_item:
        raise NotFoundError(
            "Item not found in main storage",
            ErrorCode.ITEM_NOT_FOUND,
        )

    request = TransferRequest(
        id=new_id("REQ"),
        item_id=payload.item_id,
        qty=payload.qty,
        from_branch_id=MAIN_STORAGE_BRANCH_ID,
        to_branch_id=actor.branch_id,
        created_by_user_id=actor.id,
        note=payload.note,
        priority=payload.priority,
        urgent_note=payload.urgent_note,
        image_url=payload.image_url,
        status=RequestStatus.pending,
    )
    db.add(request)
    await db.flush()

    await emit_actor_activity(
        db,
        actor,
        ActivityCode.CREATE_REQUEST,
        target_name=display_id(request.id),
        qty=request.qty,
        item_id=request.item_id,
        branch_id=request.to_branch_id,
    )

    await db.commit()

    logger.info(
        "Request created",
        extra={"request_id": request.id, "to_branch_id": request.to_branch_id},
    )
    return _map_request(request)


# =========================
# ASSIGN (admin / manager)
# =========================
async def assign_request(
    db: AsyncSession,
    request_id: str,
    payload: RequestAssignSchema,
    actor: User,
) -> RequestOut:
    ensure_role(actor, MANAGEMENT_ROLES, "assign drivers")

    driver = await find_user_by_id(db, payload.driver_user_id)
    if not driver:
        raise NotFoundError("Driver not found", ErrorCode.USER_NOT_FOUND)
    if not has_role(driver, {Role.DRIVER}):
        raise ValidationError(
            "Assigned user is not a driver",
            ["driver_user_id"],
            ErrorCode.DRIVER_INVALID,
        )

    request = await _get_request(db, request_id, for_update=True)
    _ensure_not_delivered(request, "assign a driver")

    _assign_driver(request, driver, actor)
    _apply_eta(request, payload.eta, payload.eta_label)

    await emit_actor_activity(
        db,
        actor,
        ActivityCode.ASSIGN_REQUEST,
        target_name=display_id(request.id),
        driver_name=driver.name,
    )

    await db.commit()

    logger.info(
        "Request assigned",
        extra={"request_id": request.id, "driver_user_id": driver.id},
    )
    return _map_request(request)


# =========================
# CLAIM (driver self-service)
# =========================
async def claim_request(
    db: AsyncSession,
    request_id: str,
    payload: RequestClaimSchema,
    actor: User,
) -> RequestOut:
    ensure_role(actor, {Role.DRIVER}, "claim requests")

    request = await _get_request(db, request_id, for_update=True)
    _ensure_not_delivered(request, "claim it")

    if request.driver_user_id and request.driver_user_id != actor.id:
        raise ForbiddenError(
            "Request is assigned to another driver",
            ErrorCode.REQUEST_ASSIGNED_TO_OTHER_DRIVER,
        )

    if request.driver_user_id != actor.id:
        _assign_driver(request, actor, actor)
        await emit_actor_activity(
            db,
            actor,
            ActivityCode.CLAIM_REQUEST,
            target_name=display_id(request.id),
        )

    _apply_eta(request, payload.eta, payload.eta_label)

    await db.commit()
    return _map_request(request)


# =========================
# ETA
# =========================
async def update_request_eta(
    db: AsyncSession,
    request_id: str,
    payload: RequestEtaSchema,
    actor: User,
) -> RequestOut:
    ensure_role(actor, MANAGEMENT_ROLES | {Role.DRIVER}, "update delivery ETA")

    request = await _get_request(db, request_id, for_update=True)
    _ensure_not_delivered(request, "update its ETA")

    if has_role(actor, {Role.DRIVER}):
        if request.driver_user_id is None:
            _assign_driver(request, actor, actor)
            await emit_actor_activity(
                db,
                actor,
                ActivityCode.CLAIM_REQUEST,
                target_name=display_id(request.id),
            )
        elif request.driver_user_id != actor.id:
            raise ForbiddenError(
                "Request is assigned to another driver",
                ErrorCode.REQUEST_ASSIGNED_TO_OTHER_DRIVER,
            )

    _apply_eta(request, payload.eta, payload.eta_label)

    await emit_actor_activity(
        db,
        actor,
        ActivityCode.UPDATE_REQUEST_ETA,
        target_name=display_id(request.id),
        eta=payload.eta_label or payload.eta.isoformat(),
    )

    await db.commit()
    return _map_request(request)


# =========================
# EDIT (capability scoped)
# =========================
def request_edit_permissions(actor: User, request: TransferRequest) -> frozenset[str]:
    """Fields ``actor`` may change on ``request`` in its current state."""
    if request.status == RequestStatus.delivered:
        return frozenset()
    if has_role(actor, MANAGEMENT_ROLES):
        return MANAGEMENT_EDITABLE_FIELDS
    if (
        actor.id == request.created_by_user_id
        and request.status == RequestStatus.pending
    ):
        return CREATOR_EDITABLE_FIELDS
    return frozenset()


def apply_request_edit(
    request: TransferRequest,
    changes: dict,
    allowed: frozenset[str],
) -> dict:
    denied = sorted(set(changes) - allowed)
    if denied:
        raise ForbiddenError(
            f"Not allowed to edit: {', '.join(denied)}",
            ErrorCode.REQUEST_FIELD_NOT_EDITABLE,
        )

    applied = {}
    for field, value in changes.items():
        if getattr(request, field) != value:
            setattr(request, field, value)
            applied[field] = value
    return applied


async def update_request(
    db: AsyncSession,
    request_id: str,
    payload: RequestUpdateSchema,
    actor: User,
) -> RequestOut:
    changes = payload.model_dump(exclude_unset=True, exclude={"actor_user_id"})
    if not changes:
        raise ValidationError("No changes provided")

    nulled = sorted(f for f in NON_NULLABLE_EDIT_FIELDS if f in changes and changes[f] is None)
    if nulled:
        raise ValidationError(f"Cannot clear: {', '.join(nulled)}", nulled)

    request = await _get_request(db, request_id, for_update=True)
    _ensure_not_delivered(request, "edit it")

    applied = apply_request_edit(
        request,
        changes,
        request_edit_permissions(actor, request),
    )

    if applied:
        await emit_actor_activity(
            db,
            actor,
            ActivityCode.UPDATE_REQUEST,
            target_name=display_id(request.id),
            changes=", ".join(sorted(applied)),
        )
        await db.commit()

    return _map_request(request)


# =========================
# CONFIRM / DELIVER
# =========================
async def confirm_request(
    db: AsyncSession,
    request_id: str,
    actor: User,
) -> DeliveryResult:
    ensure_role(actor, RECEIVING_ROLES, "confirm deliveries")

    request = await _get_request(db, request_id)

    if has_role(actor, BRANCH_SCOPED_ROLES) and actor.branch_id != request.to_branch_id:
        raise ForbiddenError("Only the receiving branch can confirm this delivery")

    item_id = request.item_id
    from_branch_id = request.from_branch_id
    to_branch_id = request.to_branch_id

    async with stock_locks.hold([(item_id, from_branch_id), (item_id, to_branch_id)]):
        # Re-read under lock; a racing confirmation may have won
        request = await _get_request(db, request_id, for_update=True)
        _ensure_not_delivered(request, "confirm it again")

        qty = request.qty
        source = ensure_available(
            await lock_item(db, item_id, from_branch_id),
            item_id=item_id,
            branch_id=from_branch_id,
            qty=qty,
        )

        destination = await upsert_item(db, source, to_branch_id, actor)

        out_movement = await apply_movement(
            db,
            item=source,
            movement_type=MovementType.OUT,
            qty=qty,
            actor=actor,
            note=f"Delivery OUT for request {request.id}",
            reference_type=MovementReference.REQUEST,
            reference_id=request.id,
        )
        in_movement = await apply_movement(
            db,
            item=destination,
            movement_type=MovementType.IN,
            qty=qty,
            actor=actor,
            note=f"Delivery IN for request {request.id}",
            reference_type=MovementReference.REQUEST,
            reference_id=request.id,
        )

        request.status = RequestStatus.delivered
        request.received_by_user_id = actor.id
        request.delivered_at = _now()

        await emit_actor_activity(
            db,
            actor,
            ActivityCode.CONFIRM_REQUEST,
            target_name=display_id(request.id),
        )

        await db.commit()

    logger.info(
        "Request delivered",
        extra={"request_id": request.id, "qty": qty, "to_branch_id": to_branch_id},
    )

    return DeliveryResult(
        request=_map_request(request),
        movements=[
            MovementOut.model_validate(out_movement),
            MovementOut.model_validate(in_movement),
        ],
    )


# =========================
# DELETE
# =========================
async def delete_request(
    db: AsyncSession,
    request_id: str,
    actor: User,
) -> None:
    ensure_role(actor, MANAGEMENT_ROLES, "delete requests")

    request = await _get_request(db, request_id, for_update=True)
    if request.status != RequestStatus.pending:
        raise ConflictError(
            "Only pending requests can be deleted",
            ErrorCode.REQUEST_NOT_PENDING,
        )

    await db.delete(request)

    await emit_actor_activity(
        db,
        actor,
        ActivityCode.DELETE_REQUEST,
        target_name=display_id(request_id),
    )

    await db.commit()
    logger.info("Request deleted", extra={"request_id": request_id})


# =========================
# READ
# =========================
async def get_request(
    db: AsyncSession,
    request_id: str,
    actor: User,
) -> RequestOut:
    request = await _get_request(db, request_id)
    if not _can_view(actor, request):
        raise ForbiddenError("Not allowed to view this request")
    return _map_request(request)


async def list_pending_requests(
    db: AsyncSession,
    actor: User,
) -> list[RequestOut]:
    ensure_role(actor, PENDING_VIEW_ROLES, "view pending requests")

    rows = (
        await db.scalars(
            select(TransferRequest)
            .where(TransferRequest.status == RequestStatus.pending)
            .order_by(TransferRequest.created_at.asc())
        )
    ).all()

    return [_map_request(r) for r in rows]


async def list_requests(
    db: AsyncSession,
    actor: User,
    *,
    status: RequestStatus | None,
    page: int,
    page_size: int,
) -> RequestListData:
    filters = []
    if status:
        filters.append(TransferRequest.status == status)

    if not has_role(actor, PENDING_VIEW_ROLES):
        if not actor.branch_id:
            return RequestListData(total=0, items=[])
        filters.append(TransferRequest.to_branch_id == actor.branch_id)

    total = await db.scalar(
        select(func.count()).select_from(TransferRequest).where(*filters)
    )

    rows = (
        await db.scalars(
            select(TransferRequest)
            .where(*filters)
            .order_by(TransferRequest.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).all()

    return RequestListData(
        total=total or 0,
        items=[_map_request(r) for r in rows],
    )


async def load_delivered_request(
    db: AsyncSession,
    request_id: str,
    actor: User,
) -> TransferRequest:
    request = await _get_request(db, request_id)
    if not _can_view(actor, request):
        raise ForbiddenError("Not allowed to view this request")
    if request.status != RequestStatus.delivered:
        raise ConflictError(
            "Delivery note is only available for delivered requests",
            ErrorCode.REQUEST_NOT_DELIVERED,
        )
    return request
