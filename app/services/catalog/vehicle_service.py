from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.exceptions import ConflictError, NotFoundError
from app.constants.activity_codes import ActivityCode
from app.constants.error_codes import ErrorCode
from app.constants.roles import MANAGEMENT_ROLES
from app.models.catalog.branch_models import Branch
from app.models.fleet.vehicle_models import Vehicle
from app.models.users.user_models import User
from app.schemas.catalog.vehicle_schemas import VehicleCreateSchema, VehicleOut
from app.utils.activity_helpers import emit_actor_activity
from app.utils.check_roles import ensure_role
from app.utils.ids import new_id


async def create_vehicle(db: AsyncSession, payload: VehicleCreateSchema, actor: User) -> VehicleOut:
    ensure_role(actor, MANAGEMENT_ROLES, "register vehicles")

    plate = payload.plate.strip().upper()
    if await db.scalar(select(Vehicle.id).where(Vehicle.plate == plate)):
        raise ConflictError("Vehicle plate already registered", ErrorCode.VEHICLE_PLATE_EXISTS)

    if payload.branch_id and not await db.get(Branch, payload.branch_id):
        raise NotFoundError("Branch not found", ErrorCode.BRANCH_NOT_FOUND)

    vehicle = Vehicle(
        id=new_id("VEH"),
        plate=plate,
        name=payload.name,
        branch_id=payload.branch_id,
        created_by_id=actor.id,
    )
    db.add(vehicle)
    await db.flush()

    await emit_actor_activity(db, actor, ActivityCode.CREATE_VEHICLE, target_name=plate)

    await db.commit()
    return VehicleOut.model_validate(vehicle)


async def list_vehicles(db: AsyncSession) -> list[VehicleOut]:
    rows = (await db.scalars(select(Vehicle).order_by(Vehicle.plate))).all()
    return [VehicleOut.model_validate(v) for v in rows]
