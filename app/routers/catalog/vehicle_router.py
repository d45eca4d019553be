from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.catalog.vehicle_schemas import VehicleCreateSchema
from app.services.catalog.vehicle_service import create_vehicle, list_vehicles
from app.utils.get_user import get_actor, get_query_actor
from app.utils.response import APIResponse, success_response

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.post("/", response_model=APIResponse)
async def create_vehicle_api(
    payload: VehicleCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    actor = await get_actor(db, payload.actor_user_id)
    vehicle = await create_vehicle(db, payload, actor)
    return success_response("Vehicle created successfully", vehicle)


@router.get("/", response_model=APIResponse)
async def list_vehicles_api(
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_query_actor),
):
    return success_response("Vehicles fetched", await list_vehicles(db))
