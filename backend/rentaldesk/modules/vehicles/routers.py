# rentaldesk/modules/vehicles/routers.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from loguru import logger

from rentaldesk.models.api_common import DetailResponse, SuccessResponse

from .models import VehicleCreateInternal, VehicleInDB, VehicleUpdateInternal
from .repository import VehicleRepository, get_vehicle_repository

vehicles_router = APIRouter()


@vehicles_router.get(
    "",
    response_model=List[VehicleInDB],
    summary="List the fleet, newest first",
    tags=["Vehicles"],
)
async def list_vehicles_endpoint(vehicle_repo: VehicleRepository = Depends(get_vehicle_repository)):
    return await vehicle_repo.list_all()


@vehicles_router.post(
    "",
    response_model=VehicleInDB,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": DetailResponse}},
    summary="Add a vehicle",
    tags=["Vehicles"],
)
async def create_vehicle_endpoint(
    vehicle_in: VehicleCreateInternal,
    vehicle_repo: VehicleRepository = Depends(get_vehicle_repository),
):
    log = logger.bind(plate=vehicle_in.plate)
    try:
        created = await vehicle_repo.create(vehicle_in)
    except ValueError as e:
        log.warning(f"Vehicle rejected: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    log.success(f"Vehicle ID {created.id} created.")
    return created


@vehicles_router.put(
    "/{vehicle_id}",
    response_model=VehicleInDB,
    responses={400: {"model": DetailResponse}, 404: {"model": DetailResponse}},
    summary="Update a vehicle",
    tags=["Vehicles"],
)
async def update_vehicle_endpoint(
    vehicle_update: VehicleUpdateInternal,
    vehicle_id: str = Path(..., description="Vehicle ID"),
    vehicle_repo: VehicleRepository = Depends(get_vehicle_repository),
):
    try:
        updated = await vehicle_repo.update(vehicle_id, vehicle_update)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return updated


@vehicles_router.delete(
    "/{vehicle_id}",
    response_model=SuccessResponse,
    responses={404: {"model": DetailResponse}},
    summary="Remove a vehicle",
    tags=["Vehicles"],
)
async def delete_vehicle_endpoint(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    vehicle_repo: VehicleRepository = Depends(get_vehicle_repository),
):
    if not await vehicle_repo.delete(vehicle_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return SuccessResponse()
