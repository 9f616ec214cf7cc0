# rentaldesk/api/router.py
from fastapi import APIRouter

from rentaldesk.api.endpoints import status
from rentaldesk.modules.agreements.routers import agreements_router
from rentaldesk.modules.backups.routers import backups_router
from rentaldesk.modules.vehicles.routers import vehicles_router

api_router = APIRouter()

api_router.include_router(status.router)
api_router.include_router(vehicles_router, prefix="/vehicles")
api_router.include_router(agreements_router, prefix="/agreements")
api_router.include_router(backups_router)
