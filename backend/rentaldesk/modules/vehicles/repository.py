# rentaldesk/modules/vehicles/repository.py

from typing import List

from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from rentaldesk.core.database import get_database
from rentaldesk.core.repository import BaseRepository

from .models import VehicleInDB

COLLECTION_NAME = "vehicles"


class VehicleRepository(BaseRepository[VehicleInDB]):
    model = VehicleInDB
    collection_name = COLLECTION_NAME

    async def create_indexes(self):
        try:
            await self.collection.create_index("plate", unique=True)
            await self.collection.create_index("status")
            await self.collection.create_index([("created_at", DESCENDING)])
            logger.info(f"Indexes created/verified for collection: {self.collection_name}")
        except Exception as e:
            logger.exception(f"Error creating indexes for {self.collection_name}: {e}")

    async def list_all(self) -> List[VehicleInDB]:
        """Whole fleet, newest first."""
        return await self.list_by(limit=0, sort=[("created_at", DESCENDING)])


def get_vehicle_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> VehicleRepository:
    """FastAPI dependency to get VehicleRepository instance."""
    return VehicleRepository(db)
