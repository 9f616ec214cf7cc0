# rentaldesk/modules/agreements/repository.py

import re
from typing import List, Optional

from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from rentaldesk.core.database import get_database
from rentaldesk.core.repository import BaseRepository, utcnow

from .models import AGREEMENT_STATUSES, AgreementInDB

COLLECTION_NAME = "rental_agreements"
_AGREEMENT_NUMBER = re.compile(r"AGR-(\d+)")


class AgreementRepository(BaseRepository[AgreementInDB]):
    model = AgreementInDB
    collection_name = COLLECTION_NAME

    async def create_indexes(self):
        """Creates indexes for agreement lookups."""
        try:
            await self.collection.create_index("agreement_number", unique=True)
            await self.collection.create_index("status")
            await self.collection.create_index([("created_at", DESCENDING)])
            logger.info(f"Indexes created/verified for collection: {self.collection_name}")
        except Exception as e:
            logger.exception(f"Error creating indexes for {self.collection_name}: {e}")

    async def list_all(self, skip: int = 0, limit: int = 0) -> List[AgreementInDB]:
        return await self.list_by(skip=skip, limit=limit, sort=[("created_at", DESCENDING)])

    async def highest_agreement_sequence(self) -> int:
        """Numeric suffix of the most recently created agreement number, 0 if none."""
        latest: Optional[AgreementInDB] = await self.get_by({}, sort=[("created_at", DESCENDING)])
        if not latest:
            return 0
        match = _AGREEMENT_NUMBER.match(latest.agreement_number)
        return int(match.group(1)) if match else 0

    async def update_status(self, agreement_id: str, status: Optional[AGREEMENT_STATUSES]) -> Optional[AgreementInDB]:
        """Only status (and updated_at) may change after creation. A blank status just touches updated_at."""
        return await self.update(agreement_id, {"status": status} if status else {"updated_at": utcnow()})


def get_agreement_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> AgreementRepository:
    """FastAPI dependency to get AgreementRepository instance."""
    return AgreementRepository(db)
