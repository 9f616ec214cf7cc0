# rentaldesk/modules/agreements/services.py

from fastapi import Depends, HTTPException, status
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from rentaldesk.core.config import settings
from rentaldesk.core.counters import CounterService
from rentaldesk.core.database import get_database
from rentaldesk.models.agreements import AgreementCreateAPI
from rentaldesk.modules.backups.services import BackupService, get_backup_service, schedule_agreement_backup

from .models import AgreementCreateInternal, AgreementInDB
from .repository import AgreementRepository

AGREEMENT_PREFIX = "AGR"


class AgreementService:
    """Business logic for rental agreements."""

    def __init__(self, agreement_repo: AgreementRepository, counters: CounterService, backups: BackupService):
        self.agreement_repo = agreement_repo
        self.counters = counters
        self.backups = backups

    async def create_agreement(self, agreement_in: AgreementCreateAPI) -> AgreementInDB:
        """
        Persists a new agreement under the next agreement number, then hands the
        PDF/JSON backup off as a detached task. The response never waits on it.
        """
        log = logger.bind(renter_name=agreement_in.renter_name)
        log.info("Service: creating rental agreement...")

        try:
            agreement_number = await self.counters.generate_reference(AGREEMENT_PREFIX)
            data = agreement_in.model_dump(by_alias=False)
            data["sales_tax"] = data["sales_tax"] or settings.DEFAULT_SALES_TAX
            data["state_sales_tax"] = data["state_sales_tax"] or settings.DEFAULT_STATE_SALES_TAX
            data["fuel_charges"] = data["fuel_charges"] or settings.DEFAULT_FUEL_CHARGES
            internal = AgreementCreateInternal(**data, agreement_number=agreement_number, status="Active")
            created = await self.agreement_repo.create(internal)
        except RuntimeError as e:
            log.exception(f"Failed to create agreement: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create agreement")

        log.bind(agreement_number=created.agreement_number).success(f"Agreement ID {created.id} created.")
        schedule_agreement_backup(self.backups, created)
        return created


async def sync_agreement_counter(db: AsyncIOMotorDatabase) -> int:
    """Moves the agreement sequence past any number already stored."""
    highest = await AgreementRepository(db).highest_agreement_sequence()
    if highest:
        await CounterService(db).seed(AGREEMENT_PREFIX, highest)
        logger.info(f"Agreement counter synced to {AGREEMENT_PREFIX}-{highest:03d}")
    return highest


def get_agreement_service(
    db: AsyncIOMotorDatabase = Depends(get_database),
    backups: BackupService = Depends(get_backup_service),
) -> AgreementService:
    return AgreementService(AgreementRepository(db), CounterService(db), backups)
