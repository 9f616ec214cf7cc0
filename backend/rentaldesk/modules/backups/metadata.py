# rentaldesk/modules/backups/metadata.py

from typing import List, Optional

from loguru import logger
from pymongo import DESCENDING

from rentaldesk.core.repository import BaseRepository, utcnow

from .models import BACKUP_KINDS, BACKUP_STATUSES, BackupMetadataCreateInternal, BackupMetadataInDB

COLLECTION_NAME = "backup_metadata"


class BackupMetadataRepository(BaseRepository[BackupMetadataInDB]):
    model = BackupMetadataInDB
    collection_name = COLLECTION_NAME

    async def create_indexes(self):
        try:
            await self.collection.create_index([("backup_date", DESCENDING)])
            await self.collection.create_index([("agreement_id", 1), ("backup_type", 1), ("backup_status", 1)])
            logger.info(f"Indexes created/verified for collection: {self.collection_name}")
        except Exception as e:
            logger.exception(f"Error creating indexes for {self.collection_name}: {e}")

    async def list_recent(self, limit: int = 10) -> List[BackupMetadataInDB]:
        return await self.list_by(limit=limit, sort=[("backup_date", DESCENDING)])

    async def list_all(self) -> List[BackupMetadataInDB]:
        return await self.list_by(limit=0, sort=[("created_at", DESCENDING)])

    async def count_failed(self) -> int:
        return await self.count({"backup_status": "failed"})

    async def latest_success(self, agreement_id: str, backup_type: BACKUP_KINDS = "pdf") -> Optional[BackupMetadataInDB]:
        """Most recent successful backup row of a kind for one agreement."""
        return await self.get_by(
            {"agreement_id": agreement_id, "backup_type": backup_type, "backup_status": "success"},
            sort=[("backup_date", DESCENDING)],
        )


class MetadataRecorder:
    """
    Appends one metadata row per backup attempt outcome.

    Recording is best-effort: a failing insert is logged and swallowed so it can
    never change the outcome of the backup it describes.
    """

    def __init__(self, repository: BackupMetadataRepository):
        self.repository = repository

    async def record(
        self,
        agreement_id: Optional[str],
        kind: BACKUP_KINDS,
        file_path: str,
        file_size: int,
        status: BACKUP_STATUSES,
        error_message: Optional[str] = None,
    ) -> Optional[BackupMetadataInDB]:
        log = logger.bind(agreement_id=agreement_id, kind=kind, backup_status=status)
        try:
            row = BackupMetadataCreateInternal(
                agreement_id=agreement_id,
                backup_type=kind,
                file_path=file_path,
                file_size=file_size,
                backup_status=status,
                error_message=error_message,
                verified=status == "success",
                backup_date=utcnow(),
            )
            created = await self.repository.create(row)
            log.debug(f"Backup metadata recorded for {file_path or '<no file>'}")
            return created
        except Exception as e:
            log.error(f"Failed to record backup metadata: {e}")
            return None
