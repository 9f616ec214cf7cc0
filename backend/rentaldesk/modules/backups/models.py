# rentaldesk/modules/backups/models.py

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from rentaldesk.core.repository import PyObjectId

BACKUP_KINDS = Literal["pdf", "json", "csv", "database-dump"]
BACKUP_STATUSES = Literal["pending", "success", "failed"]


class BackupMetadataCreateInternal(BaseModel):
    agreement_id: Optional[str] = None
    backup_type: BACKUP_KINDS
    file_path: str = ""
    file_size: int = 0
    backup_status: BACKUP_STATUSES
    error_message: Optional[str] = None
    verified: bool = False
    backup_date: datetime


class BackupMetadataInDB(BackupMetadataCreateInternal):
    id: PyObjectId = Field(..., validation_alias=AliasChoices("_id", "id"))
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class AgreementBackupResult(BaseModel):
    pdf_path: str
    json_path: str
    attempts: int


class DumpTable(BaseModel):
    count: int
    records: List[Dict[str, Any]]


class DumpMetadata(BaseModel):
    backup_date: datetime
    total_records: int
    tables_backed_up: List[str]


class DatabaseDump(BaseModel):
    """Envelope written to database-dumps/full_backup_<date>.json."""

    timestamp: datetime
    version: str = "1.0"
    tables: Dict[str, DumpTable]
    metadata: DumpMetadata
