# rentaldesk/models/backups.py

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from rentaldesk.modules.backups.models import BackupMetadataInDB


class BackupStatus(BaseModel):
    """Snapshot of backup activity and disk usage under the backup root."""
    total_backups: int = Field(..., alias="totalBackups")
    failed_backups: int = Field(..., alias="failedBackups")
    recent_backups: List[BackupMetadataInDB] = Field(default_factory=list, alias="recentBackups")
    disk_usage_bytes: int = Field(..., alias="diskUsageBytes")
    disk_usage_mb: str = Field(..., alias="diskUsageMB", description="Megabytes, two decimals")
    backup_path: str = Field(..., alias="backupPath")

    model_config = ConfigDict(populate_by_name=True)
