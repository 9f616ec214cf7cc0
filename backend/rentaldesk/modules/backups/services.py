# rentaldesk/modules/backups/services.py

import asyncio
import csv
import io
from datetime import datetime
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple
from zoneinfo import ZoneInfo

from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from rentaldesk.core.config import settings
from rentaldesk.core.database import get_database
from rentaldesk.core.repository import utcnow
from rentaldesk.models.backups import BackupStatus
from rentaldesk.modules.agreements.models import AgreementInDB
from rentaldesk.modules.agreements.repository import AgreementRepository
from rentaldesk.modules.vehicles.models import VehicleInDB
from rentaldesk.modules.vehicles.repository import VehicleRepository

from .errors import ArtifactGenerationError, BackupFileNotFound, TerminalBackupFailure
from .metadata import BackupMetadataRepository, MetadataRecorder
from .models import AgreementBackupResult, DatabaseDump, DumpMetadata, DumpTable
from .pdf import render_agreement_pdf
from .storage import BackupStore

# (header title, vehicle attribute), in file order
VEHICLE_CSV_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("ID", "id"),
    ("Make", "make"),
    ("Model", "model"),
    ("Year", "year"),
    ("License Plate", "plate"),
    ("VIN", "vin"),
    ("Status", "status"),
    ("Type", "type"),
    ("Color", "color"),
    ("Mileage", "mileage"),
    ("Created At", "created_at"),
    ("Updated At", "updated_at"),
)

DUMP_VERSION = "1.0"

# Detached agreement backups; held here so they are not garbage collected mid-flight
_background_backups: Set[asyncio.Task] = set()


def _csv_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def build_vehicle_csv(vehicles: Iterable[VehicleInDB]) -> str:
    """Header line plus one line per vehicle."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([title for title, _ in VEHICLE_CSV_COLUMNS])
    for vehicle in vehicles:
        writer.writerow([_csv_cell(getattr(vehicle, attr)) for _, attr in VEHICLE_CSV_COLUMNS])
    return buffer.getvalue()


class BackupService:
    """
    Coordinates artifact generation, the backup store and metadata recording.

    Agreement backups retry with linear backoff (`retry_delay * attempt` between
    attempts). Fleet exports and dumps are single-shot and propagate failures.
    """

    def __init__(
        self,
        store: BackupStore,
        metadata_repo: BackupMetadataRepository,
        agreement_repo: AgreementRepository,
        vehicle_repo: VehicleRepository,
        *,
        recorder: Optional[MetadataRecorder] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        tz: Optional[ZoneInfo] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.metadata_repo = metadata_repo
        self.agreement_repo = agreement_repo
        self.vehicle_repo = vehicle_repo
        self.recorder = recorder or MetadataRecorder(metadata_repo)
        self.max_attempts = max_attempts if max_attempts is not None else settings.BACKUP_MAX_ATTEMPTS
        self.retry_delay = retry_delay if retry_delay is not None else settings.BACKUP_RETRY_DELAY_SECONDS
        self._sleep = sleep
        self.tz = tz or settings.timezone
        self._clock = clock

    def _local_now(self) -> datetime:
        return self._clock().astimezone(self.tz)

    # --- Agreements ---

    async def save_agreement_backup(self, agreement: AgreementInDB) -> AgreementBackupResult:
        """
        Writes <base>.pdf and <base>.json for an agreement, retrying on I/O failure.

        Exactly one terminal outcome is recorded: two `success` rows (pdf + json)
        or a single `failed` row.

        Raises:
            ArtifactGenerationError: the PDF could not be rendered (not retried).
            TerminalBackupFailure: every attempt failed.
        """
        log = logger.bind(agreement_id=agreement.id, agreement_number=agreement.agreement_number)

        try:
            pdf_bytes = await asyncio.to_thread(render_agreement_pdf, agreement, tz=self.tz)
        except ArtifactGenerationError as e:
            log.error(f"Cannot render agreement PDF: {e}")
            await self.recorder.record(agreement.id, "pdf", "", 0, "failed", str(e))
            raise
        json_text = agreement.model_dump_json(indent=2)

        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            attempt_log = log.bind(attempt=attempt)
            try:
                base_path = self.store.path_for(
                    "agreement",
                    when=self._local_now(),
                    agreement_number=agreement.agreement_number,
                    renter_name=agreement.renter_name,
                )
                pdf_path = f"{base_path}.pdf"
                json_path = f"{base_path}.json"
                pdf_size = await asyncio.to_thread(self.store.write, pdf_path, pdf_bytes)
                json_size = await asyncio.to_thread(self.store.write, json_path, json_text)
            except Exception as e:
                last_error = e
                attempt_log.warning(f"Backup attempt {attempt} failed: {e}")
                if attempt < self.max_attempts:
                    await self._sleep(self.retry_delay * attempt)
                continue

            await self.recorder.record(agreement.id, "pdf", pdf_path, pdf_size, "success")
            await self.recorder.record(agreement.id, "json", json_path, json_size, "success")
            attempt_log.success(f"Agreement backup saved on attempt {attempt}: {base_path}")
            return AgreementBackupResult(pdf_path=pdf_path, json_path=json_path, attempts=attempt)

        message = f"Failed to save backup after {self.max_attempts} attempts: {last_error}"
        await self.recorder.record(agreement.id, "pdf", "", 0, "failed", message)
        log.error(message)
        raise TerminalBackupFailure(message, attempts=self.max_attempts, last_error=last_error)

    async def get_agreement_pdf(self, agreement_id: str) -> Tuple[bytes, str]:
        """Bytes and download filename of the latest successful PDF backup."""
        row = await self.metadata_repo.latest_success(agreement_id, "pdf")
        if not row or not row.file_path:
            raise BackupFileNotFound(f"No PDF backup recorded for agreement {agreement_id}")
        data = await asyncio.to_thread(self.store.read, row.file_path)
        return data, PurePosixPath(row.file_path).name

    # --- Fleet-wide ---

    async def export_vehicles_to_csv(self) -> str:
        """Writes today's vehicle export and returns its root-relative path."""
        path = ""
        try:
            vehicles = await self.vehicle_repo.list_all()
            content = build_vehicle_csv(vehicles)
            path = self.store.path_for("csv", when=self._local_now())
            size = await asyncio.to_thread(self.store.write, path, content)
        except Exception as e:
            logger.error(f"Error exporting vehicles: {e}")
            await self.recorder.record(None, "csv", "", 0, "failed", str(e))
            raise
        await self.recorder.record(None, "csv", path, size, "success")
        logger.info(f"Vehicle export completed: {path} ({len(vehicles)} vehicles, {size} bytes)")
        return path

    async def build_database_dump(self) -> DatabaseDump:
        agreements = await self.agreement_repo.list_all()
        vehicles = await self.vehicle_repo.list_all()
        backups = await self.metadata_repo.list_all()

        tables: Dict[str, DumpTable] = {
            "rental_agreements": DumpTable(count=len(agreements), records=[a.model_dump(mode="json") for a in agreements]),
            "vehicles": DumpTable(count=len(vehicles), records=[v.model_dump(mode="json") for v in vehicles]),
            "backup_metadata": DumpTable(count=len(backups), records=[b.model_dump(mode="json") for b in backups]),
        }
        now = self._clock()
        return DatabaseDump(
            timestamp=now,
            version=DUMP_VERSION,
            tables=tables,
            metadata=DumpMetadata(
                backup_date=now,
                total_records=sum(t.count for t in tables.values()),
                tables_backed_up=list(tables),
            ),
        )

    async def perform_database_backup(self) -> str:
        """Writes a full JSON dump of the tracked collections and returns its path."""
        try:
            dump = await self.build_database_dump()
            path = self.store.path_for("database-dump", when=self._local_now())
            size = await asyncio.to_thread(self.store.write, path, dump.model_dump_json(indent=2))
        except Exception as e:
            logger.error(f"Error performing database backup: {e}")
            await self.recorder.record(None, "database-dump", "", 0, "failed", str(e))
            raise
        await self.recorder.record(None, "database-dump", path, size, "success")
        logger.info(f"Database backup completed: {path} ({dump.metadata.total_records} records)")
        return path

    # --- Reporting ---

    async def get_backup_status(self) -> BackupStatus:
        recent = await self.metadata_repo.list_recent(10)
        total = await self.metadata_repo.count()
        failed = await self.metadata_repo.count_failed()

        disk_usage = 0
        try:
            disk_usage = await asyncio.to_thread(self.store.directory_size_bytes)
        except OSError as e:
            logger.warning(f"Could not calculate disk usage: {e}")

        return BackupStatus(
            total_backups=total,
            failed_backups=failed,
            recent_backups=recent,
            disk_usage_bytes=disk_usage,
            disk_usage_mb=f"{disk_usage / 1024 / 1024:.2f}",
            backup_path=str(self.store.root),
        )


async def _run_agreement_backup(service: BackupService, agreement: AgreementInDB) -> None:
    try:
        await service.save_agreement_backup(agreement)
    except Exception as e:
        # Never surfaces to the request that created the agreement
        logger.bind(agreement_number=agreement.agreement_number).error(f"Agreement backup abandoned: {e}")


def schedule_agreement_backup(service: BackupService, agreement: AgreementInDB) -> asyncio.Task:
    """Starts the agreement backup detached from the caller and returns the task."""
    task = asyncio.create_task(
        _run_agreement_backup(service, agreement),
        name=f"agreement-backup-{agreement.agreement_number}",
    )
    _background_backups.add(task)
    task.add_done_callback(_background_backups.discard)
    return task


def pending_agreement_backups() -> List[asyncio.Task]:
    return list(_background_backups)


# --- Dependencies ---

def get_backup_store() -> BackupStore:
    return BackupStore(settings.BACKUP_PATH)


def build_backup_service(db: AsyncIOMotorDatabase, store: Optional[BackupStore] = None) -> BackupService:
    """Wires a BackupService onto one database handle (API requests and worker tasks)."""
    return BackupService(
        store or get_backup_store(),
        BackupMetadataRepository(db),
        AgreementRepository(db),
        VehicleRepository(db),
    )


def get_backup_service(
    db: AsyncIOMotorDatabase = Depends(get_database),
    store: BackupStore = Depends(get_backup_store),
) -> BackupService:
    """FastAPI dependency to get a BackupService instance."""
    return build_backup_service(db, store)
