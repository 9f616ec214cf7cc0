# rentaldesk/worker/tasks_backup.py
"""
Scheduled fleet-wide backups. Each run opens its own Mongo connection and
never raises: a failed night is logged and beat keeps its schedule.
"""
import asyncio
import uuid
from typing import Awaitable, Callable, Dict, Optional

from loguru import logger

from rentaldesk.core.database import MongoDbContext
from rentaldesk.core.logging_config import trace_id_var
from rentaldesk.modules.backups.services import BackupService, build_backup_service
from rentaldesk.worker.celery_app import celery_app


async def _run_with_service(operation: Callable[[BackupService], Awaitable[str]]) -> str:
    async with MongoDbContext() as mongo:
        service = build_backup_service(mongo.get_db())
        service.store.ensure_directories()
        return await operation(service)


def _run_backup_job(task_name: str, operation: Callable[[BackupService], Awaitable[str]], trace_id: Optional[str]) -> Dict[str, str]:
    current_trace_id = trace_id or f"task_{uuid.uuid4().hex[:12]}"
    token = trace_id_var.set(current_trace_id)
    log = logger.bind(trace_id=current_trace_id, task_name=task_name)
    log.info("Scheduled backup starting...")
    try:
        file_path = asyncio.run(_run_with_service(operation))
        log.success(f"Scheduled backup finished: {file_path}")
        return {"status": "success", "file_path": file_path}
    except Exception as e:
        log.exception(f"Scheduled backup failed: {e}")
        return {"status": "failed", "error": str(e)}
    finally:
        trace_id_var.reset(token)


@celery_app.task(bind=True, name="backup.export_vehicles", acks_late=True)
def export_vehicles_task(self, trace_id: Optional[str] = None) -> Dict[str, str]:
    """Daily CSV export of the whole fleet."""
    return _run_backup_job(self.name, lambda service: service.export_vehicles_to_csv(), trace_id)


@celery_app.task(bind=True, name="backup.database_dump", acks_late=True)
def database_dump_task(self, trace_id: Optional[str] = None) -> Dict[str, str]:
    """Daily JSON dump of agreements, vehicles and backup metadata."""
    return _run_backup_job(self.name, lambda service: service.perform_database_backup(), trace_id)
