# rentaldesk/api/endpoints/status.py
import asyncio
import os
import time as process_time
import uuid
from datetime import datetime, timezone
from typing import Dict, Literal, Optional

from celery.exceptions import OperationalError as CeleryOperationalError
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi import status as http_status
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field

from rentaldesk.core.database import get_database
from rentaldesk.core.logging_config import trace_id_var
from rentaldesk.modules.backups.services import get_backup_store
from rentaldesk.modules.backups.storage import BackupStore
from rentaldesk.worker.celery_app import celery_app


class ComponentStatus(BaseModel):
    status: Literal["ok", "error", "unavailable"] = "ok"
    message: Optional[str] = None


class HealthCheckResponse(BaseModel):
    overall_status: Literal["ok", "error"] = "ok"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = Field(..., description="Process uptime in seconds")
    components: Dict[str, ComponentStatus]


PROCESS_START_TIME = process_time.monotonic()

router = APIRouter()


def get_optional_database() -> Optional[AsyncIOMotorDatabase]:
    try:
        return get_database()
    except HTTPException:
        return None


def ping_celery_workers() -> Optional[dict]:
    """Blocking broker round-trip; returns worker replies or None."""
    return celery_app.control.inspect(timeout=1.5).ping()


@router.get(
    "/healthcheck",
    response_model=HealthCheckResponse,
    tags=["Status & Health"],
    summary="Application Health and Component Status Check",
)
async def get_application_health(
    db: Optional[AsyncIOMotorDatabase] = Depends(get_optional_database),
    store: BackupStore = Depends(get_backup_store),
):
    trace_id = trace_id_var.get() or f"health_{uuid.uuid4().hex[:8]}"
    log = logger.bind(trace_id=trace_id, api_endpoint="/healthcheck GET")
    log.info("Performing application health check...")

    component_statuses: Dict[str, ComponentStatus] = {}
    critical_ok = True

    if db is not None:
        try:
            await db.command("ping")
            component_statuses["database_mongodb"] = ComponentStatus(status="ok")
            log.debug("MongoDB ping successful.")
        except Exception as e:
            err_msg = f"MongoDB connection check failed: {e}"
            log.error(err_msg)
            component_statuses["database_mongodb"] = ComponentStatus(status="error", message=err_msg)
            critical_ok = False
    else:
        log.error("MongoDB connection not available.")
        component_statuses["database_mongodb"] = ComponentStatus(status="error", message="DB Client not available")
        critical_ok = False

    if store.root.is_dir() and os.access(store.root, os.W_OK):
        component_statuses["backup_root"] = ComponentStatus(status="ok", message=str(store.root))
    else:
        log.error(f"Backup root {store.root} is missing or not writable.")
        component_statuses["backup_root"] = ComponentStatus(status="error", message=f"{store.root} not writable")
        critical_ok = False

    celery_status = ComponentStatus(status="unavailable", message="Check not run or failed.")
    try:
        ping_results = await asyncio.to_thread(ping_celery_workers)
        if ping_results:
            celery_status = ComponentStatus(status="ok", message=f"{len(ping_results)} worker(s) responded.")
            log.debug("Celery worker ping successful.")
        else:
            celery_status = ComponentStatus(status="unavailable", message="No workers responded to ping.")
    except CeleryOperationalError as e:
        log.error(f"Celery broker connection error during ping: {e}")
        celery_status = ComponentStatus(status="error", message="Broker connection error")
        critical_ok = False
    except Exception as e:
        log.error(f"Celery worker check failed unexpectedly: {e}")
        celery_status = ComponentStatus(status="error", message="Ping check error")

    component_statuses["celery_workers"] = celery_status

    uptime_seconds = process_time.monotonic() - PROCESS_START_TIME
    overall_status: Literal["ok", "error"] = "ok" if critical_ok else "error"

    response_payload = HealthCheckResponse(
        overall_status=overall_status,
        uptime_seconds=uptime_seconds,
        components=component_statuses,
    )

    status_code = http_status.HTTP_200_OK if critical_ok else http_status.HTTP_503_SERVICE_UNAVAILABLE
    return Response(
        content=response_payload.model_dump_json(exclude_none=True),
        status_code=status_code,
        media_type="application/json",
    )
