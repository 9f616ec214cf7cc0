# rentaldesk/worker/celery_app.py
from pathlib import Path

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging

from rentaldesk.core.config import settings
from rentaldesk.core.logging_config import add_backup_log_sink, setup_logging

celery_app = Celery(
    "rentaldesk_tasks",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "rentaldesk.worker.tasks_backup",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Beat fires on the business's wall clock, DST included
    timezone=settings.BACKUP_TIMEZONE,
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "daily-vehicle-export": {
            "task": "backup.export_vehicles",
            "schedule": crontab(hour=settings.VEHICLE_EXPORT_HOUR, minute=0),
            "options": {"queue": "periodic"},
        },
        "daily-database-backup": {
            "task": "backup.database_dump",
            "schedule": crontab(hour=settings.DATABASE_BACKUP_HOUR, minute=0),
            "options": {"queue": "periodic"},
        },
    },
)


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    """Keeps celery from installing its own handlers; worker output goes through loguru."""
    setup_logging()
    add_backup_log_sink(Path(settings.BACKUP_PATH) / "logs")
