# rentaldesk/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from rentaldesk.api.router import api_router
from rentaldesk.core.config import settings
from rentaldesk.core.database import mongo_manager
from rentaldesk.core.logging_config import add_backup_log_sink, add_trace_id_middleware, setup_logging
from rentaldesk.modules.agreements.repository import AgreementRepository
from rentaldesk.modules.agreements.services import sync_agreement_counter
from rentaldesk.modules.backups.metadata import BackupMetadataRepository
from rentaldesk.modules.backups.services import get_backup_store, pending_agreement_backups
from rentaldesk.modules.vehicles.repository import VehicleRepository


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME}...")

    # Without a writable backup root the service must not come up
    store = get_backup_store()
    store.ensure_directories()
    add_backup_log_sink(store.logs_dir)

    await mongo_manager.connect()
    db = mongo_manager.get_db()
    for repo_cls in (VehicleRepository, AgreementRepository, BackupMetadataRepository):
        await repo_cls(db).create_indexes()
    await sync_agreement_counter(db)

    yield

    logger.info("Shutting down...")
    pending = pending_agreement_backups()
    if pending:
        logger.info(f"Waiting for {len(pending)} agreement backup(s) to finish...")
        for task in pending:
            try:
                await task
            except Exception as e:
                logger.error(f"Agreement backup task ended with error during shutdown: {e}")
    await mongo_manager.disconnect()


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_trace_id_middleware)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
