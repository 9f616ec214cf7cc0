# rentaldesk/core/database.py

from contextlib import AbstractAsyncContextManager
from typing import Optional, cast

import motor.motor_asyncio
from fastapi import HTTPException, status
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from rentaldesk.core.config import settings

DEFAULT_DB_NAME = "rentaldesk"


def _db_name_from_uri(uri: str) -> str:
    uri_path = uri.rsplit("/", 1)[-1]
    db_name = uri_path.split("?")[0]
    if not db_name or "@" in db_name or ":" in db_name or len(db_name) > 63:
        logger.warning(f"Could not parse DB name from URI, using default: {DEFAULT_DB_NAME}")
        return DEFAULT_DB_NAME
    return db_name


class MongoDbContext(AbstractAsyncContextManager):
    """Owns one motor client. Usable as `async with MongoDbContext(): ...` from worker processes."""

    def __init__(self, uri: Optional[str] = None):
        self.uri = uri or settings.MONGODB_URI
        self.client: Optional[motor.motor_asyncio.AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def connect(self):
        """Establishes and verifies the connection to MongoDB."""
        if self.client is not None and self.db is not None:
            logger.info("MongoDB connection already established.")
            return

        logger.info("Connecting to MongoDB...")
        try:
            self.client = motor.motor_asyncio.AsyncIOMotorClient(
                self.uri,
                uuidRepresentation="standard",
                serverSelectionTimeoutMS=5000,
                tz_aware=True,
            )
            await self.client.admin.command("ping")
            db_name = _db_name_from_uri(self.uri)
            self.db = self.client[db_name]
            logger.success(f"MongoDB connection successful to database '{db_name}'.")
        except Exception as e:
            logger.critical(f"FATAL: Failed to connect to MongoDB: {e}")
            self.client = None
            self.db = None
            raise ConnectionError(f"MongoDB connection failed: {e}") from e

    async def disconnect(self):
        """Closes the MongoDB connection."""
        if self.client is not None:
            logger.info("Closing MongoDB connection...")
            try:
                self.client.close()
                logger.info("MongoDB connection closed.")
            finally:
                self.client = None
                self.db = None

    def get_db(self) -> AsyncIOMotorDatabase:
        """Returns the database instance, raising if not connected."""
        if self.db is None:
            logger.critical("Attempted to get MongoDB instance, but it's not available.")
            raise RuntimeError("MongoDB database is not connected or initialized.")
        return cast(AsyncIOMotorDatabase, self.db)


# Process-wide context used by the API; workers open their own
mongo_manager = MongoDbContext()


def get_database() -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the connected database."""
    try:
        return mongo_manager.get_db()
    except RuntimeError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Database connection not available: {e}",
        )
