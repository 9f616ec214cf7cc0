# rentaldesk/core/counters.py

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument

COUNTERS_COLLECTION = "counters"


class CounterService:
    """Issues friendly sequential references (e.g. AGR-007)."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection: AsyncIOMotorCollection = db[COUNTERS_COLLECTION]

    async def _get_next_sequence(self, name: str) -> int:
        """Atomically obtains the next value of a named sequence."""
        log = logger.bind(counter_name=name)
        try:
            counter = await self.collection.find_one_and_update(
                {"_id": name},
                {"$inc": {"sequence_value": 1}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            log.exception(f"Database error while getting next sequence for counter '{name}': {e}")
            raise RuntimeError(f"Database error accessing counter '{name}'") from e

        if counter is None or "sequence_value" not in counter:
            log.critical(f"CRITICAL: find_one_and_update returned unexpected value: {counter}")
            raise RuntimeError(f"Failed to reliably get or create counter '{name}'")

        next_val = counter["sequence_value"]
        log.debug(f"Next sequence value obtained: {next_val}")
        return next_val

    async def generate_reference(self, prefix: str, width: int = 3) -> str:
        """Builds the full reference, zero-padded to `width` digits (AGR-001)."""
        if not prefix or not prefix.isalnum():
            raise ValueError("Prefix must be a non-empty alphanumeric string.")

        counter_name = f"{prefix.lower()}_counter"
        sequence = await self._get_next_sequence(counter_name)
        ref_id = f"{prefix.upper()}-{sequence:0{width}d}"
        logger.bind(prefix=prefix).info(f"Reference ID generated: {ref_id}")
        return ref_id

    async def seed(self, prefix: str, value: int) -> None:
        """Moves a sequence forward to at least `value` (used when importing legacy numbers)."""
        await self.collection.update_one(
            {"_id": f"{prefix.lower()}_counter"},
            {"$max": {"sequence_value": value}},
            upsert=True,
        )
