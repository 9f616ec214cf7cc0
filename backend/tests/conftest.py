# tests/conftest.py
import os
import tempfile
from datetime import datetime, timezone
from typing import AsyncGenerator, List

# Settings are read once at import time, so the test environment goes in first
os.environ.update({
    "PROJECT_NAME": "Rental Desk Test",
    "LOG_LEVEL": "DEBUG",
    "MONGODB_URI": "mongodb://localhost:27017/rentaldesk_test",
    "CELERY_BROKER_URL": "memory://",
    "CELERY_RESULT_BACKEND": "cache+memory://",
    "BACKUP_PATH": tempfile.mkdtemp(prefix="rentaldesk-backups-"),
    "BACKUP_TIMEZONE": "America/New_York",
})

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from rentaldesk.core.database import get_database
from rentaldesk.modules.agreements.models import AgreementInDB
from rentaldesk.modules.agreements.repository import AgreementRepository
from rentaldesk.modules.backups.metadata import BackupMetadataRepository
from rentaldesk.modules.backups.services import BackupService, get_backup_store, pending_agreement_backups
from rentaldesk.modules.backups.storage import BackupStore
from rentaldesk.modules.vehicles.repository import VehicleRepository

FIXED_NOW = datetime(2026, 3, 5, 15, 30, tzinfo=timezone.utc)


class RecordingSleep:
    """Stands in for asyncio.sleep; remembers every requested delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def agreement_payload(**overrides) -> dict:
    """Form payload as posted by the agreement screen."""
    payload = {
        "renterName": "O'Brien & Sons",
        "address": "12 Main St",
        "city": "Pawtucket",
        "state": "RI",
        "zipCode": "02860",
        "cellPhone": "401-555-0100",
        "email": "",
        "driversLicense": "RI1234567",
        "licenseState": "RI",
        "licenseExpiration": "2028-06-30",
        "dateOfBirth": "1985-02-14",
        "insuranceCompany": "Acme Mutual",
        "policyNumber": "PN-99812",
        "policyExpiration": "2027-01-01",
        "insuranceAgent": "",
        "claimNumber": "CLM-77",
        "currentCarNumber": "14",
        "currentLicense": "ABC123",
        "currentYear": "2022",
        "currentMake": "Toyota",
        "currentModel": "Camry",
        "currentColor": "Silver",
        "mileageOut": "41230",
        "deposits": "250.00",
    }
    payload.update(overrides)
    return payload


def make_agreement(**overrides) -> AgreementInDB:
    data = {
        "_id": "65f0c0ffee0000000000a007",
        "agreement_number": "AGR-007",
        "status": "Active",
        "renter_name": "O'Brien & Sons",
        "renter_address": "12 Main St",
        "renter_city": "Pawtucket",
        "renter_state": "RI",
        "renter_zip_code": "02860",
        "renter_phone": "401-555-0100",
        "drivers_license": "RI1234567",
        "license_state": "RI",
        "license_expiration": "2028-06-30",
        "date_of_birth": "1985-02-14",
        "insurance_company": "Acme Mutual",
        "policy_number": "PN-99812",
        "policy_expiration": "2027-01-01",
        "current_car_number": "14",
        "current_license": "ABC123",
        "current_year": "2022",
        "current_make": "Toyota",
        "current_model": "Camry",
        "current_color": "Silver",
        "sales_tax": "8.00",
        "state_sales_tax": "7.00",
        "fuel_charges": "5.99",
        "created_at": FIXED_NOW,
        "updated_at": FIXED_NOW,
    }
    data.update(overrides)
    return AgreementInDB.model_validate(data)


@pytest.fixture
def db_client():
    client = AsyncMongoMockClient()
    return client["rentaldesk_test"]


@pytest.fixture
def backup_store(tmp_path) -> BackupStore:
    store = BackupStore(tmp_path / "backups")
    store.ensure_directories()
    return store


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def backup_service(db_client, backup_store, recording_sleep) -> BackupService:
    return BackupService(
        backup_store,
        BackupMetadataRepository(db_client),
        AgreementRepository(db_client),
        VehicleRepository(db_client),
        max_attempts=3,
        retry_delay=1.0,
        sleep=recording_sleep,
        clock=lambda: FIXED_NOW,
    )


@pytest_asyncio.fixture(scope="function")
async def test_client(db_client, backup_store) -> AsyncGenerator[AsyncClient, None]:
    from rentaldesk.main import app

    app.dependency_overrides[get_database] = lambda: db_client
    app.dependency_overrides[get_backup_store] = lambda: backup_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    for task in pending_agreement_backups():
        await task
    app.dependency_overrides.clear()
