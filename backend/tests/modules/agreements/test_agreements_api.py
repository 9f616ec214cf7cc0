# tests/modules/agreements/test_agreements_api.py
import pytest
from conftest import agreement_payload, make_agreement
from fastapi import status
from httpx import AsyncClient

from rentaldesk.modules.agreements.repository import AgreementRepository
from rentaldesk.modules.agreements.services import sync_agreement_counter
from rentaldesk.modules.backups.errors import TerminalBackupFailure
from rentaldesk.modules.backups.metadata import BackupMetadataRepository
from rentaldesk.modules.backups.services import BackupService, pending_agreement_backups

pytestmark = pytest.mark.asyncio


async def _settle_backups():
    for task in pending_agreement_backups():
        await task


async def test_create_agreement_assigns_sequential_numbers(test_client: AsyncClient):
    first = await test_client.post("/api/agreements", json=agreement_payload())
    second = await test_client.post("/api/agreements", json=agreement_payload(renterName="Ann Smith"))

    assert first.status_code == status.HTTP_201_CREATED
    assert second.status_code == status.HTTP_201_CREATED
    assert first.json()["agreement_number"] == "AGR-001"
    assert second.json()["agreement_number"] == "AGR-002"


async def test_create_agreement_maps_form_fields_and_defaults(test_client: AsyncClient):
    response = await test_client.post("/api/agreements", json=agreement_payload(salesTax="", fuelCharges="6.49"))
    body = response.json()

    assert body["status"] == "Active"
    assert body["renter_address"] == "12 Main St"
    assert body["renter_phone"] == "401-555-0100"
    assert body["renter_email"] is None
    assert body["insurance_agent"] is None
    assert body["claim_number"] == "CLM-77"
    assert body["sales_tax"] == "8.00"
    assert body["state_sales_tax"] == "7.00"
    assert body["fuel_charges"] == "6.49"


async def test_create_agreement_backs_up_in_background(test_client: AsyncClient, db_client, backup_store):
    created = (await test_client.post("/api/agreements", json=agreement_payload())).json()
    await _settle_backups()

    rows = await BackupMetadataRepository(db_client).list_by({"agreement_id": created["id"]})
    assert sorted(r.backup_type for r in rows) == ["json", "pdf"]
    assert all(r.backup_status == "success" for r in rows)
    for row in rows:
        assert row.file_path.startswith("agreements/")
        assert "AGR-001_OBrienSons_" in row.file_path
        assert backup_store.resolve(row.file_path).is_file()


async def test_backup_failure_does_not_fail_agreement_creation(test_client: AsyncClient, monkeypatch):
    async def always_fail(self, agreement):
        raise TerminalBackupFailure("Failed to save backup after 3 attempts: disk full", attempts=3)

    monkeypatch.setattr(BackupService, "save_agreement_backup", always_fail)

    response = await test_client.post("/api/agreements", json=agreement_payload())
    await _settle_backups()

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["agreement_number"] == "AGR-001"


async def test_counter_continues_after_existing_numbers(test_client: AsyncClient, db_client):
    legacy = make_agreement(agreement_number="AGR-041").model_dump(exclude={"id"})
    await AgreementRepository(db_client).create(legacy)
    assert await sync_agreement_counter(db_client) == 41

    response = await test_client.post("/api/agreements", json=agreement_payload())
    assert response.json()["agreement_number"] == "AGR-042"


async def test_create_agreement_missing_required_field(test_client: AsyncClient):
    payload = agreement_payload()
    del payload["policyNumber"]
    response = await test_client.post("/api/agreements", json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_get_and_list_agreements(test_client: AsyncClient):
    created = (await test_client.post("/api/agreements", json=agreement_payload())).json()

    fetched = await test_client.get(f"/api/agreements/{created['id']}")
    assert fetched.status_code == status.HTTP_200_OK
    assert fetched.json()["agreement_number"] == created["agreement_number"]

    listed = await test_client.get("/api/agreements")
    assert [a["id"] for a in listed.json()] == [created["id"]]


@pytest.mark.parametrize("agreement_id", ["65f0c0ffee0000000000beef", "not-an-id"])
async def test_get_unknown_agreement_is_not_found(test_client: AsyncClient, agreement_id):
    response = await test_client.get(f"/api/agreements/{agreement_id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_update_changes_only_status(test_client: AsyncClient):
    created = (await test_client.post("/api/agreements", json=agreement_payload())).json()

    response = await test_client.put(
        f"/api/agreements/{created['id']}",
        json={"status": "Closed", "renter_name": "Someone Else"},
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "Closed"
    assert body["renter_name"] == created["renter_name"]

    untouched = await test_client.put(f"/api/agreements/{created['id']}", json={})
    assert untouched.json()["status"] == "Closed"

    blank = await test_client.put(f"/api/agreements/{created['id']}", json={"status": "  "})
    assert blank.status_code == status.HTTP_200_OK
    assert blank.json()["status"] == "Closed"


async def test_update_rejects_unknown_status(test_client: AsyncClient):
    created = (await test_client.post("/api/agreements", json=agreement_payload())).json()

    response = await test_client.put(f"/api/agreements/{created['id']}", json={"status": "Bogus"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    fetched = await test_client.get(f"/api/agreements/{created['id']}")
    assert fetched.json()["status"] == "Active"


async def test_update_unknown_agreement_is_not_found(test_client: AsyncClient):
    response = await test_client.put("/api/agreements/65f0c0ffee0000000000beef", json={"status": "Closed"})
    assert response.status_code == status.HTTP_404_NOT_FOUND
