# tests/modules/vehicles/test_vehicles_api.py
import pytest
from fastapi import status
from httpx import AsyncClient

from rentaldesk.modules.vehicles.repository import VehicleRepository

pytestmark = pytest.mark.asyncio

VAN = {"make": "Ford", "model": "Transit", "year": "2020", "plate": "RI-100", "type": "Van", "mileage": 52000}


async def test_create_vehicle_defaults_to_in_house(test_client: AsyncClient):
    response = await test_client.post("/api/vehicles", json=VAN)

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["status"] == "In-House"
    assert body["plate"] == "RI-100"
    assert body["id"]
    assert body["created_at"] and body["updated_at"]


async def test_duplicate_plate_is_rejected(test_client: AsyncClient, db_client):
    await VehicleRepository(db_client).create_indexes()
    await test_client.post("/api/vehicles", json=VAN)

    response = await test_client.post("/api/vehicles", json={**VAN, "model": "E-Transit"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "unique" in response.json()["detail"]


async def test_invalid_status_is_rejected(test_client: AsyncClient):
    response = await test_client.post("/api/vehicles", json={**VAN, "status": "Stolen"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_update_and_list_vehicle(test_client: AsyncClient):
    created = (await test_client.post("/api/vehicles", json=VAN)).json()

    response = await test_client.put(f"/api/vehicles/{created['id']}", json={"status": "Maintenance", "mileage": 52310})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "Maintenance"
    assert body["mileage"] == 52310
    assert body["make"] == "Ford"

    listed = (await test_client.get("/api/vehicles")).json()
    assert [(v["id"], v["status"]) for v in listed] == [(created["id"], "Maintenance")]


async def test_update_unknown_vehicle_is_not_found(test_client: AsyncClient):
    response = await test_client.put("/api/vehicles/65f0c0ffee0000000000beef", json={"status": "Loaned"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_delete_vehicle(test_client: AsyncClient):
    created = (await test_client.post("/api/vehicles", json=VAN)).json()

    response = await test_client.delete(f"/api/vehicles/{created['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}

    again = await test_client.delete(f"/api/vehicles/{created['id']}")
    assert again.status_code == status.HTTP_404_NOT_FOUND
