"""
Station endpoints: CRUD, activation and staff links
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def event(client: TestClient):
    return client.post("/api/events", json={"name": "Station Camp"}).json()


def test_create_station_with_content(event, client: TestClient):
    response = client.post(
        f"/api/events/{event['id']}/stations",
        json={
            "name": "Passing",
            "capacity": 12,
            "content": {
                "instructions": "Short passes in pairs",
                "materials": [{"name": "Cones", "quantity": 8}],
            },
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["color"] == "#10b981"
    assert data["is_active"] is True
    assert data["content"]["materials"] == [{"name": "Cones", "quantity": 8, "checked": False}]
    assert data["staff"] == []


def test_material_quantity_must_be_positive(event, client: TestClient):
    response = client.post(
        f"/api/events/{event['id']}/stations",
        json={"name": "Passing", "content": {"materials": [{"name": "Cones", "quantity": 0}]}},
    )
    assert response.status_code == 422


def test_list_hides_inactive_by_default(event, client: TestClient):
    first = client.post(f"/api/events/{event['id']}/stations", json={"name": "A", "sort_order": 0}).json()
    client.post(f"/api/events/{event['id']}/stations", json={"name": "B", "sort_order": 1})

    response = client.patch(f"/api/stations/{first['id']}", json={"is_active": False})
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    active = client.get(f"/api/events/{event['id']}/stations").json()
    assert [s["name"] for s in active] == ["B"]
    everything = client.get(f"/api/events/{event['id']}/stations", params={"include_inactive": True}).json()
    assert [s["name"] for s in everything] == ["A", "B"]


def test_staff_assign_and_remove(event, client: TestClient):
    station = client.post(f"/api/events/{event['id']}/stations", json={"name": "Shooting"}).json()

    response = client.post(
        f"/api/stations/{station['id']}/staff", json={"staff_id": 7, "role_at_station": "Coach", "is_primary": True}
    )
    assert response.status_code == 201
    assert response.json()["is_primary"] is True

    duplicate = client.post(f"/api/stations/{station['id']}/staff", json={"staff_id": 7})
    assert duplicate.status_code == 409

    assert [s["staff_id"] for s in client.get(f"/api/stations/{station['id']}").json()["staff"]] == [7]
    assert client.delete(f"/api/stations/{station['id']}/staff/7").status_code == 204
    assert client.delete(f"/api/stations/{station['id']}/staff/7").status_code == 404


def test_delete_station(event, client: TestClient):
    station = client.post(f"/api/events/{event['id']}/stations", json={"name": "Dribbling"}).json()
    client.post(f"/api/stations/{station['id']}/staff", json={"staff_id": 3})

    assert client.delete(f"/api/stations/{station['id']}").status_code == 204
    assert client.get(f"/api/stations/{station['id']}").status_code == 404


def test_station_for_unknown_event(client: TestClient):
    assert client.post("/api/events/9999/stations", json={"name": "Ghost"}).status_code == 404
    assert client.get("/api/events/9999/stations").status_code == 404
