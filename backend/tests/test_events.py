import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def event(client: TestClient):
    """Create an event for testing"""
    response = client.post(
        "/api/events",
        json={"name": "Summer Skills Camp", "event_date": "2026-07-04", "location": "North Field"},
    )
    return response.json()


def test_create_event(client: TestClient):
    response = client.post("/api/events", json={"name": "  Winter Clinic ", "notes": "Indoor"})

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Winter Clinic"
    assert data["notes"] == "Indoor"
    assert data["event_date"] is None


def test_create_event_rejects_blank_name(client: TestClient):
    response = client.post("/api/events", json={"name": "   "})

    assert response.status_code == 422
    assert any("name must not be empty" in str(err) for err in response.json()["detail"])


def test_get_event(event, client: TestClient):
    response = client.get(f"/api/events/{event['id']}")
    assert response.status_code == 200
    assert response.json()["location"] == "North Field"

    assert client.get("/api/events/9999").status_code == 404


def test_registrations_list_and_filter(event, client: TestClient):
    for name, status in [("Ana", "confirmed"), ("Ben", "pending"), ("Cy", "confirmed")]:
        response = client.post(
            f"/api/events/{event['id']}/registrations", json={"registrant_name": name, "status": status}
        )
        assert response.status_code == 201

    all_regs = client.get(f"/api/events/{event['id']}/registrations").json()
    assert [r["registrant_name"] for r in all_regs] == ["Ana", "Ben", "Cy"]

    confirmed = client.get(f"/api/events/{event['id']}/registrations", params={"status": "confirmed"}).json()
    assert [r["registrant_name"] for r in confirmed] == ["Ana", "Cy"]


def test_update_registration_status(event, client: TestClient):
    created = client.post(f"/api/events/{event['id']}/registrations", json={"registrant_name": "Dee"}).json()
    assert created["status"] == "confirmed"

    response = client.patch(f"/api/registrations/{created['id']}", json={"status": "cancelled", "age_category_id": 3})

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["age_category_id"] == 3


def test_registration_for_unknown_event(client: TestClient):
    response = client.post("/api/events/9999/registrations", json={"registrant_name": "Nobody"})
    assert response.status_code == 404
