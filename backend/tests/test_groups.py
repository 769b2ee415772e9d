"""
Group endpoints: CRUD, membership and auto-assign
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def event(client: TestClient):
    return client.post("/api/events", json={"name": "Grouping Camp"}).json()


def add_registrations(client: TestClient, event_id: int, count: int):
    return [
        client.post(f"/api/events/{event_id}/registrations", json={"registrant_name": f"Athlete {i:02d}"}).json()
        for i in range(count)
    ]


def test_create_and_list_groups(event, client: TestClient):
    for name, order in [("Blue", 1), ("Red", 0)]:
        response = client.post(f"/api/events/{event['id']}/groups", json={"name": name, "sort_order": order})
        assert response.status_code == 201

    groups = client.get(f"/api/events/{event['id']}/groups").json()
    assert [g["name"] for g in groups] == ["Red", "Blue"]
    assert groups[0]["color"] == "#6366f1"


def test_duplicate_group_name_is_conflict(event, client: TestClient):
    client.post(f"/api/events/{event['id']}/groups", json={"name": "Red"})
    response = client.post(f"/api/events/{event['id']}/groups", json={"name": "Red"})
    assert response.status_code == 409


def test_invalid_color_rejected(event, client: TestClient):
    response = client.post(f"/api/events/{event['id']}/groups", json={"name": "Red", "color": "red"})
    assert response.status_code == 422


def test_update_group(event, client: TestClient):
    group = client.post(f"/api/events/{event['id']}/groups", json={"name": "Red"}).json()

    response = client.patch(f"/api/groups/{group['id']}", json={"name": "Crimson", "max_capacity": 12})

    assert response.status_code == 200
    assert response.json()["name"] == "Crimson"
    assert response.json()["max_capacity"] == 12


def test_members_assign_and_remove(event, client: TestClient):
    group = client.post(f"/api/events/{event['id']}/groups", json={"name": "Red"}).json()
    regs = add_registrations(client, event["id"], 3)
    ids = [r["id"] for r in regs]

    response = client.post(f"/api/groups/{group['id']}/members", json={"registration_ids": ids[:2]})
    assert response.json() == {"success": True, "assigned": 2}

    # Already-present members are skipped
    response = client.post(f"/api/groups/{group['id']}/members", json={"registration_ids": ids})
    assert response.json()["assigned"] == 1

    assert client.get(f"/api/groups/{group['id']}").json()["member_registration_ids"] == ids

    assert client.delete(f"/api/groups/{group['id']}/members/{ids[0]}").status_code == 204
    assert client.get(f"/api/groups/{group['id']}").json()["member_registration_ids"] == ids[1:]
    assert client.delete(f"/api/groups/{group['id']}/members/{ids[0]}").status_code == 404


def test_members_from_other_event_rejected(event, client: TestClient):
    other = client.post("/api/events", json={"name": "Other"}).json()
    foreign = add_registrations(client, other["id"], 1)
    group = client.post(f"/api/events/{event['id']}/groups", json={"name": "Red"}).json()

    response = client.post(f"/api/groups/{group['id']}/members", json={"registration_ids": [foreign[0]["id"]]})
    assert response.status_code == 400


def test_delete_group(event, client: TestClient):
    group = client.post(f"/api/events/{event['id']}/groups", json={"name": "Red"}).json()
    regs = add_registrations(client, event["id"], 2)
    client.post(f"/api/groups/{group['id']}/members", json={"registration_ids": [r["id"] for r in regs]})

    assert client.delete(f"/api/groups/{group['id']}").status_code == 204
    assert client.get(f"/api/groups/{group['id']}").status_code == 404


# ============================================================================
# Auto-assign
# ============================================================================


def test_auto_assign_seventeen_into_four(event, client: TestClient):
    add_registrations(client, event["id"], 17)

    response = client.post(
        f"/api/events/{event['id']}/groups/auto-assign", json={"number_of_groups": 4, "strategy": "random", "seed": 5}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_assigned"] == 17
    assert sorted(data["group_sizes"]) == [4, 4, 4, 5]
    assert [g["name"] for g in data["groups"]] == ["Group A", "Group B", "Group C", "Group D"]
    members = [m for g in data["groups"] for m in g["member_registration_ids"]]
    assert len(members) == len(set(members)) == 17


def test_auto_assign_without_registrations(event, client: TestClient):
    response = client.post(f"/api/events/{event['id']}/groups/auto-assign", json={"number_of_groups": 2})

    assert response.status_code == 400
    assert response.json()["detail"].startswith("NO_REGISTRATIONS")


@pytest.mark.parametrize("count", [1, 51, 6])
def test_auto_assign_invalid_group_count(event, client: TestClient, count):
    add_registrations(client, event["id"], 5)

    response = client.post(f"/api/events/{event['id']}/groups/auto-assign", json={"number_of_groups": count})

    assert response.status_code == 400
    assert response.json()["detail"].startswith("INVALID_GROUP_COUNT")


def test_auto_assign_unknown_strategy(event, client: TestClient):
    response = client.post(
        f"/api/events/{event['id']}/groups/auto-assign", json={"number_of_groups": 2, "strategy": "height"}
    )
    assert response.status_code == 422


def test_auto_assign_unknown_event(client: TestClient):
    response = client.post("/api/events/9999/groups/auto-assign", json={"number_of_groups": 2})
    assert response.status_code == 404
