"""
Tests for bookings: staff-only management with populated references.
"""

import pytest
from fastapi.testclient import TestClient

BOOKINGS = "/api/v1/bookings"


@pytest.fixture
def booking(client: TestClient, admin: dict, tour: dict, member: dict) -> dict:
    response = client.post(
        BOOKINGS,
        json={"tour": tour["id"], "user": member["id"], "price": 397},
        headers=admin["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["data"]


class TestBookings:
    def test_create_populates_references(self, booking: dict, tour: dict, member: dict) -> None:
        assert booking["tour"] == {"id": tour["id"], "name": "The Forest Hiker"}
        assert booking["user"] == {
            "id": member["id"],
            "name": "Laura Wilson",
            "email": "member@tourbook.io",
        }
        assert booking["paid"] is True

    def test_list_and_filter(
        self, client: TestClient, admin: dict, booking: dict, member: dict
    ) -> None:
        response = client.get(BOOKINGS, params={"user": member["id"]}, headers=admin["headers"])
        assert response.status_code == 200
        assert response.json()["results"] == 1

    def test_lead_guide_can_manage(
        self, client: TestClient, lead_guide: dict, booking: dict
    ) -> None:
        response = client.patch(
            f"{BOOKINGS}/{booking['id']}", json={"paid": False}, headers=lead_guide["headers"]
        )
        assert response.status_code == 200
        assert response.json()["data"]["data"]["paid"] is False

    def test_members_are_refused(self, client: TestClient, member: dict, booking: dict) -> None:
        response = client.get(BOOKINGS, headers=member["headers"])
        assert response.status_code == 403

    def test_unknown_reference(self, client: TestClient, admin: dict, member: dict) -> None:
        response = client.post(
            BOOKINGS,
            json={
                "tour": "5c8a1d5b-0190-4a1b-8f5c-1a2b3c4d5e6f",
                "user": member["id"],
                "price": 100,
            },
            headers=admin["headers"],
        )
        assert response.status_code == 400

    def test_delete(self, client: TestClient, admin: dict, booking: dict) -> None:
        response = client.delete(f"{BOOKINGS}/{booking['id']}", headers=admin["headers"])
        assert response.status_code == 204
        response = client.get(f"{BOOKINGS}/{booking['id']}", headers=admin["headers"])
        assert response.status_code == 404
