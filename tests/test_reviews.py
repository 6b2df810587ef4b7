"""
Tests for reviews: nested routes, author defaults, one review per author
and tour, and the tour rating aggregate kept in step with every write.
"""

import pytest
from fastapi.testclient import TestClient

from tests.conftest import signup

REVIEWS = "/api/v1/reviews"


def _tour_ratings(client: TestClient, tour_id: str) -> tuple:
    doc = client.get(f"/api/v1/tours/{tour_id}").json()["data"]["data"]
    return doc["ratingsQuantity"], doc["ratingsAverage"]


def _review(client: TestClient, tour_id: str, headers: dict, rating: float, text: str = "Great!"):
    return client.post(
        f"/api/v1/tours/{tour_id}/reviews",
        json={"review": text, "rating": rating},
        headers=headers,
    )


@pytest.fixture
def reviewer(client: TestClient) -> dict:
    return signup(client, "reviewer@tourbook.io", name="Cristian Vega")


class TestCreateReview:
    def test_nested_create_pins_tour_and_author(
        self, client: TestClient, tour: dict, member: dict
    ) -> None:
        response = _review(client, tour["id"], member["headers"], 4)
        assert response.status_code == 201
        review = response.json()["data"]["data"]
        assert review["tour"] == tour["id"]
        assert review["user"]["id"] == member["id"]
        assert review["user"]["name"] == "Laura Wilson"
        assert "createdAt" in review

    def test_aggregate_recomputed(
        self, client: TestClient, tour: dict, member: dict, reviewer: dict
    ) -> None:
        _review(client, tour["id"], member["headers"], 4)
        _review(client, tour["id"], reviewer["headers"], 5)
        assert _tour_ratings(client, tour["id"]) == (2, 4.5)

    def test_average_is_rounded(
        self, client: TestClient, tour: dict, member: dict, reviewer: dict
    ) -> None:
        third = signup(client, "third@tourbook.io", name="Sophie Louise Hirst")
        _review(client, tour["id"], member["headers"], 5)
        _review(client, tour["id"], reviewer["headers"], 5)
        _review(client, tour["id"], third["headers"], 4)
        assert _tour_ratings(client, tour["id"]) == (3, 4.7)

    def test_one_review_per_author(self, client: TestClient, tour: dict, member: dict) -> None:
        assert _review(client, tour["id"], member["headers"], 4).status_code == 201
        response = _review(client, tour["id"], member["headers"], 1)
        assert response.status_code == 409
        assert _tour_ratings(client, tour["id"]) == (1, 4.0)

    def test_top_level_create_with_tour_in_body(
        self, client: TestClient, tour: dict, member: dict
    ) -> None:
        response = client.post(
            REVIEWS,
            json={"review": "Loved it", "rating": 5, "tour": tour["id"]},
            headers=member["headers"],
        )
        assert response.status_code == 201
        assert _tour_ratings(client, tour["id"]) == (1, 5.0)

    def test_only_users_write_reviews(self, client: TestClient, admin: dict, tour: dict) -> None:
        assert _review(client, tour["id"], admin["headers"], 5).status_code == 403

    def test_unknown_tour(self, client: TestClient, member: dict) -> None:
        response = _review(client, "5c8a1d5b-0190-4a1b-8f5c-1a2b3c4d5e6f", member["headers"], 4)
        assert response.status_code == 404
        assert response.json()["message"] == "No tour found with that ID"

    def test_rating_out_of_range(self, client: TestClient, tour: dict, member: dict) -> None:
        assert _review(client, tour["id"], member["headers"], 6).status_code == 400

    def test_requires_login(self, client: TestClient, tour: dict) -> None:
        response = client.get(f"/api/v1/tours/{tour['id']}/reviews")
        assert response.status_code == 401


class TestReviewReads:
    def test_nested_listing_is_scoped(
        self, client: TestClient, admin: dict, tour: dict, member: dict
    ) -> None:
        other = client.post(
            "/api/v1/tours",
            json={
                "name": "The Sea Explorer",
                "duration": 7,
                "maxGroupSize": 15,
                "difficulty": "medium",
                "price": 497,
                "summary": "Exploring the jaw-dropping US east coast",
                "imageCover": "tour-2-cover.jpg",
            },
            headers=admin["headers"],
        ).json()["data"]["data"]
        _review(client, tour["id"], member["headers"], 4)
        _review(client, other["id"], member["headers"], 3)

        nested = client.get(f"/api/v1/tours/{tour['id']}/reviews", headers=member["headers"])
        assert nested.json()["results"] == 1
        everything = client.get(REVIEWS, headers=member["headers"])
        assert everything.json()["results"] == 2

    def test_reviews_embedded_in_tour(self, client: TestClient, tour: dict, member: dict) -> None:
        _review(client, tour["id"], member["headers"], 4, text="Wonderful guides")
        doc = client.get(f"/api/v1/tours/{tour['id']}").json()["data"]["data"]
        assert [r["review"] for r in doc["reviews"]] == ["Wonderful guides"]
        assert doc["reviews"][0]["user"]["name"] == "Laura Wilson"

    def test_deactivated_author_is_hidden(
        self, client: TestClient, tour: dict, member: dict, reviewer: dict
    ) -> None:
        _review(client, tour["id"], member["headers"], 4)
        client.delete("/api/v1/users/deleteMe", headers=member["headers"])

        listed = client.get(
            f"/api/v1/tours/{tour['id']}/reviews", headers=reviewer["headers"]
        ).json()["data"]["data"]
        assert [r["user"] for r in listed] == [None]

        doc = client.get(f"/api/v1/tours/{tour['id']}").json()["data"]["data"]
        assert [r["user"] for r in doc["reviews"]] == [None]
        assert doc["reviews"][0]["rating"] == 4


class TestReviewWrites:
    def test_update_recomputes(self, client: TestClient, tour: dict, member: dict) -> None:
        review = _review(client, tour["id"], member["headers"], 4).json()["data"]["data"]
        response = client.patch(
            f"{REVIEWS}/{review['id']}", json={"rating": 2}, headers=member["headers"]
        )
        assert response.status_code == 200
        assert _tour_ratings(client, tour["id"]) == (1, 2.0)

    def test_delete_resets_to_defaults(self, client: TestClient, tour: dict, member: dict) -> None:
        review = _review(client, tour["id"], member["headers"], 4).json()["data"]["data"]
        response = client.delete(f"{REVIEWS}/{review['id']}", headers=member["headers"])
        assert response.status_code == 204
        assert _tour_ratings(client, tour["id"]) == (0, 4.5)

    def test_admin_can_delete(
        self, client: TestClient, admin: dict, tour: dict, member: dict
    ) -> None:
        review = _review(client, tour["id"], member["headers"], 4).json()["data"]["data"]
        response = client.delete(f"{REVIEWS}/{review['id']}", headers=admin["headers"])
        assert response.status_code == 204

    def test_guides_cannot_edit(self, client: TestClient, lead_guide: dict, tour: dict, member: dict) -> None:
        review = _review(client, tour["id"], member["headers"], 4).json()["data"]["data"]
        response = client.patch(
            f"{REVIEWS}/{review['id']}", json={"rating": 1}, headers=lead_guide["headers"]
        )
        assert response.status_code == 403
