"""
Tests for the server-rendered pages.

Public pages render for anonymous visitors and for broken sessions;
account pages require a valid session cookie.
"""

from fastapi.testclient import TestClient

from tests.conftest import tour_payload


def _login_cookie(client: TestClient, account: dict) -> None:
    client.cookies.set("jwt", account["token"])


class TestPublicPages:
    def test_overview(self, client: TestClient, tour: dict) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "The Forest Hiker" in response.text
        assert "/tour/the-forest-hiker" in response.text
        assert "Log in" in response.text

    def test_overview_empty(self, client: TestClient) -> None:
        assert "No tours found." in client.get("/").text

    def test_tour_page(self, client: TestClient, tour: dict) -> None:
        response = client.get("/tour/the-forest-hiker")
        assert response.status_code == 200
        assert "Banff" in response.text

    def test_unknown_slug(self, client: TestClient) -> None:
        response = client.get("/tour/the-lost-tour")
        assert response.status_code == 404
        assert "There is no tour with that name." in response.text

    def test_markup_is_escaped(self, client: TestClient, admin: dict) -> None:
        client.post(
            "/api/v1/tours",
            json=tour_payload("The <b>Bold</b> Hiker"),
            headers=admin["headers"],
        )
        response = client.get("/")
        assert "The &lt;b&gt;Bold&lt;/b&gt; Hiker" in response.text

    def test_broken_session_still_renders(self, client: TestClient, tour: dict) -> None:
        client.cookies.set("jwt", "garbage")
        response = client.get("/")
        assert response.status_code == 200
        assert "Log in" in response.text

    def test_logged_in_header(self, client: TestClient, member: dict) -> None:
        _login_cookie(client, member)
        response = client.get("/login")
        assert response.status_code == 200
        assert "Laura" in response.text

    def test_security_headers(self, client: TestClient) -> None:
        response = client.get("/signup")
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]


class TestAccountPages:
    def test_anonymous_account_page(self, client: TestClient) -> None:
        response = client.get("/me")
        assert response.status_code == 401
        assert "You are not logged in!" in response.text

    def test_account_page(self, client: TestClient, member: dict) -> None:
        _login_cookie(client, member)
        response = client.get("/me")
        assert response.status_code == 200
        assert 'value="member@tourbook.io"' in response.text

    def test_submit_user_data(self, client: TestClient, member: dict) -> None:
        _login_cookie(client, member)
        response = client.post(
            "/submit-user-data",
            data={"name": "Laura Wilson Smith", "email": "laura.smith@tourbook.io"},
        )
        assert response.status_code == 200
        assert 'value="Laura Wilson Smith"' in response.text
        assert 'value="laura.smith@tourbook.io"' in response.text

    def test_my_tours(
        self, client: TestClient, admin: dict, tour: dict, member: dict
    ) -> None:
        client.post(
            "/api/v1/bookings",
            json={"tour": tour["id"], "user": member["id"], "price": 397},
            headers=admin["headers"],
        )
        _login_cookie(client, member)
        response = client.get("/my-tours")
        assert response.status_code == 200
        assert "My Tours" in response.text
        assert "The Forest Hiker" in response.text
