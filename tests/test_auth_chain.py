"""
Tests for the authentication and authorization chain.

Covers token extraction (Bearer header and ``jwt`` cookie), the
verification steps (signature, expiry, account still active, password
not changed since issue) and role restriction.
"""

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import update

from tests.conftest import signup
from tourbook.infrastructure.tours.tables import users

ME = "/api/v1/users/me"


def _token(settings, subject: str, issued: datetime, expires: datetime) -> str:
    claims = {"sub": subject, "iat": int(issued.timestamp()), "exp": expires}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


# ══════════════════════════════════════════════════════════════════════
# Token extraction
# ══════════════════════════════════════════════════════════════════════


class TestTokenExtraction:
    def test_no_token_is_rejected(self, client: TestClient) -> None:
        response = client.get(ME)
        assert response.status_code == 401
        assert response.json()["message"] == (
            "You are not logged in! Please log in to get access."
        )

    def test_bearer_token(self, client: TestClient, member: dict) -> None:
        response = client.get(ME, headers=member["headers"])
        assert response.status_code == 200
        assert response.json()["data"]["data"]["email"] == "member@tourbook.io"

    def test_session_cookie(self, client: TestClient, member: dict) -> None:
        client.cookies.set("jwt", member["token"])
        response = client.get(ME)
        assert response.status_code == 200

    def test_logged_out_cookie_is_not_a_token(self, client: TestClient, member: dict) -> None:
        client.cookies.set("jwt", "loggedout")
        assert client.get(ME).status_code == 401

    def test_logout_overwrites_cookie(self, client: TestClient, member: dict) -> None:
        response = client.get("/api/v1/users/logout")
        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        assert "jwt=loggedout" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()


# ══════════════════════════════════════════════════════════════════════
# Verification
# ══════════════════════════════════════════════════════════════════════


class TestVerification:
    def test_bad_signature(self, client: TestClient, settings, member: dict) -> None:
        now = datetime.now(timezone.utc)
        forged = jwt.encode(
            {"sub": member["id"], "iat": int(now.timestamp()), "exp": now + timedelta(days=1)},
            "some-other-secret",
            algorithm=settings.jwt_algorithm,
        )
        response = client.get(ME, headers={"Authorization": f"Bearer {forged}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token! Please log in again."

    def test_garbage_token(self, client: TestClient) -> None:
        response = client.get(ME, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token! Please log in again."

    def test_expired_token(self, client: TestClient, settings, member: dict) -> None:
        now = datetime.now(timezone.utc)
        token = _token(settings, member["id"], now - timedelta(days=2), now - timedelta(days=1))
        response = client.get(ME, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Your token has expired! Please log in again."

    def test_deactivated_account(self, client: TestClient, member: dict) -> None:
        assert client.delete("/api/v1/users/deleteMe", headers=member["headers"]).status_code == 204
        response = client.get(ME, headers=member["headers"])
        assert response.status_code == 401
        assert response.json()["message"] == (
            "The user belonging to this token no longer exists."
        )

    def test_password_changed_after_issue(self, client: TestClient, member: dict) -> None:
        later = datetime.now(timezone.utc) + timedelta(minutes=5)
        with client.app.state.engine.begin() as conn:
            conn.execute(
                update(users).where(users.c.id == member["id"]).values(password_changed_at=later)
            )
        response = client.get(ME, headers=member["headers"])
        assert response.status_code == 401
        assert response.json()["message"] == (
            "User recently changed password! Please log in again."
        )

    def test_new_session_after_password_change(self, client: TestClient, member: dict) -> None:
        """The token returned by updateMyPassword is immediately usable."""
        response = client.patch(
            "/api/v1/users/updateMyPassword",
            json={
                "passwordCurrent": "pass1234",
                "newPassword": "newpass1234",
                "passwordConfirm": "newpass1234",
            },
            headers=member["headers"],
        )
        assert response.status_code == 200
        token = response.json()["token"]
        assert client.get(ME, headers={"Authorization": f"Bearer {token}"}).status_code == 200


# ══════════════════════════════════════════════════════════════════════
# Roles
# ══════════════════════════════════════════════════════════════════════


class TestRoles:
    def test_member_cannot_use_admin_routes(self, client: TestClient, member: dict) -> None:
        response = client.get("/api/v1/users", headers=member["headers"])
        assert response.status_code == 403
        assert response.json()["message"] == (
            "You do not have permission to perform this action"
        )

    def test_admin_can_use_admin_routes(
        self, client: TestClient, admin: dict, member: dict
    ) -> None:
        response = client.get("/api/v1/users", headers=admin["headers"])
        assert response.status_code == 200
        assert response.json()["results"] == 2

    def test_role_checked_after_authentication(self, client: TestClient) -> None:
        assert client.get("/api/v1/users").status_code == 401

    def test_guide_cannot_create_tours(self, client: TestClient) -> None:
        guide = signup(client, "guide@tourbook.io", name="Lisa Brown", role="guide")
        response = client.post("/api/v1/tours", json={}, headers=guide["headers"])
        assert response.status_code == 403
