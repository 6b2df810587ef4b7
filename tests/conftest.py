"""
Shared fixtures for API tests.

Each test gets a fresh application on an in-memory SQLite database with
cheap bcrypt rounds and rate limiting disabled. Helpers create accounts
through the signup endpoint and grant roles through the repository,
the way an operator would.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update

from tourbook.core.config import Settings
from tourbook.domain.tours.ports import Mailer
from tourbook.infrastructure.tours.tables import users
from tourbook.main import create_app

PASSWORD = "pass1234"


class RecordingMailer(Mailer):
    """Keeps every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite:///:memory:",
        "bcrypt_rounds": 4,
        "rate_limit_enabled": False,
        "jwt_secret": "test-secret-that-is-long-enough",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def client(settings: Settings, mailer: RecordingMailer):
    app = create_app(settings)
    app.state.mailer = mailer
    with TestClient(app) as test_client:
        yield test_client


# ══════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════


def signup(
    client: TestClient,
    email: str,
    name: str = "Leo Gillespie",
    role: Optional[str] = None,
) -> dict:
    """Create an account, optionally grant a role, and log in.

    Returns:
        ``{"id", "token", "headers"}`` for the new account.
    """
    response = client.post(
        "/api/v1/users/signup",
        json={
            "name": name,
            "email": email,
            "password": PASSWORD,
            "passwordConfirm": PASSWORD,
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    account_id = body["data"]["user"]["id"]
    if role is not None:
        set_role(client, account_id, role)
    client.cookies.clear()
    return {
        "id": account_id,
        "token": body["token"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


def set_role(client: TestClient, account_id: str, role: str) -> None:
    engine = client.app.state.engine
    with engine.begin() as conn:
        conn.execute(update(users).where(users.c.id == account_id).values(role=role))


def tour_payload(name: str = "The Forest Hiker", **overrides) -> dict:
    payload = {
        "name": name,
        "duration": 5,
        "maxGroupSize": 25,
        "difficulty": "easy",
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "description": "Lorem ipsum dolor sit amet.",
        "imageCover": "tour-1-cover.jpg",
        "images": ["tour-1-1.jpg"],
        "startDates": ["2021-04-25T09:00:00Z", "2021-07-20T09:00:00Z"],
        "startLocation": {
            "coordinates": [-115.570154, 51.178456],
            "address": "224 Banff Ave, Banff, AB, Canada",
            "description": "Banff, CAN",
        },
        "locations": [
            {"coordinates": [-116.214531, 51.417611], "description": "Lake Louise", "day": 1}
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def admin(client: TestClient) -> dict:
    return signup(client, "admin@tourbook.io", name="Jonas Schmedtmann", role="admin")


@pytest.fixture
def lead_guide(client: TestClient) -> dict:
    return signup(client, "lead@tourbook.io", name="Steven Miller", role="lead-guide")


@pytest.fixture
def member(client: TestClient) -> dict:
    return signup(client, "member@tourbook.io", name="Laura Wilson")


@pytest.fixture
def tour(client: TestClient, admin: dict) -> dict:
    response = client.post("/api/v1/tours", json=tour_payload(), headers=admin["headers"])
    assert response.status_code == 201, response.text
    return response.json()["data"]["data"]
