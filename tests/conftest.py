"""Pytest fixtures: in-memory SQLite app, authenticated client, fake HTTP responses."""

import os
from unittest.mock import Mock

import pytest

# Must be set before the app modules are imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret")

from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, engine  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _signup_and_login(client, email: str) -> dict:
    response = client.post("/signup", json={"email": email, "name": "Cook", "password": "s3cret-pass"})
    assert response.status_code == 200, response.text
    response = client.post("/token", data={"username": email, "password": "s3cret-pass"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return _signup_and_login(client, "cook@example.com")


@pytest.fixture
def other_auth_headers(client):
    return _signup_and_login(client, "other@example.com")


@pytest.fixture
def make_response():
    """Factory for objects shaped like ``requests.Response``."""

    def factory(status_code: int = 200, text: str = "", json_data=None):
        response = Mock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.reason = "OK" if response.ok else "Not Found"
        response.text = text
        if json_data is None:
            response.json.side_effect = ValueError("No JSON object could be decoded")
        else:
            response.json.return_value = json_data
        return response

    return factory
