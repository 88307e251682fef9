import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="clinic-manager-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_DB_DIR, 'clinic.db')}")
os.environ.setdefault("ADMIN_EMAIL", "owner@smileclinic.com")
os.environ.setdefault("ADMIN_PASSWORD", "OwnerPass123!")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-jwt")

import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture(scope="session")
def admin_credentials():
    return os.environ["ADMIN_EMAIL"], os.environ["ADMIN_PASSWORD"]


@pytest.fixture(scope="session")
def api_client():
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="session")
def auth_headers(api_client, admin_credentials):
    email, password = admin_credentials
    response = api_client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json().get("access_token")
    assert token, "Missing access_token in login response"
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="session")
def create(api_client, auth_headers):
    def _create(path: str, payload: dict) -> dict:
        response = api_client.post(path, json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
