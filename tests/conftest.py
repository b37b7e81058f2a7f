import os

# Settings are read at import time
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
for var in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "S3_BUCKET_NAME"):
    os.environ.pop(var, None)

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_media_service
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase
from app.main import app
from tests.fakes import FakeMediaService, FakeSupabase


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def media():
    return FakeMediaService()


@pytest.fixture
def client(db, media):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_media_service] = lambda: media
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def make_user(client):
    """Register a user through the API; returns its id, username, token and auth headers."""
    def _make_user(username, email=None, password="secret123"):
        response = client.post("/api/v1/users", json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "id": body["user"]["id"],
            "username": username,
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }
    return _make_user
