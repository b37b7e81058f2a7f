import pytest

from app.config import settings
from app.core.rate_limit import limiter


def test_health_and_ready(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json() == {"status": "ready"}
    assert client.get("/").status_code == 200


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_unknown_route_names_the_path(client):
    response = client.get("/api/v1/nowhere/at/all")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found - /api/v1/nowhere/at/all"}


@pytest.fixture
def limited_client(client):
    limiter.reset()
    limiter.enabled = True
    yield client
    limiter.enabled = False
    limiter.reset()


def test_default_rate_limit_applies_to_every_route(limited_client):
    allowed = int(settings.rate_limit.split("/")[0])
    statuses = [limited_client.get("/").status_code for _ in range(allowed + 1)]
    assert statuses[:allowed] == [200] * allowed
    assert statuses[-1] == 429


def test_health_checks_are_not_rate_limited(limited_client):
    allowed = int(settings.rate_limit.split("/")[0])
    statuses = {limited_client.get("/health").status_code for _ in range(allowed + 5)}
    assert statuses == {200}
