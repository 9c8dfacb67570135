"""Fixtures for API tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from mes.core.database import get_db
from mes.core.security import create_user_token
from mes.main import app


@pytest.fixture
async def client(session_factory):
    """Async client bound to the app, with the test database injected."""

    async def get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(admin_user):
    """Bearer headers for the seeded admin."""
    token = create_user_token(admin_user.id, admin_user.username, admin_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def user_headers(client):
    """Register a regular user through the API and log in."""
    await client.post(
        "/api/v1/users/register",
        json={"username": "operator", "password": "operator1", "email": "op@example.com"},
    )
    response = await client.post(
        "/api/v1/users/login", json={"username": "operator", "password": "operator1"}
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
