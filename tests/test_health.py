"""Tests for health endpoint and error rendering."""

import pytest
from httpx import ASGITransport, AsyncClient

from marketplace.main import app


@pytest.fixture
async def client():
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_unhandled_error_is_structured(monkeypatch: pytest.MonkeyPatch):
    """Unexpected failures come back as INTERNAL_ERROR without leaking details."""
    from marketplace.routes import products as products_routes
    from marketplace.stores.postgres import get_session

    async def fake_session():
        yield None

    async def broken_find_sellers(*args, **kwargs):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(products_routes, "find_sellers_within_range", broken_find_sellers)
    app.dependency_overrides[get_session] = fake_session
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            response = await ac.get("/v1/products/nearby", params={"latitude": 12.9, "longitude": 77.6})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {
        "error": {"code": "INTERNAL_ERROR", "message": "Internal server error", "detail": None}
    }
