"""Health endpoint smoke test."""

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_healthcheck_returns_ok(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["service"] == "ShelterSync API"
    assert payload["database"] == "ok"
    assert response.headers["X-Request-ID"]


async def test_root_and_security_headers(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "ShelterSync API"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
