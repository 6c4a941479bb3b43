"""Health endpoint tests."""

import pytest

from pmhome import __version__


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health is public and reports the database check."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert data["version"] == __version__
    assert data["database"] == "ok"
