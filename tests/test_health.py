"""
Health check endpoint tests.
"""

import pytest

from src.services.locks import deal_locks


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_endpoint(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "payline"}

    @pytest.mark.asyncio
    async def test_readiness_checks_database(self, client):
        response = await client.get("/api/health/ready")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["database"] == "connected"
        assert body["recalculations_in_flight"] == []

    @pytest.mark.asyncio
    async def test_readiness_lists_running_recalculations(self, client):
        async with deal_locks.hold(42):
            response = await client.get("/api/health/ready")
        assert response.json()["recalculations_in_flight"] == [42]

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/api/health/live")
        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, client):
        response = await client.get("/api/health", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 200
