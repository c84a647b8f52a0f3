"""Tests for the health endpoint."""

from __future__ import annotations


class TestHealthEndpoint:
    """GET /api/health — always public."""

    def test_healthy_when_service_reachable(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["record_count"] == 4
        assert data["version"] == "0.2.0"
        assert data["aggregation"] == "factor_count"
        assert data["checks"]["address_service"]["status"] == "up"

    def test_contains_uptime(self, client):
        data = client.get("/api/health").json()
        assert isinstance(data["uptime_seconds"], int)
        assert data["uptime_seconds"] >= 0
        assert data["started_at"].startswith("2026-03-01")

    def test_degraded_when_service_down(self, client, upstream_down):
        resp = client.get("/api/health")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "degraded"
        assert data["record_count"] is None
        assert data["checks"]["address_service"]["status"] == "down"
