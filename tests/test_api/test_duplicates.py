"""Tests for the duplicate warning endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from location_registry.upstream import match_address

BMW = {
    "customer_name": "BMW Berlin GmbH",
    "address": "Hauptstr 1",
    "city": "Berlin",
    "postal_code": "10115",
    "country": "Germany",
}


class TestDuplicateCheck:
    """POST /api/duplicates/check"""

    def test_against_request_locations_weighted(self, client):
        resp = client.post(
            "/api/duplicates/check",
            json={
                "candidate": {**BMW, "customer_name": "BMW Berlin"},
                "existing": [{**BMW, "id": "loc-1"}],
                "aggregation": "weight_sum",
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "request"
        assert data["compared"] == 1
        assert data["is_duplicate_suspected"] is True
        match = data["matches"][0]
        assert match["location"]["id"] == "loc-1"
        assert match["similarity"] == pytest.approx(1.0)
        assert match["similarity_percent"] == 100
        assert match["match_reasons"] == [
            "Similar address (100% match)",
            "Same/similar city (100% match)",
            "Same/similar postal code",
        ]

    def test_default_aggregation(self, client):
        resp = client.post(
            "/api/duplicates/check",
            json={"candidate": BMW, "existing": [{**BMW, "id": "loc-1"}]},
        )
        data = resp.json()
        assert data["aggregation"] == "factor_count"
        # four factors averaging (0.4 + 0.3 + 0.2 + 0.1) / 4 stay below 0.5
        assert data["matches"] == []
        assert data["is_duplicate_suspected"] is False

    def test_against_address_database(self, client):
        resp = client.post(
            "/api/duplicates/check",
            json={
                "candidate": {**BMW, "latitude": 52.5321, "longitude": 13.3849},
                "aggregation": "weight_sum",
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "address_database"
        assert data["compared"] == 4
        assert len(data["matches"]) == 1
        match = data["matches"][0]
        assert match["location"]["customer_name"] == "BMW Berlin GmbH"
        assert len(match["match_reasons"]) == 5
        assert match["match_reasons"][-1] == "Very close GPS location (0.00km away)"
        assert match["distance_km"] == 0.0

    def test_configured_aggregation_used(self, client):
        from location_registry.api import helpers
        from location_registry.algorithms import MatcherConfig

        helpers._MATCHER_CONFIG = MatcherConfig(aggregation="weight_sum")
        resp = client.post(
            "/api/duplicates/check",
            json={"candidate": BMW, "existing": [{**BMW, "id": "loc-1"}]},
        )
        assert resp.json()["aggregation"] == "weight_sum"
        assert len(resp.json()["matches"]) == 1

    def test_empty_existing(self, client):
        resp = client.post("/api/duplicates/check", json={"candidate": BMW, "existing": []})
        assert resp.status_code == 200
        assert resp.json()["matches"] == []
        assert resp.json()["compared"] == 0

    def test_partial_candidate(self, client):
        resp = client.post(
            "/api/duplicates/check",
            json={
                "candidate": {"customer_name": "BMW Berlin GmbH"},
                "existing": [{**BMW, "id": "loc-1"}],
                "aggregation": "weight_sum",
            },
        )
        match = resp.json()["matches"][0]
        assert match["match_reasons"] == ["Similar customer name (100% match)"]

    def test_invalid_aggregation(self, client):
        resp = client.post(
            "/api/duplicates/check",
            json={"candidate": BMW, "existing": [], "aggregation": "median"},
        )
        assert resp.status_code == 400

    def test_out_of_range_latitude_rejected(self, client):
        resp = client.post(
            "/api/duplicates/check",
            json={"candidate": {**BMW, "latitude": 123.0, "longitude": 13.4}, "existing": []},
        )
        assert resp.status_code == 422

    def test_missing_candidate(self, client):
        assert client.post("/api/duplicates/check", json={}).status_code == 422

    def test_database_unavailable(self, client, upstream_down):
        resp = client.post("/api/duplicates/check", json={"candidate": BMW})
        assert resp.status_code == 502


class TestDuplicateSearch:
    """POST /api/duplicates/search"""

    def test_remote_suggestions(self, client):
        resp = client.post("/api/duplicates/search", json={"query": "BMW Berlin"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_duplicate_suspected"] is True
        assert data["notice"] is None
        assert len(data["matches"]) == 2
        first = data["matches"][0]
        assert first["similarity"] == pytest.approx(0.92)
        assert first["match_reasons"] == [
            "92% confidence match",
            "Company name match",
            "Located in Berlin",
        ]

    def test_query_built_from_candidate(self, client):
        with patch("location_registry.upstream.match_address", return_value=[]) as match:
            resp = client.post("/api/duplicates/search", json={"candidate": BMW})
        assert resp.status_code == 200
        assert resp.json()["query"] == "BMW Berlin GmbH Hauptstr 1 Berlin 10115 Germany"
        match.assert_called_once_with("BMW Berlin GmbH Hauptstr 1 Berlin 10115 Germany")
        assert resp.json()["is_duplicate_suspected"] is False

    def test_requires_query_or_candidate(self, client):
        assert client.post("/api/duplicates/search", json={}).status_code == 400
        assert client.post("/api/duplicates/search", json={"query": "   "}).status_code == 400

    def test_service_down_reports_unique(self, client, upstream_down):
        resp = client.post("/api/duplicates/search", json={"query": "BMW Berlin"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["matches"] == []
        assert data["notice"] == "This location appears to be unique in our system."

    def test_null_results_reports_unique(self, client):
        resp_body = MagicMock(ok=True, status_code=200)
        resp_body.json.return_value = {"results": None}
        with patch("location_registry.upstream.match_address", side_effect=match_address):
            with patch("location_registry.upstream.requests.post", return_value=resp_body):
                resp = client.post("/api/duplicates/search", json={"query": "BMW"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["matches"] == []
        assert data["is_duplicate_suspected"] is False
        assert data["notice"] == "This location appears to be unique in our system."
