"""Tests for health, stats and rule endpoints."""

import asyncio

from fastapi.testclient import TestClient

from news_aggregator.api.app import create_app


# ── Health / stats ──────────────────────────────────────


class TestHealth:
    def test_healthy_when_running(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["running"] is True
        assert "timestamp" in body
        assert "X-Request-ID" in response.headers

    def test_degraded_when_stopped(self, client, mock_service):
        mock_service.is_running = False
        assert client.get("/health").json()["status"] == "degraded"

    def test_without_service(self):
        client = TestClient(create_app())
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["running"] is False


class TestStats:
    def test_returns_cache_and_scheduler_stats(self, client):
        response = client.get("/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["total_cached_items"] == 7
        assert body["processed_count"] == 7
        assert body["retention_seconds"] == 86400
        assert body["cycles_skipped"] == 1
        assert body["last_cycle"]["outcome"] == "empty"

    def test_503_without_service(self):
        client = TestClient(create_app())
        assert client.get("/stats").status_code == 503


# ── Rules ───────────────────────────────────────────────


class TestRules:
    def test_list(self, client):
        body = client.get("/rules").json()

        assert body["total"] == 1
        assert body["rules"][0] == {
            "subscriber_id": "42",
            "categories": ["technology"],
            "keywords": ["bitcoin"],
            "tags": [],
            "enabled": True,
        }

    def test_get(self, client):
        assert client.get("/rules/42").json()["keywords"] == ["bitcoin"]

    def test_get_missing(self, client):
        assert client.get("/rules/nope").status_code == 404

    def test_put_creates(self, client):
        response = client.put("/rules/7", json={"tags": ["AI"], "keywords": ["nvidia"]})

        assert response.status_code == 200
        assert response.json()["tags"] == ["AI"]
        assert client.get("/rules").json()["total"] == 2

    def test_put_replaces_wholesale(self, client):
        client.put("/rules/42", json={"categories": ["sports"]})

        rule = client.get("/rules/42").json()
        assert rule["categories"] == ["sports"]
        assert rule["keywords"] == []

    def test_put_spec_syntax(self, client):
        response = client.put(
            "/rules/9",
            json={"spec": "category=politics keywords=election,senate", "enabled": False},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["categories"] == ["politics"]
        assert body["keywords"] == ["election", "senate"]
        assert body["enabled"] is False

    def test_put_empty_rule_rejected(self, client):
        assert client.put("/rules/9", json={}).status_code == 422

    def test_put_bad_spec_rejected(self, client):
        response = client.put("/rules/9", json={"spec": "colour=blue"})
        assert response.status_code == 422
        assert "Unknown rule key" in response.json()["detail"]

    def test_delete(self, client):
        assert client.delete("/rules/42").status_code == 204
        assert client.delete("/rules/42").status_code == 404
        assert client.get("/rules").json()["total"] == 0

    def test_rules_shared_with_pipeline(self, client, rules):
        """Rules written through the API are visible to the pipeline's store."""
        client.put("/rules/100", json={"keywords": ["eth"]})

        stored = asyncio.run(rules.get_rule("100"))
        assert stored is not None
        assert stored.keywords == frozenset({"eth"})
