"""
Tests for the news ingestion route.

The ingestion service dependency is overridden with one built on the
scripted source and in-memory store, so no database or network is used.
"""

import pytest
from fastapi.testclient import TestClient

from app.api.routes import get_ingestion_service
from app.main import app
from app.services.ingestion import TransientFetchError, UpstreamStatusError
from app.services.news_ingestion import NewsIngestionService
from conftest import InMemoryArticleStore, ScriptedSource, make_page


@pytest.fixture
def wire(settings, sleep):
    """Install a service override; returns a factory taking the fetch script."""

    def install(script: list) -> ScriptedSource:
        source = ScriptedSource(script)
        service = NewsIngestionService(
            source=source,
            store=InMemoryArticleStore(),
            settings=settings,
            sleep=sleep,
        )
        app.dependency_overrides[get_ingestion_service] = lambda: service
        return source

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


class TestNewsRoute:

    def test_fetches_and_saves(self, client, wire):
        source = wire([
            make_page(10, "article", next_cursor="next-page-token", more=190),
            make_page(10, "next-article", next_cursor=None, more=0),
        ])

        response = client.get("/api/v1/news", params={"q": "TestQuery", "maxResults": "200"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["totalArticlesSaved"] == 20
        assert len(body["data"]["articleIds"]) == 20
        assert body["meta"]["query"] == "TestQuery"
        assert body["meta"]["hasMore"] is False
        assert body["meta"]["batchesProcessed"] == 2
        assert body["meta"]["progress"]["totalSaved"] == body["data"]["totalArticlesSaved"]
        assert len(source.calls) == 2
        assert source.calls[0] == ("first", "TestQuery", 100)

    def test_default_query(self, client, wire):
        source = wire([make_page(1, more=0)])

        response = client.get("/api/v1/news")

        assert response.status_code == 200
        assert response.json()["meta"]["query"] == "LightSpeed"
        assert source.calls[0][1] == "LightSpeed"

    def test_retries_exhausted_is_degraded_success(self, client, wire):
        wire([TransientFetchError("Network Error")] * 4)

        response = client.get("/api/v1/news", params={"q": "TestQuery"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["totalArticlesSaved"] == 0
        assert body["meta"]["totalErrors"] == 4
        assert body["meta"]["hasMore"] is False

    def test_upstream_status_error(self, client, wire):
        wire([
            make_page(10, next_cursor="/p2", more=50),
            UpstreamStatusError("Request failed with status code 429", status_code=429),
        ])

        response = client.get("/api/v1/news", params={"q": "TestQuery"})

        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["code"] == 429
        assert body["progress"] == {"totalFetched": 10, "totalSaved": 10, "batches": 1, "errors": 0}

    def test_unexpected_error_is_500(self, client, wire):
        wire([RuntimeError("boom")])

        response = client.get("/api/v1/news", params={"q": "TestQuery"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "An unexpected error occurred"
        assert body["progress"]["batches"] == 0

    def test_malformed_post_still_succeeds(self, client, wire):
        page = make_page(10, more=0)
        page["posts"][3]["published"] = "not a date"
        wire([page])

        response = client.get("/api/v1/news", params={"q": "TestQuery"})

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["totalArticlesSaved"] == 9
        assert body["meta"]["totalErrors"] == 1
        assert body["meta"]["progress"]["totalFetched"] == 10

    def test_invalid_max_results_uses_error_envelope(self, client, wire):
        source = wire([make_page(1, more=0)])

        response = client.get("/api/v1/news", params={"maxResults": "abc"})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["code"] == 422
        assert "maxResults" in body["error"]
        assert body["progress"] == {"totalFetched": 0, "totalSaved": 0, "batches": 0, "errors": 0}
        assert source.calls == []


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
