"""Tests for the idscope HTTP API."""

from __future__ import annotations

from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from idscope.api.main import app, get_orchestrator
from idscope.core.data_models import Platform, SearchQuery, SearchResult
from idscope.core.error_recovery import QueryValidationError
from idscope.core.orchestrator import SearchReport
from idscope.core.platforms import PlatformRegistry


class FakeOrchestrator:
    """Records queries and returns canned results."""

    def __init__(self, results: Optional[List[SearchResult]] = None, error: Exception = None):
        self.registry = PlatformRegistry([Platform("GitHub", "https://github.com/{username}")])
        self.results = results or []
        self.error = error
        self.queries: List[SearchQuery] = []

    async def search(self, query: SearchQuery, *, deadline=None) -> SearchReport:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return SearchReport(query=query, results=self.results, platforms_searched=1)


@pytest.fixture
def fake():
    return FakeOrchestrator(
        results=[
            SearchResult(
                platform="GitHub",
                url="https://github.com/janedoe",
                username="janedoe",
                found=True,
                category="professional",
                confidence=94,
                match_reasons=("Identity Handle Correspondence", "Geographic Entity Match"),
                scraped_bio="Designer in Oslo",
            )
        ]
    )


@pytest.fixture
def client(fake):
    app.dependency_overrides[get_orchestrator] = lambda: fake
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_platforms(client):
    response = client.get("/api/platforms")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["platforms"][0]["name"] == "GitHub"


def test_search_success(client, fake):
    response = client.post(
        "/api/search",
        json={
            "query": "Jane Doe",
            "location": "Oslo",
            "ageRange": {"min": 25, "max": 35},
            "gender": "female",
            "platforms": ["GitHub"],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["results"][0]["url"] == "https://github.com/janedoe"
    assert body["results"][0]["matchReasons"] == [
        "Identity Handle Correspondence",
        "Geographic Entity Match",
    ]
    assert body["query"] == {
        "query": "Jane Doe",
        "location": "Oslo",
        "ageRange": {"min": 25, "max": 35},
        "gender": "female",
        "platforms": ["GitHub"],
    }
    assert fake.queries[0].platform_filter == frozenset({"GitHub"})


def test_search_min_max_age_aliases(client, fake):
    response = client.post("/api/search", json={"query": "jane", "minAge": 20, "maxAge": 30})
    assert response.status_code == 200
    assert response.json()["query"]["ageRange"] == {"min": 20, "max": 30}


@pytest.mark.parametrize("payload", [{}, {"query": ""}, {"query": "   "}, {"location": "Oslo"}])
def test_search_requires_query(client, fake, payload):
    response = client.post("/api/search", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Identity query required"}
    assert fake.queries == []


def test_search_invalid_age_range(client, fake):
    response = client.post("/api/search", json={"query": "jane", "minAge": 40, "maxAge": 20})
    assert response.status_code == 400
    assert "error" in response.json()
    assert fake.queries == []


def test_search_malformed_body(client):
    response = client.post("/api/search", json={"query": "jane", "platforms": "GitHub"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid search request"}


def test_search_engine_failure_is_generic(client, fake):
    fake.error = RuntimeError("database password is hunter2")
    response = client.post("/api/search", json={"query": "jane"})
    assert response.status_code == 500
    assert response.json() == {"error": "OSINT Engine Failure"}


def test_search_rejected_by_engine(client, fake):
    fake.error = QueryValidationError("No known platforms selected")
    response = client.post("/api/search", json={"query": "jane", "platforms": ["Nope"]})
    assert response.status_code == 400
    assert response.json() == {"error": "No known platforms selected"}
