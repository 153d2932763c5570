"""Tests for the HTTP endpoints.

The Mongo-backed engine is replaced with one reading the in-memory
catalog, so no database is needed.
"""

import pytest
from fastapi.testclient import TestClient

from app.api.deps import engine_dep, reco_cache_dep
from app.domain.models.product import INTERNAL_FIELDS
from app.main import app
from tests.conftest import InMemoryCatalog, make_product


@pytest.fixture
def catalog():
    return InMemoryCatalog(products=[
        make_product("p1", "s1", category="Electronics", color="black"),
        make_product("p2", "s2", category="Electronics", color="black", ratings=[5]),
        make_product("p3", "s2", category="Electronics", color="white"),
        make_product("p4", "s2", category="Clothing", color="red"),
    ])


@pytest.fixture
def client(catalog, make_engine, cache):
    engine = make_engine(catalog)
    app.dependency_overrides[engine_dep] = lambda: engine
    app.dependency_overrides[reco_cache_dep] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_trending_is_the_default(client):
    response = client.get("/api/recommendations")

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "trending"
    assert data["count"] == len(data["products"])
    # default maxPerVendor=2
    assert sum(1 for p in data["products"] if p["store_id"] == "s2") == 2


def test_related_returns_public_product_views(client):
    response = client.get("/api/recommendations", params={"type": "related", "productId": "p1", "limit": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "related"
    assert data["products"][0]["product_id"] == "p2"
    for product in data["products"]:
        assert not INTERNAL_FIELDS & set(product)


def test_related_without_product_id_is_400(client):
    response = client.get("/api/recommendations", params={"type": "related"})

    assert response.status_code == 400
    assert response.json() == {"error": "productId is required for related recommendations"}


def test_unknown_type_is_400(client):
    response = client.get("/api/recommendations", params={"type": "popular"})

    assert response.status_code == 400
    assert "Invalid type: popular" in response.json()["error"]


def test_invalid_limit_is_400(client):
    response = client.get("/api/recommendations", params={"limit": "lots"})

    assert response.status_code == 400
    assert "error" in response.json()


def test_large_limit_is_accepted(client):
    response = client.get("/api/recommendations", params={"limit": 200, "maxPerVendor": 80})

    assert response.status_code == 200
    assert response.json()["count"] == 4


def test_zero_limit_is_400(client):
    response = client.get("/api/recommendations", params={"limit": 0})

    assert response.status_code == 400


def test_related_for_unknown_product_is_empty(client):
    response = client.get("/api/recommendations", params={"type": "related", "productId": "missing"})

    assert response.status_code == 200
    assert response.json() == {"type": "related", "count": 0, "products": []}


def test_personalized_guest_falls_back_to_trending(client):
    guest = client.get("/api/recommendations", params={"type": "personalized"}).json()
    trending = client.get("/api/recommendations", params={"type": "trending"}).json()

    assert guest["products"] == trending["products"]


def test_unexpected_failure_is_500_with_details(cache):
    class BrokenEngine:
        async def trending(self, **kwargs):
            raise RuntimeError("catalog unreachable")

    app.dependency_overrides[engine_dep] = lambda: BrokenEngine()
    app.dependency_overrides[reco_cache_dep] = lambda: cache
    try:
        response = TestClient(app).get("/api/recommendations")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Failed to fetch recommendations"
    assert data["details"]["error"] == "catalog unreachable"


def test_cache_stats_and_clear(client):
    client.get("/api/recommendations", params={"type": "related", "productId": "p1"})

    stats = client.get("/api/recommendations/cache").json()
    assert any(k.startswith("related:p1:") for k in stats["keys"])
    assert stats["size"] == len(stats["keys"])

    cleared = client.delete("/api/recommendations/cache", params={"pattern": "related:"}).json()
    assert cleared == {"cleared": 1, "pattern": "related:"}

    remaining = client.get("/api/recommendations/cache").json()["keys"]
    assert not any(k.startswith("related:") for k in remaining)

    assert client.delete("/api/recommendations/cache").json()["pattern"] is None
    assert client.get("/api/recommendations/cache").json() == {"size": 0, "keys": []}


def test_health_reports_cache_and_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] in {"ok", "error"}
    assert "cache_entries" in data["checks"]
    assert "mongodb" in data["checks"]
