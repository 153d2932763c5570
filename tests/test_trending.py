"""Tests for the trending strategy."""

import asyncio

import pytest

from app.core.config import Settings
from app.domain.services.recommendation_engine import RecommendationEngine
from tests.conftest import NOW, InMemoryCatalog, make_order, make_product


@pytest.fixture
def catalog():
    products = [
        # vendor s1 averages 3.5 over all of its products -> multiplier 1.0
        make_product("t1", "s1", ratings=[4, 4], days_old=29),
        make_product("old", "s1", ratings=[3, 3], days_old=100),
        make_product("t2", "s2", days_old=1),
        make_product("t3", "s3", days_old=10, in_stock=False),
    ]
    orders = [make_order(f"o{i}", f"u{i}", "s1", ["t1"], days_ago=i + 1) for i in range(5)]
    orders.append(make_order("stale", "u9", "s1", ["t1", "old"], days_ago=40))
    return InMemoryCatalog(products=products, orders=orders)


def test_trending_score_scenario(catalog, make_engine):
    results = asyncio.run(make_engine(catalog).trending())

    t1 = next(p for p in results if p.product_id == "t1")
    assert t1.recent_orders == 5
    assert t1.vendor_score == 1.0
    assert t1.avg_product_rating == pytest.approx(4.0)
    # 0.4*5 + 0.3*1.0 + 0.2*4 + 0.1*(1 - 29/30)
    assert t1.score == pytest.approx(3.1033, abs=1e-3)


def test_only_in_stock_products_created_in_window(catalog, make_engine):
    results = asyncio.run(make_engine(catalog).trending(days=30))

    assert [p.product_id for p in results] == ["t1", "t2"]


def test_fresh_product_without_orders(catalog, make_engine):
    results = asyncio.run(make_engine(catalog).trending())

    t2 = next(p for p in results if p.product_id == "t2")
    assert t2.recent_orders == 0
    assert t2.vendor_score == 0.5
    assert t2.avg_product_rating == 0.0
    assert t2.score == pytest.approx(0.3 * 0.5 + 0.1 * (1 - 1 / 30))


def test_orders_outside_window_are_ignored(make_engine):
    catalog = InMemoryCatalog(
        products=[make_product("p", "s", days_old=5)],
        orders=[make_order("o", "u", "s", ["p"], days_ago=10)],
    )

    results = asyncio.run(make_engine(catalog).trending(days=7))

    assert results[0].recent_orders == 0


def test_diversity_cap_applies(make_engine):
    catalog = InMemoryCatalog(products=[make_product(f"p{i}", "only", days_old=i + 1) for i in range(5)])

    results = asyncio.run(make_engine(catalog).trending(max_per_vendor=3))

    # newest first via recency boost, capped at three for the single vendor
    assert [p.product_id for p in results] == ["p0", "p1", "p2"]


def test_trending_cached_for_fifteen_minutes(catalog, make_engine, clock):
    engine = make_engine(catalog)
    first = asyncio.run(engine.trending(limit=5))

    clock.advance(14 * 60)
    assert asyncio.run(engine.trending(limit=5)) == first
    assert catalog.calls["list_products"] == 1

    clock.advance(2 * 60)
    asyncio.run(engine.trending(limit=5))
    assert catalog.calls["list_products"] == 2


def test_data_store_failure_propagates(catalog, make_engine):
    async def broken(*args, **kwargs):
        raise ConnectionError("orders down")

    catalog.count_product_order_items = broken

    with pytest.raises(ConnectionError):
        asyncio.run(make_engine(catalog).trending())


def test_window_defaults_to_configured_trending_days(cache):
    catalog = InMemoryCatalog(
        products=[make_product("fresh", "s", days_old=3), make_product("older", "s", days_old=10)],
        orders=[make_order("o", "u", "s", ["fresh"], days_ago=9), make_order("o2", "u", "s", ["fresh"], days_ago=2)],
    )
    engine = RecommendationEngine(catalog, cache, settings=Settings(trending_days=7), now=lambda: NOW)

    results = asyncio.run(engine.trending())

    assert [p.product_id for p in results] == ["fresh"]
    assert results[0].recent_orders == 1
    assert any(k.endswith(":7") for k in cache.stats()["keys"])
