"""Shared fixtures: an in-memory catalog, a controllable clock and engine factories."""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

import pytest

from app.core.config import Settings
from app.domain.models.product import Order, OrderItem, Product, Rating, Store, StoreSummary
from app.domain.services.recommendation_engine import RecommendationEngine
from app.utils.cache import TTLCache

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


def make_product(
    product_id: str,
    store_id: str,
    *,
    category: Optional[str] = "Electronics",
    color: Optional[str] = None,
    sizes: Sequence[str] = (),
    ratings: Sequence[float] = (),
    days_old: float = 1,
    in_stock: bool = True,
    price: float = 10.0,
) -> Product:
    return Product(
        product_id=product_id,
        name=f"Product {product_id}",
        category=category,
        color=color,
        sizes=list(sizes),
        price=price,
        mrp=price * 1.2,
        in_stock=in_stock,
        created_at=NOW - timedelta(days=days_old),
        store_id=store_id,
        ratings=[
            Rating(user_id=f"rater-{i}", product_id=product_id, rating=r)
            for i, r in enumerate(ratings)
        ],
    )


def make_order(
    order_id: str,
    user_id: str,
    store_id: str,
    product_ids: Iterable[str],
    *,
    days_ago: float = 1,
) -> Order:
    return Order(
        order_id=order_id,
        user_id=user_id,
        store_id=store_id,
        created_at=NOW - timedelta(days=days_ago),
        items=[OrderItem(product_id=pid) for pid in product_ids],
    )


class InMemoryCatalog:
    """CatalogSource backed by plain lists; counts calls and can be told to fail."""

    def __init__(self, products=(), stores=None, orders=()):
        self.products: List[Product] = list(products)
        self.stores = dict(stores or {})
        for p in self.products:
            self.stores.setdefault(p.store_id, f"Store {p.store_id}")
        self.orders: List[Order] = list(orders)
        self.failing_stores = set()
        self.fail_user_orders = False
        self.calls = Counter()

    async def get_product(self, product_id):
        self.calls["get_product"] += 1
        for p in self.products:
            if p.product_id == product_id:
                return p.model_copy(update={"store": StoreSummary(store_id=p.store_id, name=self.stores[p.store_id])})
        return None

    async def list_products(self, *, exclude_ids=None, in_stock=True, created_after=None):
        self.calls["list_products"] += 1
        excluded = set(exclude_ids or ())
        return [
            p for p in self.products
            if p.product_id not in excluded
            and (in_stock is None or p.in_stock == in_stock)
            and (created_after is None or p.created_at >= created_after)
        ]

    async def get_products_by_ids(self, ids):
        self.calls["get_products_by_ids"] += 1
        wanted = set(ids)
        return [p for p in self.products if p.product_id in wanted]

    async def get_store(self, store_id):
        self.calls["get_store"] += 1
        if store_id in self.failing_stores:
            raise RuntimeError(f"store {store_id} unreadable")
        if store_id not in self.stores:
            return None
        return Store(
            store_id=store_id,
            name=self.stores[store_id],
            products=[p for p in self.products if p.store_id == store_id],
        )

    async def count_store_orders(self, store_id):
        self.calls["count_store_orders"] += 1
        return sum(1 for o in self.orders if o.store_id == store_id)

    async def list_user_orders(self, user_id, limit=10):
        self.calls["list_user_orders"] += 1
        if self.fail_user_orders:
            raise ConnectionError("orders collection unavailable")
        mine = sorted((o for o in self.orders if o.user_id == user_id), key=lambda o: o.created_at, reverse=True)
        return mine[:limit]

    async def count_product_order_items(self, product_id, *, since, until=None):
        self.calls["count_product_order_items"] += 1
        return sum(
            1
            for o in self.orders
            if o.created_at >= since and (until is None or o.created_at <= until)
            for item in o.items
            if item.product_id == product_id
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def make_engine(cache, settings):
    def _make(catalog: InMemoryCatalog) -> RecommendationEngine:
        return RecommendationEngine(catalog, cache, settings=settings, now=lambda: NOW)
    return _make
