# app/domain/repositories/catalog_repo.py

from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from app.domain.models.product import Order, Product, Rating, Store

logger = logging.getLogger(__name__)


def _to_product(doc: Dict[str, Any]) -> Product:
    """Validate a product document, dropping rating rows that fail validation."""
    ratings = []
    for row in doc.get("ratings") or []:
        try:
            ratings.append(Rating.model_validate(row))
        except ValidationError:
            logger.warning(
                "skipping invalid rating product_id=%s user_id=%s rating=%r",
                doc.get("product_id"), row.get("user_id"), row.get("rating"),
            )
    return Product.model_validate({**doc, "ratings": ratings})


class CatalogSource(Protocol):
    """Read-only catalog access the recommendation engine depends on."""

    async def get_product(self, product_id: str) -> Optional[Product]: ...

    async def list_products(
        self,
        *,
        exclude_ids: Optional[Sequence[str]] = None,
        in_stock: Optional[bool] = True,
        created_after: Optional[datetime] = None,
    ) -> List[Product]: ...

    async def get_products_by_ids(self, ids: Sequence[str]) -> List[Product]: ...

    async def get_store(self, store_id: str) -> Optional[Store]: ...

    async def count_store_orders(self, store_id: str) -> int: ...

    async def list_user_orders(self, user_id: str, limit: int = 10) -> List[Order]: ...

    async def count_product_order_items(
        self, product_id: str, *, since: datetime, until: Optional[datetime] = None
    ) -> int: ...


class CatalogRepo:
    """
    Catalog repository backed by the storefront collections:
      products  { product_id, store_id, category, color, sizes, in_stock, created_at, ... }
      ratings   { product_id, user_id, rating, created_at }
      stores    { store_id, name, ... }
      orders    { order_id, user_id, store_id, created_at, items: [{product_id, quantity, price}] }
    Ratings are joined onto products with $lookup; order items are embedded in orders.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        *,
        products: str = "products",
        ratings: str = "ratings",
        stores: str = "stores",
        orders: str = "orders",
    ):
        self.products = db[products]
        self.stores = db[stores]
        self.orders = db[orders]
        self._ratings_name = ratings
        self._stores_name = stores

    # ----- Pipeline fragments ------------------------------------------------

    def _with_ratings(self) -> List[Dict[str, Any]]:
        return [
            {"$lookup": {
                "from": self._ratings_name,
                "localField": "product_id",
                "foreignField": "product_id",
                "as": "ratings",
            }},
            {"$project": {"_id": 0, "ratings._id": 0}},
        ]

    def _with_store_summary(self) -> List[Dict[str, Any]]:
        return [
            {"$lookup": {
                "from": self._stores_name,
                "localField": "store_id",
                "foreignField": "store_id",
                "as": "store",
            }},
            {"$unwind": {"path": "$store", "preserveNullAndEmptyArrays": True}},
            # StoreSummary keeps store_id and name, other store fields are ignored
            {"$project": {"store._id": 0}},
        ]

    # ----- Products ----------------------------------------------------------

    async def get_product(self, product_id: str) -> Optional[Product]:
        pipeline = [
            {"$match": {"product_id": product_id}},
            {"$limit": 1},
            *self._with_ratings(),
            *self._with_store_summary(),
        ]
        docs = await self.products.aggregate(pipeline).to_list(length=1)
        return _to_product(docs[0]) if docs else None

    async def list_products(
        self,
        *,
        exclude_ids: Optional[Sequence[str]] = None,
        in_stock: Optional[bool] = True,
        created_after: Optional[datetime] = None,
    ) -> List[Product]:
        match: Dict[str, Any] = {}
        if exclude_ids:
            match["product_id"] = {"$nin": list(exclude_ids)}
        if in_stock is not None:
            match["in_stock"] = in_stock
        if created_after is not None:
            match["created_at"] = {"$gte": created_after}

        pipeline = [{"$match": match}, *self._with_ratings()]
        docs = await self.products.aggregate(pipeline).to_list(length=None)
        return [_to_product(d) for d in docs]

    async def get_products_by_ids(self, ids: Sequence[str]) -> List[Product]:
        if not ids:
            return []
        pipeline = [{"$match": {"product_id": {"$in": list(ids)}}}, *self._with_ratings()]
        docs = await self.products.aggregate(pipeline).to_list(length=None)
        return [_to_product(d) for d in docs]

    # ----- Stores ------------------------------------------------------------

    async def get_store(self, store_id: str) -> Optional[Store]:
        doc = await self.stores.find_one({"store_id": store_id}, {"_id": 0, "store_id": 1, "name": 1})
        if not doc:
            return None
        pipeline = [{"$match": {"store_id": store_id}}, *self._with_ratings()]
        products = await self.products.aggregate(pipeline).to_list(length=None)
        return Store.model_validate({**doc, "products": [_to_product(p) for p in products]})

    async def count_store_orders(self, store_id: str) -> int:
        return await self.orders.count_documents({"store_id": store_id})

    # ----- Orders ------------------------------------------------------------

    async def list_user_orders(self, user_id: str, limit: int = 10) -> List[Order]:
        cursor = (
            self.orders.find({"user_id": user_id}, {"_id": 0})
            .sort("created_at", -1)
            .limit(limit)
        )
        return [Order.model_validate(d) async for d in cursor]

    async def count_product_order_items(
        self, product_id: str, *, since: datetime, until: Optional[datetime] = None
    ) -> int:
        """Number of order lines for the product whose parent order falls in [since, until]."""
        created: Dict[str, Any] = {"$gte": since}
        if until is not None:
            created["$lte"] = until
        pipeline = [
            {"$match": {"created_at": created, "items.product_id": product_id}},
            {"$unwind": "$items"},
            {"$match": {"items.product_id": product_id}},
            {"$count": "n"},
        ]
        docs = await self.orders.aggregate(pipeline).to_list(length=1)
        return int(docs[0]["n"]) if docs else 0
