import logging
import time
from typing import Dict, Iterable

from app.domain.models.product import VendorMetrics
from app.domain.repositories.catalog_repo import CatalogSource
from app.domain.services.constants import KIND_VENDOR
from app.utils.cache import TTLCache
from app.utils.concurrency import bounded_gather

logger = logging.getLogger(__name__)

VENDOR_METRICS_TTL = 10 * 60  # seconds


class VendorMetricsProvider:
    """
    Per-vendor aggregates (average rating over all products, product count,
    all-time order count), cached under "vendor:<store_id>".
    Lookups never raise: a missing vendor or a failed read yields zeroed
    metrics so the vendor's products are scored with the default multiplier.
    """

    def __init__(self, repo: CatalogSource, cache: TTLCache, *, ttl: int = VENDOR_METRICS_TTL, concurrency: int = 16):
        self.repo = repo
        self.cache = cache
        self.ttl = ttl
        self.concurrency = concurrency

    @staticmethod
    def key(store_id: str) -> str:
        return f"{KIND_VENDOR}:{store_id}"

    async def get(self, store_id: str) -> VendorMetrics:
        cache_key = self.key(store_id)
        if (cached := self.cache.get(cache_key)) is not None:
            return cached

        t0 = time.perf_counter()
        try:
            store = await self.repo.get_store(store_id)
            if store is None:
                logger.warning("vendor_metrics store not found store_id=%s", store_id)
                return VendorMetrics()

            ratings = [r.rating for p in store.products for r in p.ratings]
            avg_rating = sum(ratings) / len(ratings) if ratings else 0.0
            total_orders = await self.repo.count_store_orders(store_id)
        except Exception as e:
            logger.warning("vendor_metrics read error store_id=%s err=%s", store_id, e)
            return VendorMetrics()

        metrics = VendorMetrics(
            avg_rating=avg_rating,
            total_products=len(store.products),
            total_orders=total_orders,
        )
        self.cache.set(cache_key, metrics, ttl=self.ttl)
        logger.debug(
            "vendor_metrics computed store_id=%s avg_rating=%.2f products=%s orders=%s time=%.3fs",
            store_id, metrics.avg_rating, metrics.total_products, metrics.total_orders, time.perf_counter() - t0,
        )
        return metrics

    async def get_many(self, store_ids: Iterable[str]) -> Dict[str, VendorMetrics]:
        """Fan out over the unique vendor ids; order of the input is irrelevant."""
        unique = list(dict.fromkeys(store_ids))
        results = await bounded_gather(self.get, unique, limit=self.concurrency)
        return dict(zip(unique, results))
