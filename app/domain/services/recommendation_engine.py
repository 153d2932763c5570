import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from app.core.config import Settings, get_settings
from app.domain.models.product import Product, ScoredProduct
from app.domain.repositories.catalog_repo import CatalogSource
from app.domain.repositories.reco_product_cache_repo import RecoProductsCacheRepo
from app.domain.services.constants import (
    KIND_PERSONALIZED,
    KIND_RELATED,
    KIND_TRENDING,
    PERSONAL_CATEGORY_WEIGHT,
    PERSONAL_MAX_PER_VENDOR,
    PERSONAL_TAG_WEIGHT,
    PERSONALIZED_LIMIT,
    RELATED_LIMIT,
    RELATED_MAX_PER_VENDOR,
    TRENDING_LIMIT,
    TRENDING_MAX_PER_VENDOR,
    TRENDING_ORDERS_WEIGHT,
    TRENDING_RATING_WEIGHT,
    TRENDING_RECENCY_WEIGHT,
    TRENDING_VENDOR_WEIGHT,
)
from app.domain.services.filters import ensure_vendor_diversity
from app.domain.services.similarity import TagSet, content_score, vendor_reliability
from app.domain.services.vendor_metrics_svc import VendorMetricsProvider
from app.utils.cache import TTLCache
from app.utils.concurrency import bounded_gather
from app.utils.fallback import with_fallback

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # Mongo hands back naive UTC datetimes unless the client is tz-aware
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def _non_negative(score: float) -> float:
    return score if math.isfinite(score) and score > 0 else 0.0


class RecommendationEngine:
    """
    Hybrid content + vendor-performance recommender.

    Three strategies share the same shape:
      cache check → catalog reads → scoring (vendor metrics fanned out
      concurrently) → stable sort by score → vendor diversity cap → slice → cache write.

    The cache is injected so that one process-wide instance can be shared
    across requests while tests use isolated instances with a fake clock.
    """

    def __init__(
        self,
        repo: CatalogSource,
        cache: TTLCache,
        *,
        settings: Optional[Settings] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.repo = repo
        self.cache = cache
        self.settings = settings or get_settings()
        self.now = now or _utcnow
        self.vendors = VendorMetricsProvider(
            repo,
            cache,
            ttl=self.settings.vendor_metrics_cache_ttl,
            concurrency=self.settings.fanout_concurrency,
        )
        self._related_cache = RecoProductsCacheRepo(cache, key_prefix=KIND_RELATED)
        self._trending_cache = RecoProductsCacheRepo(cache, key_prefix=KIND_TRENDING)
        self._personalized_cache = RecoProductsCacheRepo(cache, key_prefix=KIND_PERSONALIZED)

    @staticmethod
    def _rank(scored: Iterable[ScoredProduct], max_per_vendor: int, limit: int) -> List[ScoredProduct]:
        # sorted() is stable, ties keep catalog order
        ranked = sorted(scored, key=lambda p: p.score, reverse=True)
        return ensure_vendor_diversity(ranked, max_per_vendor)[:limit]

    # ---- Related ------------------------------------------------------------

    async def related(
        self,
        product_id: str,
        *,
        limit: int = RELATED_LIMIT,
        max_per_vendor: int = RELATED_MAX_PER_VENDOR,
        include_vendor_boost: bool = True,
    ) -> List[ScoredProduct]:
        t0 = time.perf_counter()
        logger.info(
            "related start product_id=%s limit=%s max_per_vendor=%s vendor_boost=%s",
            product_id, limit, max_per_vendor, include_vendor_boost,
        )

        cache_key = self._related_cache.key(product_id, limit, max_per_vendor, str(include_vendor_boost).lower())
        if (cached := self._related_cache.get(cache_key)) is not None:
            logger.info("related cache_hit key=%s items=%s", cache_key, len(cached))
            return cached
        logger.info("related cache_miss key=%s", cache_key)

        src = await self.repo.get_product(product_id)
        if src is None:
            logger.warning("related product not found product_id=%s", product_id)
            return []

        src_tags = TagSet.from_product(src)
        candidates = await self.repo.list_products(exclude_ids=[product_id], in_stock=True)
        logger.debug("related candidates product_id=%s n=%s src_tags=%s", product_id, len(candidates), list(src_tags))

        metrics = await self.vendors.get_many(p.store_id for p in candidates) if include_vendor_boost else {}

        scored: List[ScoredProduct] = []
        for p in candidates:
            c_score = content_score(src_tags, src.category, TagSet.from_product(p), p.category)
            multiplier = vendor_reliability(metrics[p.store_id].avg_rating) if include_vendor_boost else 1.0
            scored.append(ScoredProduct.from_product(
                p,
                score=_non_negative(c_score * multiplier),
                content_score=c_score,
                vendor_multiplier=multiplier,
            ))

        results = self._rank(scored, max_per_vendor, limit)
        self._related_cache.set(cache_key, results, ttl=self.settings.related_cache_ttl)
        logger.info(
            "related done product_id=%s items=%s total_time=%.3fs",
            product_id, len(results), time.perf_counter() - t0,
        )
        return results

    # ---- Trending -----------------------------------------------------------

    async def trending(
        self,
        *,
        limit: int = TRENDING_LIMIT,
        max_per_vendor: int = TRENDING_MAX_PER_VENDOR,
        days: Optional[int] = None,
    ) -> List[ScoredProduct]:
        t0 = time.perf_counter()
        if days is None:
            days = self.settings.trending_days
        logger.info("trending start limit=%s max_per_vendor=%s days=%s", limit, max_per_vendor, days)

        cache_key = self._trending_cache.key(limit, max_per_vendor, days)
        if (cached := self._trending_cache.get(cache_key)) is not None:
            logger.info("trending cache_hit key=%s items=%s", cache_key, len(cached))
            return cached
        logger.info("trending cache_miss key=%s", cache_key)

        now = _as_utc(self.now())
        cutoff = now - timedelta(days=days)
        # Only products created inside the window are eligible
        candidates = await self.repo.list_products(in_stock=True, created_after=cutoff)

        async def _recent_orders(p: Product) -> int:
            return await self.repo.count_product_order_items(p.product_id, since=cutoff, until=now)

        db_t0 = time.perf_counter()
        recent_counts = await bounded_gather(_recent_orders, candidates, limit=self.settings.fanout_concurrency)
        metrics = await self.vendors.get_many(p.store_id for p in candidates)
        logger.info(
            "trending db_ok candidates=%s vendors=%s db_time=%.3fs",
            len(candidates), len(metrics), time.perf_counter() - db_t0,
        )

        scored: List[ScoredProduct] = []
        for p, recent_orders in zip(candidates, recent_counts):
            vendor_score = vendor_reliability(metrics[p.store_id].avg_rating)
            avg_product_rating = p.avg_rating
            age_days = (now - _as_utc(p.created_at)).total_seconds() / SECONDS_PER_DAY
            recency_boost = min(1.0, max(0.0, 1 - age_days / days)) if days > 0 else 0.0
            # recent_orders is an unbounded count and dominates on purpose
            trending_score = (
                TRENDING_ORDERS_WEIGHT * recent_orders
                + TRENDING_VENDOR_WEIGHT * vendor_score
                + TRENDING_RATING_WEIGHT * avg_product_rating
                + TRENDING_RECENCY_WEIGHT * recency_boost
            )
            scored.append(ScoredProduct.from_product(
                p,
                score=_non_negative(trending_score),
                recent_orders=recent_orders,
                vendor_score=vendor_score,
                avg_product_rating=avg_product_rating,
            ))

        results = self._rank(scored, max_per_vendor, limit)
        self._trending_cache.set(cache_key, results, ttl=self.settings.trending_cache_ttl)
        logger.info("trending done items=%s total_time=%.3fs", len(results), time.perf_counter() - t0)
        return results

    # ---- Personalized -------------------------------------------------------

    async def personalized(self, user_id: str, *, limit: int = PERSONALIZED_LIMIT) -> List[ScoredProduct]:
        """
        Purchase-history recommendations. Any failure degrades to the trending
        list for the same limit; personalization is never a hard dependency.
        """
        return await with_fallback(
            lambda: self._personalized(user_id, limit=limit),
            lambda: self.trending(limit=limit),
            label=f"personalized user_id={user_id}",
        )

    async def _personalized(self, user_id: str, *, limit: int) -> List[ScoredProduct]:
        t0 = time.perf_counter()
        logger.info("personalized start user_id=%s limit=%s", user_id, limit)

        cache_key = self._personalized_cache.key(user_id, limit)
        if (cached := self._personalized_cache.get(cache_key)) is not None:
            logger.info("personalized cache_hit key=%s items=%s", cache_key, len(cached))
            return cached
        logger.info("personalized cache_miss key=%s", cache_key)

        orders = await self.repo.list_user_orders(user_id, limit=self.settings.history_orders)
        purchased_ids = list(dict.fromkeys(item.product_id for o in orders for item in o.items))
        if not purchased_ids:
            logger.info("personalized cold_start user_id=%s, serving trending", user_id)
            return await self.trending(limit=limit)

        purchased = await self.repo.get_products_by_ids(purchased_ids)
        preferred_categories = {p.category for p in purchased if p.category}
        preferred_tags = set()
        for p in purchased:
            if p.color:
                preferred_tags.add(p.color)
            preferred_tags.update(s for s in p.sizes if s)
        logger.debug(
            "personalized profile user_id=%s purchased=%s categories=%s tags=%s",
            user_id, len(purchased_ids), sorted(preferred_categories), sorted(preferred_tags),
        )

        candidates = await self.repo.list_products(exclude_ids=purchased_ids, in_stock=True)
        metrics = await self.vendors.get_many(p.store_id for p in candidates)

        scored: List[ScoredProduct] = []
        for p in candidates:
            category_match = 1.0 if p.category and p.category in preferred_categories else 0.0
            if preferred_tags:
                overlap = sum(1 for tag in TagSet.from_product(p) if tag in preferred_tags)
                tag_score = min(overlap / len(preferred_tags), 1.0)
            else:
                tag_score = 0.0
            c_score = PERSONAL_CATEGORY_WEIGHT * category_match + PERSONAL_TAG_WEIGHT * tag_score
            multiplier = vendor_reliability(metrics[p.store_id].avg_rating)
            scored.append(ScoredProduct.from_product(
                p,
                score=_non_negative(c_score * multiplier),
                content_score=c_score,
                vendor_multiplier=multiplier,
            ))

        results = self._rank(scored, PERSONAL_MAX_PER_VENDOR, limit)
        self._personalized_cache.set(cache_key, results, ttl=self.settings.personalized_cache_ttl)
        logger.info(
            "personalized done user_id=%s items=%s total_time=%.3fs",
            user_id, len(results), time.perf_counter() - t0,
        )
        return results
