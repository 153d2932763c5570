import logging
import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.exceptions import InvalidRecommendationRequest
from app.domain.models.product import ScoredProduct
from app.domain.services.constants import (
    ALL_KINDS,
    KIND_PERSONALIZED,
    KIND_RELATED,
    KIND_TRENDING,
    QUERY_DEFAULT_LIMIT,
    QUERY_DEFAULT_MAX_PER_VENDOR,
    QUERY_DEFAULT_TYPE,
)
from app.domain.services.recommendation_engine import RecommendationEngine

logger = logging.getLogger(__name__)


class RecommendationQuery(BaseModel):
    type: str = QUERY_DEFAULT_TYPE
    product_id: Optional[str] = None
    user_id: Optional[str] = None
    limit: int = Field(QUERY_DEFAULT_LIMIT, ge=1)
    max_per_vendor: int = Field(QUERY_DEFAULT_MAX_PER_VENDOR, ge=1)

    model_config = {"frozen": True}


async def _dispatch(engine: RecommendationEngine, q: RecommendationQuery) -> List[ScoredProduct]:
    if q.type == KIND_RELATED:
        if not q.product_id:
            raise InvalidRecommendationRequest("productId is required for related recommendations")
        return await engine.related(
            q.product_id,
            limit=q.limit,
            max_per_vendor=q.max_per_vendor,
            include_vendor_boost=True,
        )

    if q.type == KIND_TRENDING:
        return await engine.trending(limit=q.limit, max_per_vendor=q.max_per_vendor)

    if q.type == KIND_PERSONALIZED:
        if not q.user_id:
            # Guests get trending products
            logger.info("personalized without user_id, serving trending")
            return await engine.trending(limit=q.limit, max_per_vendor=q.max_per_vendor)
        return await engine.personalized(q.user_id, limit=q.limit)

    raise InvalidRecommendationRequest(
        f"Invalid type: {q.type}. Must be {', '.join(repr(k) for k in ALL_KINDS)}",
        details={"allowed": list(ALL_KINDS)},
    )


async def run_query(engine: RecommendationEngine, q: RecommendationQuery) -> Dict[str, Any]:
    """
    Map a request onto its strategy and shape the response as
    {type, count, products}, with scoring fields removed from every product.
    """
    t0 = time.perf_counter()
    results = await _dispatch(engine, q)
    products = [p.public_view() for p in results]
    logger.info(
        "query done type=%s product_id=%s user_id=%s count=%s elapsed_time=%.4fs",
        q.type, q.product_id, q.user_id, len(products), time.perf_counter() - t0,
    )
    return {"type": q.type, "count": len(products), "products": products}
