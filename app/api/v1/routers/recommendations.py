# app/api/v1/routers/recommendations.py
from fastapi import APIRouter, Depends, Query
from typing import Optional
import time
import logging

from app.api.deps import engine_dep
from app.api.v1.schemas.reco import ErrorOut, RecommendationsOut
from app.core.exceptions import RecommendationError, RecommendationServiceError
from app.domain.services.constants import QUERY_DEFAULT_LIMIT, QUERY_DEFAULT_MAX_PER_VENDOR, QUERY_DEFAULT_TYPE
from app.domain.services.query_svc import RecommendationQuery, run_query

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])

@router.get(
    "/recommendations",
    response_model=RecommendationsOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
async def get_recommendations(
    type: str = Query(QUERY_DEFAULT_TYPE, description="related | trending | personalized"),
    product_id: Optional[str] = Query(None, alias="productId", description="Required for related"),
    user_id: Optional[str] = Query(None, alias="userId", description="Guests fall back to trending"),
    limit: int = Query(QUERY_DEFAULT_LIMIT, ge=1),
    max_per_vendor: int = Query(QUERY_DEFAULT_MAX_PER_VENDOR, alias="maxPerVendor", ge=1),
    engine = Depends(engine_dep),
):
    """
    Ranked product recommendations.
    Scoring fields are stripped; callers only see product records.
    """
    logger.info(
        "Request: recommendations type=%s, product_id=%s, user_id=%s, limit=%s, max_per_vendor=%s",
        type, product_id, user_id, limit, max_per_vendor,
    )
    start_time = time.perf_counter()

    query = RecommendationQuery(
        type=type,
        product_id=product_id,
        user_id=user_id,
        limit=limit,
        max_per_vendor=max_per_vendor,
    )
    try:
        res = await run_query(engine, query)
    except RecommendationError:
        raise
    except Exception as e:
        logger.error(
            "recommendations failed type=%s product_id=%s user_id=%s err=%s",
            type, product_id, user_id, e, exc_info=True,
        )
        raise RecommendationServiceError(type, e) from e

    elapsed_time = time.perf_counter() - start_time
    logger.info("Response: recommendations type=%s, count=%s, elapsed_time=%.4fs", type, res["count"], elapsed_time)
    return res
