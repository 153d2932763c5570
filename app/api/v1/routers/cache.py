# app/api/v1/routers/cache.py
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from app.api.deps import reco_cache_dep
from app.api.v1.schemas.reco import CacheClearOut, CacheStatsOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations/cache", tags=["recommendations-cache"])

@router.get("", response_model=CacheStatsOut)
async def cache_stats(cache = Depends(reco_cache_dep)):
    """Entry count and keys of the recommendation cache (observability only)."""
    return cache.stats()

@router.delete("", response_model=CacheClearOut)
async def cache_clear(
    pattern: Optional[str] = Query(None, description="Drop keys containing this text, e.g. 'related:' or a product id"),
    cache = Depends(reco_cache_dep),
):
    cleared = cache.clear(pattern)
    logger.info("cache cleared pattern=%s entries=%s", pattern, cleared)
    return {"cleared": cleared, "pattern": pattern}
