# app/api/deps.py
from fastapi import Depends, Request
from app.core.config import get_settings
from app.db.mongo import get_db
from app.domain.repositories.catalog_repo import CatalogRepo
from app.domain.services.recommendation_engine import RecommendationEngine
from app.utils.cache import TTLCache

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    # Returns the MongoDB database instance (async)
    return db

# Process-wide recommendation cache, owned by the application instance
def reco_cache_dep(request: Request) -> TTLCache:
    return request.app.state.reco_cache

def catalog_repo_dep(db = Depends(mongo_db)) -> CatalogRepo:
    return CatalogRepo(db)

def engine_dep(
    repo: CatalogRepo = Depends(catalog_repo_dep),
    cache: TTLCache = Depends(reco_cache_dep),
) -> RecommendationEngine:
    return RecommendationEngine(repo, cache, settings=get_settings())
