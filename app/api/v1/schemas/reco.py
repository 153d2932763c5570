# api/v1/schemas/reco.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class RecommendationsOut(BaseModel):
    type: str
    count: int
    products: List[Dict[str, Any]] = Field(default_factory=list)

class CacheStatsOut(BaseModel):
    size: int
    keys: List[str]

class CacheClearOut(BaseModel):
    cleared: int
    pattern: Optional[str] = None

class ErrorOut(BaseModel):
    error: str
    details: Optional[Any] = None
