from typing import Iterable, List, Optional
from app.domain.models.product import ScoredProduct
from app.utils.cache import TTLCache

class RecoProductsCacheRepo:
    """
    Adapter for caching ranked recommendation lists in the in-process cache.
    Stores and retrieves lists of ScoredProduct objects.
    """
    def __init__(self, cache: TTLCache, key_prefix: str):
        """
        Args:
            cache: process-wide TTLCache instance
            key_prefix: strategy namespace (e.g. 'related', 'trending', 'personalized')
        """
        self.cache = cache
        self.prefix = key_prefix

    def key(self, *parts) -> str:
        """
        Build a readable, deterministic key: "<prefix>:<part>:<part>...".
        Parts stay in clear text so substring invalidation by kind, product id
        or user id keeps working.
        """
        return ":".join([self.prefix, *(str(p) for p in parts)])

    def get(self, key: str) -> Optional[List[ScoredProduct]]:
        """
        Retrieve a ranked list by key.
        Returns None on miss or expiry.
        """
        cached = self.cache.get(key)
        if cached is None:
            return None
        return list(cached)

    def set(self, key: str, items: Iterable[ScoredProduct], ttl: int) -> None:
        """Store a ranked list under the given key with a TTL in seconds."""
        self.cache.set(key, tuple(items), ttl=ttl)
