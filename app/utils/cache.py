import time
from typing import Any, Callable, Dict, List, Optional, Tuple

DEFAULT_TTL = 5 * 60  # seconds


class TTLCache:
    """
    In-process key/value store with a per-entry expiry.
    Expiry is checked lazily on read; there is no background sweep and no
    locking (single event loop, last writer wins).
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() > expires_at:
            # stale: purge on read
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + ttl)

    def clear(self, pattern: Optional[str] = None) -> int:
        """
        Without a pattern, drop everything.
        With a pattern, drop every key containing it (e.g. "related:" or a product id).
        Returns the number of removed entries.
        """
        if not pattern:
            removed = len(self._entries)
            self._entries.clear()
            return removed
        keys = [k for k in self._entries if pattern in k]
        for k in keys:
            del self._entries[k]
        return len(keys)

    def stats(self) -> Dict[str, Any]:
        keys: List[str] = list(self._entries)
        return {"size": len(keys), "keys": keys}

    def __len__(self) -> int:
        return len(self._entries)
