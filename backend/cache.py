"""GuardianAI Backend — TTL caches for provider lookups"""

import logging
import threading
from typing import Any, Optional

from cachetools import TTLCache

logger = logging.getLogger("guardian.cache")


class ProviderCache:
    """Thread-safe wrapper around cachetools.TTLCache with hit/miss logging."""

    def __init__(self, name: str, ttl: int, max_size: int = 500):
        self.name = name
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._cache.get(key)
        if value is not None:
            logger.debug(f"{self.name} cache hit: {key}")
        return value

    def set(self, key: str, value: Any):
        with self._lock:
            self._cache[key] = value

    def clear(self):
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


directions_cache = ProviderCache("directions", ttl=900)      # 15 min, traffic changes
places_cache = ProviderCache("places", ttl=86400)            # 24 hours
place_phone_cache = ProviderCache("place_phone", ttl=604800)  # 7 days


def clear_all():
    for c in (directions_cache, places_cache, place_phone_cache):
        c.clear()
