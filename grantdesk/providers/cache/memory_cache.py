"""In-memory cache provider using cachetools.TTLCache.

Single-process cache for question embeddings.  Swap for a shared backend
through :class:`ICacheProvider` when running several workers.
"""

from __future__ import annotations

from typing import Any

import structlog
from cachetools import TTLCache

from grantdesk.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class MemoryCacheProvider(ICacheProvider):
    """TTL + LRU cache backed by ``cachetools.TTLCache``.

    Parameters
    ----------
    max_size:
        Entries kept before the least-recently-used one is evicted.
    ttl:
        Time-to-live in seconds for every entry.
    """

    def __init__(self, max_size: int = 1000, ttl: int = 3600) -> None:
        self._cache: TTLCache[str, Any] = TTLCache(maxsize=max_size, ttl=ttl)

    async def get(self, key: str) -> Any | None:
        value = self._cache.get(key)
        logger.debug("cache_hit" if value is not None else "cache_miss", key=key[:16])
        return value

    async def set(self, key: str, value: Any) -> None:
        self._cache[key] = value

    def __len__(self) -> int:
        return len(self._cache)
