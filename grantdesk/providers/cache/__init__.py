"""Cache provider implementations."""

from grantdesk.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
