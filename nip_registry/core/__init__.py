"""Koordynacja wyszukiwania NIP i cache."""

from .cache import CACHE_KEY_PREFIX, CacheBackend, MemoryCache, SQLiteCache, cache_key
from .orchestrator import NIPLookupService, build_lookup_service

__all__ = [
    "CACHE_KEY_PREFIX",
    "CacheBackend",
    "MemoryCache",
    "SQLiteCache",
    "cache_key",
    "NIPLookupService",
    "build_lookup_service",
]
