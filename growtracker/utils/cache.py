"""
Simple caching utilities for the plant list.

The dashboard, API list endpoint and CLI all read the full plant list; a short
TTL cache avoids a round trip to Supabase on every page view. Any write to a
plant invalidates the cache.
"""

from __future__ import annotations
from cachetools import TTLCache
from typing import Optional
import threading

PLANT_CACHE_TTL_SECONDS = 60
PLANT_CACHE_MAX_ENTRIES = 16

_PLANT_LIST_KEY = "plants:all"

_plant_cache = TTLCache(maxsize=PLANT_CACHE_MAX_ENTRIES, ttl=PLANT_CACHE_TTL_SECONDS)
_cache_lock = threading.Lock()


def configure_plant_cache(ttl_seconds: int) -> None:
    """Replace the cache with one using the configured TTL (0 disables caching)."""
    global _plant_cache
    with _cache_lock:
        _plant_cache = TTLCache(maxsize=PLANT_CACHE_MAX_ENTRIES, ttl=max(ttl_seconds, 0))


def get_cached_plants() -> Optional[list[dict]]:
    """Cached plant list, or None on a miss."""
    with _cache_lock:
        return _plant_cache.get(_PLANT_LIST_KEY)


def cache_plants(plants: list[dict]) -> None:
    with _cache_lock:
        if _plant_cache.ttl > 0:
            _plant_cache[_PLANT_LIST_KEY] = plants


def invalidate_plant_cache() -> None:
    """Drop cached plant queries. Call after any plant create/update/delete."""
    with _cache_lock:
        _plant_cache.clear()
