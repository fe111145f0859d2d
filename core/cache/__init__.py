"""Cache Module - Caching services."""
from core.cache.match_cache import (
    MatchResultCache,
    CACHE_TTL_SECONDS
)

__all__ = [
    'MatchResultCache',
    'CACHE_TTL_SECONDS'
]
