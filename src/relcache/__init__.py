"""relcache: Redis cache with dependency-aware cascading invalidation."""

from relcache.cache import Item, RelevantCache
from relcache.errors import (
    CacheConnectionError,
    InvalidKeyType,
    NotFound,
    RelCacheError,
    StoreCommandError,
)

__version__ = "0.1.0"

__all__ = [
    "Item",
    "RelevantCache",
    "RelCacheError",
    "InvalidKeyType",
    "CacheConnectionError",
    "StoreCommandError",
    "NotFound",
]
