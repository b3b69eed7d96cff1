"""Cache layer for relcache.

Provides Redis caching with cascading invalidation:
- Items declare the keys they are relevant to
- Stored values embed that relevance list in front of the payload
- Deleting a key walks the relevance graph and removes everything reachable
- Wildcard keys are expanded with SCAN
"""

from relcache.cache.cascade import CascadeExecutor, DeleteMode
from relcache.cache.codec import decode, encode, has_metadata
from relcache.cache.keys import (
    Item,
    ItemRef,
    KeyLike,
    KeyRef,
    LiteralKey,
    PatternKey,
    resolve_key,
    to_key_ref,
)
from relcache.cache.redis import RelevantCache, close_cache, create_redis, get_cache
from relcache.cache.relevance import RelevanceResolver

__all__ = [
    # Core cache
    "RelevantCache",
    "create_redis",
    "get_cache",
    "close_cache",
    # Keys
    "Item",
    "ItemRef",
    "KeyLike",
    "KeyRef",
    "LiteralKey",
    "PatternKey",
    "resolve_key",
    "to_key_ref",
    # Value codec
    "encode",
    "decode",
    "has_metadata",
    # Cascading invalidation
    "CascadeExecutor",
    "DeleteMode",
    "RelevanceResolver",
]
