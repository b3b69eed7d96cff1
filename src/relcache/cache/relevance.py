"""Relevance graph resolution.

Every value written with :class:`~relcache.cache.keys.Item` embeds the keys it
is relevant to. The graph is never stored on its own: it is rebuilt by reading
the values one by one, depth-first, starting from a root key.

Each visited node costs one GET round trip, so relevance chains should stay
shallow (4 or 5 levels at most). Resolution is sequential; branches and SCAN
pages are never fetched in parallel.

Example:
    resolver = RelevanceResolver(redis_client)
    keys = await resolver.resolve("user:1")      # ["user:1", "users:list", ...]
    keys = await resolver.resolve("session:*")   # every session and its dependents
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, AsyncIterator

from redis.exceptions import RedisError, ResponseError

from relcache.cache import codec
from relcache.cache.keys import (
    KeyLike,
    PatternKey,
    decode_key,
    encode_key,
    is_pattern,
    to_key_ref,
)
from relcache.config import settings
from relcache.errors import StoreCommandError
from relcache.observability.metrics import get_metrics

if TYPE_CHECKING:
    from redis.asyncio import Redis


class _WrongTypeError(Exception):
    """The key exists but does not hold a string value."""


@dataclass
class _Walk:
    """State of one resolution.

    ``depths`` maps every expanded key to the shallowest depth it was expanded
    at. Once the depth limit has cut a branch, a key met again closer to the
    root is expanded again so that its cut descendants are reached.
    """

    depths: dict[str, int] = field(default_factory=dict)
    truncated: bool = False


class RelevanceResolver:
    """Walks the relevance graph from a root key.

    A key appears at most once in the result of one :meth:`resolve` call, so
    a cyclic graph terminates. Expansion also stops below ``max_depth``.
    """

    def __init__(
        self,
        client: Redis,
        scan_count: int | None = None,
        max_depth: int | None = None,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.scan_count = scan_count or settings.scan_count
        self.max_depth = max_depth or settings.max_depth
        self.logger = logger or logging.getLogger(__name__)
        self.metrics = get_metrics()

    async def resolve(self, key: KeyLike) -> list[str]:
        """Return every literal key reachable from ``key``, the root included.

        Only a :class:`~relcache.cache.keys.PatternKey` root is expanded with
        SCAN; a literal root is read as-is even if it contains ``*``. Missing
        keys contribute nothing. The result keeps depth-first order.

        Raises:
            InvalidKeyType: If ``key`` is not a valid key argument.
            StoreCommandError: If a GET or SCAN fails at the store.
        """
        ref = to_key_ref(key)
        kind = "pattern" if ref.is_pattern else "literal"

        start = time.perf_counter()
        try:
            if isinstance(ref, PatternKey):
                return await self._resolve_pattern(ref.key, _Walk(), 0)
            return await self._resolve_literal(ref.key, _Walk(), 0)
        finally:
            self.metrics.resolution_duration_seconds.labels(kind=kind).observe(
                time.perf_counter() - start
            )

    async def _resolve(self, key: str, walk: _Walk, depth: int) -> list[str]:
        # Relevance lists are plain strings read from the store
        if is_pattern(key):
            return await self._resolve_pattern(key, walk, depth)
        return await self._resolve_literal(key, walk, depth)

    async def _resolve_literal(self, key: str, walk: _Walk, depth: int) -> list[str]:
        seen_at = walk.depths.get(key)
        if seen_at is not None and (not walk.truncated or seen_at <= depth):
            self.logger.debug(f"[REL] {key} already visited, not expanding again")
            return []
        if depth > self.max_depth:
            self.logger.warning(
                f"[REL] relevance depth limit {self.max_depth} reached at {key}, "
                "not expanding further",
                extra={"cache_key": key, "depth": depth},
            )
            walk.truncated = True
            return []
        walk.depths[key] = depth

        # A key expanded again only contributes the descendants it missed
        resolved = [key] if seen_at is None else []
        try:
            blob = await self._get(key)
        except _WrongTypeError:
            # Hashes, lists and sets never carry relevance metadata
            self.logger.debug(f"[REL] {key} does not hold a string value, not expanding")
            return resolved
        if blob is None:
            # Expected when a dependent already expired or was deleted
            self.logger.debug(f"[REL] {key} not found, nothing to expand")
            self.metrics.missing_keys_total.inc()
            return []

        relevant, _ = codec.decode(blob)
        for relevant_key in relevant:
            resolved.extend(await self._resolve(relevant_key, walk, depth + 1))

        self.logger.debug(f"[REL] {key} is relevant to {resolved!r}")
        return resolved

    async def _resolve_pattern(self, pattern: str, walk: _Walk, depth: int) -> list[str]:
        resolved: list[str] = []
        async for key in self.scan(pattern):
            resolved.extend(await self._resolve_literal(key, walk, depth))

        self.logger.debug(f"[REL-ASTERISK] {pattern} is relevant to {resolved!r}")
        return resolved

    async def scan(self, pattern: str) -> AsyncIterator[str]:
        """Yield keys matching ``pattern`` page by page with SCAN."""
        cursor = 0
        while True:
            try:
                cursor, keys = await self.client.scan(
                    cursor=cursor, match=pattern, count=self.scan_count
                )
            except RedisError as e:
                raise StoreCommandError("SCAN", str(e)) from e

            for key in keys:
                yield decode_key(key)

            if int(cursor) == 0:
                break

    async def _get(self, key: str) -> bytes | None:
        try:
            value = await self.client.get(encode_key(key))
        except ResponseError as e:
            if str(e).startswith("WRONGTYPE"):
                raise _WrongTypeError(key) from e
            raise StoreCommandError("GET", str(e)) from e
        except RedisError as e:
            raise StoreCommandError("GET", str(e)) from e
        if isinstance(value, str):
            return value.encode("utf-8")
        return value
