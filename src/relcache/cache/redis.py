"""Redis-backed cache with cascading invalidation.

:class:`RelevantCache` is a thin async façade over ``redis.asyncio``: reads
and writes map to single store commands, while :meth:`RelevantCache.delete`
and :meth:`RelevantCache.unlink` first walk the relevance graph and then remove
every reachable key in one round trip.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar, Union
from urllib.parse import urlparse

import redis.asyncio as redis
from redis.exceptions import RedisError

from relcache.cache import codec
from relcache.cache.cascade import CascadeExecutor, DeleteMode
from relcache.cache.keys import Item, KeyLike, decode_key, resolve_key
from relcache.cache.relevance import RelevanceResolver
from relcache.config import Settings
from relcache.config import settings as default_settings
from relcache.errors import CacheConnectionError, NotFound, StoreCommandError

if TYPE_CHECKING:
    from redis.asyncio import Redis

T = TypeVar("T")

RawValue = Union[bytes, str, int, float]

TLS_SCHEME = "rediss"

# Module-level cache shared by the CLI and application code
_cache: RelevantCache | None = None


def create_redis(
    url: str,
    skip_tls_verify: bool = False,
    socket_timeout: float | None = None,
) -> Redis:
    """Create a Redis client for ``url``.

    ``rediss://`` URLs connect over TLS and verify the server certificate
    against the URL host unless ``skip_tls_verify`` is set.
    """
    options: dict[str, object] = {
        "decode_responses": False,  # We're storing bytes
        "socket_timeout": socket_timeout,
    }
    if urlparse(url).scheme == TLS_SCHEME:
        options["ssl_cert_reqs"] = "none" if skip_tls_verify else "required"
        options["ssl_check_hostname"] = not skip_tls_verify
    return redis.from_url(url, **options)  # type: ignore[no-untyped-call]


async def get_cache() -> RelevantCache:
    """Get or create the shared cache, connecting with the global settings."""
    global _cache
    if _cache is None:
        _cache = await RelevantCache.connect()
    return _cache


async def close_cache() -> None:
    """Close the shared cache."""
    global _cache
    if _cache is not None:
        await _cache.close()
        _cache = None


class RelevantCache:
    """Cache operations with dependency-aware invalidation.

    Key arguments accept a plain key, a pattern (deletes only), an
    :class:`~relcache.cache.keys.Item` or a key reference.
    """

    def __init__(
        self,
        client: Redis,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.settings = settings or default_settings
        self.logger = logger or logging.getLogger(__name__)
        self.resolver = RelevanceResolver(
            client,
            scan_count=self.settings.scan_count,
            max_depth=self.settings.max_depth,
            logger=logger,
        )
        self.cascade = CascadeExecutor(client, self.resolver, logger=logger)

    @classmethod
    async def connect(
        cls,
        url: str | None = None,
        *,
        skip_tls_verify: bool | None = None,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
    ) -> RelevantCache:
        """Connect to the store and check it answers PING.

        Raises:
            CacheConnectionError: If the connection or the liveness probe fails.
        """
        settings = settings or default_settings
        url = url or settings.redis_url
        if skip_tls_verify is None:
            skip_tls_verify = settings.skip_tls_verify

        try:
            client = create_redis(url, skip_tls_verify, settings.socket_timeout)
        except ValueError as e:
            raise CacheConnectionError(f"invalid Redis URL {url!r}: {e}") from e

        try:
            pong = await client.ping()
        except (RedisError, OSError) as e:
            await client.aclose()
            raise CacheConnectionError(f"failed to connect to {urlparse(url).hostname}: {e}") from e
        if pong is not True and pong not in (b"PONG", "PONG"):
            await client.aclose()
            raise CacheConnectionError("failed to receive PONG from server")

        return cls(client, settings=settings, logger=logger)

    async def close(self) -> None:
        """Close the connection."""
        await self.client.aclose()

    async def __aenter__(self) -> RelevantCache:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _execute(self, command: str, result: Awaitable[T]) -> T:
        try:
            return await result
        except RedisError as e:
            raise StoreCommandError(command, str(e)) from e

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, key: KeyLike) -> bytes:
        """Get the payload stored at ``key``, without relevance metadata.

        Raises:
            NotFound: If the key does not exist.
        """
        cache_key = resolve_key(key)
        blob = await self._execute("GET", self.client.get(cache_key))
        if blob is None:
            raise NotFound(cache_key)
        _, payload = codec.decode(blob)
        return payload

    async def get_many(self, *keys: KeyLike) -> list[bytes | None]:
        """Get several payloads in one round trip.

        The result follows the order of ``keys``; missing keys yield None.
        """
        cache_keys = [resolve_key(k) for k in keys]
        if not cache_keys:
            return []
        blobs = await self._execute("MGET", self.client.mget(cache_keys))
        return [None if blob is None else codec.decode(blob)[1] for blob in blobs]

    async def relevant_keys(self, key: KeyLike) -> list[str]:
        """Keys a cascading delete of ``key`` would remove."""
        return await self.resolver.resolve(key)

    async def dump(self) -> list[str]:
        """List every key in the database. Debugging aid, uses KEYS."""
        keys = await self._execute("KEYS", self.client.keys("*"))
        return sorted(decode_key(k) for k in keys)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def write_item(self, item: Item) -> None:
        """Store an item together with the keys it is relevant to."""
        self.logger.debug(
            f"[SET] cache key {item.key} is relevant to {list(item.relevant_keys)!r}",
            extra={"cache_key": item.key, "relevant_keys": list(item.relevant_keys)},
        )
        value = codec.encode(item.payload, item.relevant_keys)
        await self._set(item.key, value, item.ttl)

    async def write_raw(self, key: str, value: RawValue) -> None:
        """Store a plain value without expiration or relevance metadata."""
        await self._set(key, value, 0)

    async def write_raw_with_ttl(self, key: str, value: RawValue, ttl: int) -> None:
        """Store a plain value expiring after ``ttl`` seconds (0 = never)."""
        if ttl < 0:
            raise ValueError(f"ttl must be non-negative, got {ttl}")
        await self._set(key, value, ttl)

    async def _set(self, key: str, value: RawValue, ttl: int) -> None:
        if ttl > 0:
            await self._execute("SETEX", self.client.set(key, value, ex=ttl))
        else:
            await self._execute("SET", self.client.set(key, value))

    async def increment(self, key: KeyLike) -> int:
        """Increment the integer stored at ``key``."""
        return int(await self._execute("INCR", self.client.incr(resolve_key(key))))

    # -------------------------------------------------------------------------
    # Cascading deletes
    # -------------------------------------------------------------------------

    async def delete(self, *keys: KeyLike) -> int:
        """Delete keys and every key relevant to them (DEL)."""
        return await self.cascade.execute(DeleteMode.DELETE, *keys)

    async def unlink(self, *keys: KeyLike) -> int:
        """Delete keys and every key relevant to them (UNLINK, Redis >= 4)."""
        return await self.cascade.execute(DeleteMode.UNLINK, *keys)

    async def purge(self) -> None:
        """Drop every key of the database asynchronously."""
        await self._execute("FLUSHDB", self.client.flushdb(asynchronous=True))
        self.logger.info("Purged all cache entries")

    # -------------------------------------------------------------------------
    # Hashes
    # -------------------------------------------------------------------------

    async def hset(self, key: KeyLike, field: str, value: RawValue) -> int:
        """Set a hash field. Returns the number of fields added."""
        return int(await self._execute("HSET", self.client.hset(resolve_key(key), field, value)))

    async def hget(self, key: KeyLike, field: str) -> bytes:
        """Get a hash field.

        Raises:
            NotFound: If the key or the field does not exist.
        """
        cache_key = resolve_key(key)
        value = await self._execute("HGET", self.client.hget(cache_key, field))
        if value is None:
            raise NotFound(cache_key, field)
        return value

    async def hlen(self, key: KeyLike) -> int:
        """Number of fields in a hash."""
        return int(await self._execute("HLEN", self.client.hlen(resolve_key(key))))

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        try:
            await self.client.ping()
            return True
        except (RedisError, OSError):
            return False
