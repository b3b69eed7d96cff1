"""Cascading deletes.

A cascade resolves the relevance set of every root key, concatenates the
results and removes them with a single multi-key command: UNLINK (memory is
reclaimed in the background by the server, Redis >= 4) or DEL.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from relcache.cache.keys import encode_key, to_key_ref
from relcache.errors import InvalidKeyType, StoreCommandError
from relcache.observability.metrics import get_metrics

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from relcache.cache.relevance import RelevanceResolver


class DeleteMode(str, Enum):
    """Terminal store command of a cascade."""

    UNLINK = "unlink"
    DELETE = "delete"

    @property
    def command(self) -> str:
        return "UNLINK" if self is DeleteMode.UNLINK else "DEL"


class CascadeExecutor:
    """Turns root keys into one bulk deletion."""

    def __init__(
        self,
        client: Redis,
        resolver: RelevanceResolver,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.resolver = resolver
        self.logger = logger or logging.getLogger(__name__)
        self.metrics = get_metrics()

    async def collect(self, mode: DeleteMode, *keys: object) -> list[str]:
        """Resolve every root key and return the flat list of keys to delete.

        A root that cannot be resolved is logged and skipped so that it does
        not block the cleanup of the others.
        """
        command = mode.command
        collected: list[str] = []

        for value in keys:
            try:
                ref = to_key_ref(value)
            except InvalidKeyType as e:
                self.logger.warning(f"[{command}] invalid key {value!r}: {e}")
                continue

            self.logger.debug(f"[{command}] key is: {ref.key}")
            try:
                resolved = await self.resolver.resolve(ref)
            except (StoreCommandError, UnicodeError) as e:
                self.logger.warning(f"[{command}] failed to resolve {ref.key}: {e}")
                continue

            self.logger.debug(f"[{command}] factory keys are: {resolved!r}")
            collected.extend(resolved)

        return collected

    async def execute(self, mode: DeleteMode, *keys: object) -> int:
        """Delete the given keys and everything relevant to them.

        Returns:
            Number of keys the store reported as removed. 0 without a store
            round trip when nothing resolved.

        Raises:
            StoreCommandError: If the bulk deletion fails.
        """
        command = mode.command
        targets = await self.collect(mode, *keys)
        if not targets:
            self.logger.debug(f"[{command}] delete relevant caches are empty. skipped")
            return 0

        self.logger.debug(
            f"[{command}] delete relevant caches {targets!r}",
            extra={"cache_keys": targets, "mode": mode.value},
        )
        try:
            if mode is DeleteMode.UNLINK:
                removed = await self.client.unlink(*map(encode_key, targets))
            else:
                removed = await self.client.delete(*map(encode_key, targets))
        except RedisError as e:
            raise StoreCommandError(command, str(e)) from e

        self.metrics.cascade_operations_total.labels(mode=mode.value).inc()
        self.metrics.cascade_keys_total.labels(mode=mode.value).inc(len(targets))
        return int(removed)

    async def unlink(self, *keys: object) -> int:
        """Soft cascading delete."""
        return await self.execute(DeleteMode.UNLINK, *keys)

    async def delete(self, *keys: object) -> int:
        """Hard cascading delete."""
        return await self.execute(DeleteMode.DELETE, *keys)
