"""Error taxonomy for relcache.

All errors raised by the library derive from :class:`RelCacheError` so callers
can catch the whole family at once. Errors coming from redis-py are never
leaked directly; they are wrapped and chained.
"""

from __future__ import annotations


class RelCacheError(Exception):
    """Base exception for relcache errors."""


class InvalidKeyType(RelCacheError, TypeError):
    """A key argument was neither a string, an Item nor a key reference."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"cache key must be str, Item or KeyRef, got {type(value).__name__}: {value!r}"
        )


class CacheConnectionError(RelCacheError):
    """Connecting to the store or the liveness probe failed."""


class StoreCommandError(RelCacheError):
    """A store command failed."""

    def __init__(self, command: str, message: str):
        self.command = command
        super().__init__(f"{command} failed: {message}")


class NotFound(RelCacheError, KeyError):
    """The requested key (or hash field) does not exist in the store."""

    def __init__(self, key: str, field: str | None = None):
        self.key = key
        self.field = field
        super().__init__(key)

    def __str__(self) -> str:
        if self.field is not None:
            return f"field {self.field!r} not found in {self.key!r}"
        return f"key {self.key!r} not found"
