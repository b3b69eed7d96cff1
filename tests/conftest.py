"""Global pytest configuration and fixtures.

Provides an in-memory stand-in for the subset of ``redis.asyncio.Redis``
used by relcache, so unit tests run without a server.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Any

import pytest
from redis.exceptions import ResponseError

WRONGTYPE = "WRONGTYPE Operation against a key holding the wrong kind of value"


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return str(value).encode("utf-8")


def _to_key(key: Any) -> str:
    # Undecodable bytes are kept as lone surrogates, as relcache itself does
    return key.decode("utf-8", errors="surrogateescape") if isinstance(key, bytes) else str(key)


def _to_raw(key: str) -> bytes:
    return key.encode("utf-8", errors="surrogateescape")


class FakeRedis:
    """Dict-backed async Redis double.

    Every command is appended to ``commands`` as ``(name, args)`` so tests can
    assert on round trips.
    """

    def __init__(self) -> None:
        self.strings: dict[str, bytes] = {}
        self.hashes: dict[str, dict[str, bytes]] = {}
        self.ttls: dict[str, int] = {}
        self.commands: list[tuple[str, tuple[Any, ...]]] = []
        self.closed = False

    def command_names(self) -> list[str]:
        return [name for name, _ in self.commands]

    def _all_keys(self) -> list[str]:
        return sorted(set(self.strings) | set(self.hashes))

    def _remove(self, keys: tuple[Any, ...]) -> int:
        removed = 0
        for raw in keys:
            key = _to_key(raw)
            if self.strings.pop(key, None) is not None or self.hashes.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def ping(self) -> bool:
        self.commands.append(("PING", ()))
        return True

    async def get(self, key: str) -> bytes | None:
        self.commands.append(("GET", (key,)))
        key = _to_key(key)
        if key in self.hashes:
            raise ResponseError(WRONGTYPE)
        return self.strings.get(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        self.commands.append(("SET", (key, value, ex)))
        self.hashes.pop(key, None)
        self.strings[key] = _to_bytes(value)
        if ex:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    async def mget(self, keys: list[str]) -> list[bytes | None]:
        self.commands.append(("MGET", tuple(keys)))
        return [self.strings.get(k) for k in keys]

    async def delete(self, *keys: Any) -> int:
        self.commands.append(("DEL", keys))
        return self._remove(keys)

    async def unlink(self, *keys: Any) -> int:
        self.commands.append(("UNLINK", keys))
        return self._remove(keys)

    async def scan(
        self, cursor: int = 0, match: str | None = None, count: int | None = None
    ) -> tuple[int, list[bytes]]:
        self.commands.append(("SCAN", (cursor, match, count)))
        keys = self._all_keys()
        page = keys[cursor : cursor + (count or 10)]
        next_cursor = cursor + len(page)
        if next_cursor >= len(keys):
            next_cursor = 0
        matched = [_to_raw(k) for k in page if match is None or fnmatchcase(k, match)]
        return next_cursor, matched

    async def keys(self, pattern: str = "*") -> list[bytes]:
        self.commands.append(("KEYS", (pattern,)))
        return [_to_raw(k) for k in self._all_keys() if fnmatchcase(k, pattern)]

    async def incr(self, key: str) -> int:
        self.commands.append(("INCR", (key,)))
        value = int(self.strings.get(key, b"0")) + 1
        self.strings[key] = str(value).encode("utf-8")
        return value

    async def hset(self, key: str, field: str, value: Any) -> int:
        self.commands.append(("HSET", (key, field, value)))
        if key in self.strings:
            raise ResponseError(WRONGTYPE)
        fields = self.hashes.setdefault(key, {})
        added = 0 if field in fields else 1
        fields[field] = _to_bytes(value)
        return added

    async def hget(self, key: str, field: str) -> bytes | None:
        self.commands.append(("HGET", (key, field)))
        return self.hashes.get(key, {}).get(field)

    async def hlen(self, key: str) -> int:
        self.commands.append(("HLEN", (key,)))
        return len(self.hashes.get(key, {}))

    async def flushdb(self, asynchronous: bool = False) -> bool:
        self.commands.append(("FLUSHDB", (asynchronous,)))
        self.strings.clear()
        self.hashes.clear()
        self.ttls.clear()
        return True

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Fresh in-memory Redis double."""
    return FakeRedis()
