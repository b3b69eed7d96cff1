"""Cache keys and cacheable items.

Key arguments are accepted in three shapes and resolved once, at the API
boundary, into a :data:`KeyRef`:

- ``LiteralKey``: a plain key such as ``user:1``
- ``PatternKey``: a key containing the wildcard marker ``*`` (``user:*``),
  expanded against the keyspace with SCAN
- ``ItemRef``: an :class:`Item`, whose ``key`` is used

Example:
    item = Item("user:1", b"...", ttl=60, relevant_keys=("users:list",))
    ref = to_key_ref(item)      # ItemRef(item=...)
    ref.key                     # "user:1"
    to_key_ref("user:*")        # PatternKey(pattern="user:*")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

from relcache.errors import InvalidKeyType

WILDCARD = "*"


def is_pattern(key: str) -> bool:
    """Whether the key denotes a set of keys rather than a single entry."""
    return WILDCARD in key


def decode_key(raw: bytes | str) -> str:
    """Text form of a key read back from the store.

    Redis keys are binary-safe. Bytes that are not valid UTF-8 are kept as
    lone surrogates so that :func:`encode_key` restores the exact key.
    """
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="surrogateescape")
    return raw


def encode_key(key: str) -> str | bytes:
    """Key argument for the client. Bytes only for keys holding escaped bytes."""
    try:
        key.encode("utf-8")
    except UnicodeEncodeError:
        return key.encode("utf-8", errors="surrogateescape")
    return key


@dataclass(frozen=True)
class Item:
    """A cache entry that knows which other keys it is relevant to.

    Deleting any of ``relevant_keys``' parents (through a cascading delete of
    this item's key) also deletes the relevant keys.
    """

    key: str
    payload: bytes
    ttl: int = 0  # seconds, 0 = no expiration
    relevant_keys: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.key, str):
            raise InvalidKeyType(self.key)
        if is_pattern(self.key):
            raise ValueError(f"item key must be literal, got pattern {self.key!r}")
        if self.ttl < 0:
            raise ValueError(f"ttl must be non-negative, got {self.ttl}")
        if isinstance(self.payload, str):
            object.__setattr__(self, "payload", self.payload.encode("utf-8"))
        # Accept any iterable of keys but store an immutable tuple
        keys = tuple(self.relevant_keys)
        for key in keys:
            if not isinstance(key, str):
                raise InvalidKeyType(key)
        object.__setattr__(self, "relevant_keys", keys)

    @classmethod
    def create(
        cls,
        key: str,
        payload: bytes | str,
        ttl: int = 0,
        relevant_keys: Iterable[str | Item] = (),
    ) -> Item:
        """Build an item, accepting other items as relevant keys."""
        return cls(
            key=key,
            payload=payload,  # type: ignore[arg-type]
            ttl=ttl,
            relevant_keys=tuple(resolve_key(k) for k in relevant_keys),
        )


@dataclass(frozen=True)
class LiteralKey:
    """A single key in the store."""

    value: str

    @property
    def key(self) -> str:
        return self.value

    is_pattern = False


@dataclass(frozen=True)
class PatternKey:
    """A glob-style pattern resolved against the keyspace at delete time."""

    pattern: str

    @property
    def key(self) -> str:
        return self.pattern

    is_pattern = True


@dataclass(frozen=True)
class ItemRef:
    """Reference to a key through the item that owns it."""

    item: Item

    @property
    def key(self) -> str:
        return self.item.key

    is_pattern = False


KeyRef = Union[LiteralKey, PatternKey, ItemRef]

KeyLike = Union[str, Item, LiteralKey, PatternKey, ItemRef]


def to_key_ref(value: object) -> KeyRef:
    """Resolve a caller-supplied key argument into a :data:`KeyRef`.

    Raises:
        InvalidKeyType: If the value is not a str, Item or KeyRef.
    """
    if isinstance(value, (LiteralKey, PatternKey, ItemRef)):
        return value
    if isinstance(value, Item):
        return ItemRef(value)
    if isinstance(value, str):
        return PatternKey(value) if is_pattern(value) else LiteralKey(value)
    raise InvalidKeyType(value)


def resolve_key(value: object) -> str:
    """Return the canonical store key for a key argument."""
    return to_key_ref(value).key
