"""Stored value codec.

A value written through :meth:`RelevantCache.write_item` carries the list of
keys it is relevant to in front of the payload:

    MAGIC (4 bytes) | N (uint32, big endian) | N bytes of JSON array | payload

The metadata section is length-prefixed and the key names are JSON strings,
so neither payload bytes nor key names can break the framing. Values without
the header (written by a plain SET) decode to an empty relevance list.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable

import orjson

MAGIC = b"\x00rc\x01"
_LENGTH = struct.Struct(">I")
HEADER_SIZE = len(MAGIC) + _LENGTH.size


def encode(payload: bytes, relevant_keys: Iterable[str] = ()) -> bytes:
    """Pack relevant keys and payload into a stored value."""
    meta = orjson.dumps(list(relevant_keys))
    return MAGIC + _LENGTH.pack(len(meta)) + meta + payload


def _split(blob: bytes) -> tuple[list[str], bytes] | None:
    if len(blob) < HEADER_SIZE or not blob.startswith(MAGIC):
        return None

    (length,) = _LENGTH.unpack_from(blob, len(MAGIC))
    end = HEADER_SIZE + length
    if end > len(blob):
        return None

    try:
        keys = orjson.loads(blob[HEADER_SIZE:end])
    except orjson.JSONDecodeError:
        return None
    if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
        return None

    return keys, blob[end:]


def decode(blob: bytes) -> tuple[list[str], bytes]:
    """Split a stored value into ``(relevant_keys, payload)``.

    Blobs that do not carry a well-formed header are returned untouched with
    an empty relevance list.
    """
    parsed = _split(blob)
    if parsed is None:
        return [], blob
    return parsed


def has_metadata(blob: bytes) -> bool:
    """Whether the blob was written with relevance metadata."""
    return _split(blob) is not None
