"""32-bit hash primitives used to derive bit positions.

Each call builds its own hash state: the salt bytes go in first, then the
element bytes, and the 32-bit digest comes out. Nothing is shared between calls.
"""
from __future__ import annotations

from typing import Callable

import mmh3

Hash32 = Callable[[bytes, bytes], int]

FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF


def fnv1_32(salt: bytes, data: bytes) -> int:
    """FNV-1 (multiply then xor) over salt + data."""
    h = FNV32_OFFSET_BASIS
    for chunk in (salt, data):
        for byte in chunk:
            h = (h * FNV32_PRIME) & _MASK32
            h ^= byte
    return h


def murmur3_32(salt: bytes, data: bytes) -> int:
    """MurmurHash3 x86_32 over salt + data, unsigned."""
    return mmh3.hash(salt + data, seed=0, signed=False)


# Name -> (wire id, function). Wire ids are persisted, never renumber them.
HASHERS: dict[str, tuple[int, Hash32]] = {
    "fnv1": (0, fnv1_32),
    "murmur3": (1, murmur3_32),
}


def get_hasher(name: str) -> Hash32:
    try:
        return HASHERS[name][1]
    except KeyError:
        raise ValueError(f"unknown hash function {name!r}, expected one of {sorted(HASHERS)}") from None


def hash_id(name: str) -> int:
    try:
        return HASHERS[name][0]
    except KeyError:
        raise ValueError(f"unknown hash function {name!r}") from None


def hash_name(wire_id: int) -> str:
    for name, (hid, _) in HASHERS.items():
        if hid == wire_id:
            return name
    raise KeyError(wire_id)
