"""Salt helpers.

Salts are uint32 values supplied by the caller. They are packed big-endian into
4 bytes before being stored on the filter, and those bytes feed the hash
directly, so the packing must stay byte-for-byte stable across runs.
"""
from __future__ import annotations

import secrets
from typing import Iterable, NewType

from saltbloom.config import SALT_BYTES

# Alias for readability; stored as a plain Python int in [0, 2**32).
Salt = NewType("Salt", int)

_SALT_MAX = (1 << (SALT_BYTES * 8)) - 1


def normalize_salt(value: int) -> Salt:
    """Check a salt fits in 32 bits and cast it to Salt."""
    value = int(value)
    if not 0 <= value <= _SALT_MAX:
        raise ValueError(f"salt {value} does not fit in 32 bits")
    return Salt(value)


def salt_to_bytes(salt: int) -> bytes:
    """Pack a uint32 salt as 4 bytes, most significant byte first."""
    return normalize_salt(salt).to_bytes(SALT_BYTES, byteorder="big", signed=False)


def salt_from_bytes(data: bytes) -> Salt:
    """Inverse of salt_to_bytes."""
    if len(data) != SALT_BYTES:
        raise ValueError(f"expected {SALT_BYTES} salt bytes, got {len(data)}")
    return Salt(int.from_bytes(data, byteorder="big", signed=False))


def pack_salts(salts: Iterable[int]) -> tuple[bytes, ...]:
    return tuple(salt_to_bytes(s) for s in salts)


def generate_salts(count: int) -> list[Salt]:
    """Draw `count` random 32-bit salts from the OS CSPRNG."""
    if count <= 0:
        raise ValueError("count must be positive")
    return [Salt(secrets.randbits(SALT_BYTES * 8)) for _ in range(count)]
