"""Tests for hash primitives and salt packing."""

import pytest

from saltbloom.hashing.hashers import (
    FNV32_OFFSET_BASIS,
    fnv1_32,
    get_hasher,
    hash_id,
    hash_name,
    murmur3_32,
)
from saltbloom.types.salt_types import (
    generate_salts,
    normalize_salt,
    pack_salts,
    salt_from_bytes,
    salt_to_bytes,
)


def test_fnv1_known_vectors():
    assert fnv1_32(b"", b"") == FNV32_OFFSET_BASIS
    assert fnv1_32(b"", b"a") == 0x050C5D7E


def test_salt_is_prefixed_to_element():
    assert fnv1_32(b"fo", b"obar") == fnv1_32(b"", b"foobar")
    assert fnv1_32(b"\x00\x00\x00\x01", b"x") != fnv1_32(b"\x00\x00\x00\x02", b"x")
    assert murmur3_32(b"fo", b"o") == murmur3_32(b"", b"foo")


def test_murmur3_is_unsigned_32bit():
    assert murmur3_32(b"", b"foo") == 4138058784
    for data in (b"", b"a", b"hello world" * 10):
        assert 0 <= murmur3_32(b"salt", data) < 2**32


def test_hasher_registry():
    assert get_hasher("fnv1") is fnv1_32
    assert get_hasher("murmur3") is murmur3_32
    assert hash_name(hash_id("murmur3")) == "murmur3"
    with pytest.raises(ValueError):
        get_hasher("sha1")
    with pytest.raises(KeyError):
        hash_name(99)


def test_salt_packing_is_big_endian():
    assert salt_to_bytes(0x01020304) == b"\x01\x02\x03\x04"
    assert salt_to_bytes(0) == b"\x00\x00\x00\x00"
    assert salt_to_bytes(0xFFFFFFFF) == b"\xff\xff\xff\xff"
    assert salt_from_bytes(b"\xde\xad\xbe\xef") == 0xDEADBEEF
    assert pack_salts([1, 256]) == (b"\x00\x00\x00\x01", b"\x00\x00\x01\x00")


def test_salt_range_checked():
    with pytest.raises(ValueError):
        normalize_salt(2**32)
    with pytest.raises(ValueError):
        normalize_salt(-1)
    with pytest.raises(ValueError):
        salt_from_bytes(b"\x00\x01")


def test_generate_salts():
    salts = generate_salts(11)
    assert len(salts) == 11
    assert all(0 <= s < 2**32 for s in salts)
    with pytest.raises(ValueError):
        generate_salts(0)
