"""Binary codec for persisted Bloom filters.

Layout (little-endian):

    magic(4) version(u16) hash_id(u8) word_bits(u8)
    capacity(u32) elements(u32) bits(u64)
    word_count(u32) words(word_count * u32)
    salt_count(u32) { salt_len(u32) salt_bytes }*
    crc32(u32) over everything before it
"""
from __future__ import annotations

import logging
import os
import struct
import zlib
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from saltbloom.config import FILE_MAGIC, FORMAT_VERSION, WORD_BITS
from saltbloom.errors import DecodeError, EncodeError
from saltbloom.hashing.hashers import hash_id, hash_name

logger = logging.getLogger(__name__)

HEADER_FMT = "<4sHBBIIQ"
HEADER_SIZE = struct.calcsize(HEADER_FMT)  # 24
COUNT_FMT = "<I"
COUNT_SIZE = 4
CRC_SIZE = 4
WORD_DTYPE = np.dtype("<u4")

_U32_MAX = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class FilterRecord:
    """Complete persisted state of one filter."""
    capacity: int
    elements: int
    bits: int
    words: np.ndarray
    salts: Tuple[bytes, ...]
    hash_name: str = "fnv1"


def _check_range(value: int, limit: int, what: str) -> None:
    if not 0 <= value <= limit:
        raise EncodeError(f"{what} {value} does not fit the persisted layout (max {limit})")


def encode(record: FilterRecord) -> bytes:
    """Encode a record, CRC trailer included.

    Raises EncodeError when a field overflows its fixed-width slot.
    """
    _check_range(record.capacity, _U32_MAX, "capacity")
    _check_range(record.elements, _U32_MAX, "element count")
    _check_range(record.bits, _U64_MAX, "bit width")
    _check_range(len(record.salts), _U32_MAX, "salt count")
    for i, salt in enumerate(record.salts):
        _check_range(len(salt), _U32_MAX, f"salt {i} length")
    try:
        wire_hash = hash_id(record.hash_name)
    except ValueError as exc:
        raise EncodeError(str(exc)) from None
    words = np.ascontiguousarray(record.words, dtype=WORD_DTYPE)
    parts = [
        struct.pack(
            HEADER_FMT,
            FILE_MAGIC,
            FORMAT_VERSION,
            wire_hash,
            WORD_BITS,
            record.capacity,
            record.elements,
            record.bits,
        ),
        struct.pack(COUNT_FMT, words.size),
        words.tobytes(),
        struct.pack(COUNT_FMT, len(record.salts)),
    ]
    for salt in record.salts:
        parts.append(struct.pack(COUNT_FMT, len(salt)))
        parts.append(bytes(salt))
    body = b"".join(parts)
    return body + struct.pack(COUNT_FMT, zlib.crc32(body) & 0xFFFFFFFF)


def _read_count(data: bytes, offset: int, what: str) -> Tuple[int, int]:
    if offset + COUNT_SIZE > len(data):
        raise DecodeError(f"truncated data while reading {what} at offset {offset}")
    (value,) = struct.unpack_from(COUNT_FMT, data, offset)
    return value, offset + COUNT_SIZE


def decode(data: bytes) -> FilterRecord:
    """Decode and validate bytes produced by encode()."""
    if len(data) < HEADER_SIZE + CRC_SIZE:
        raise DecodeError(f"data too short for a filter ({len(data)} bytes)")

    body, trailer = data[:-CRC_SIZE], data[-CRC_SIZE:]
    magic = body[:4]
    if magic != FILE_MAGIC:
        raise DecodeError(f"bad magic {magic!r}, not a saltbloom filter")
    (expected_crc,) = struct.unpack(COUNT_FMT, trailer)
    if zlib.crc32(body) & 0xFFFFFFFF != expected_crc:
        raise DecodeError("checksum mismatch, filter data is corrupt")

    _, version, hid, word_bits, capacity, elements, bits = struct.unpack_from(HEADER_FMT, body, 0)
    if version != FORMAT_VERSION:
        raise DecodeError(f"unsupported format version {version}")
    if word_bits != WORD_BITS:
        raise DecodeError(f"unsupported word width {word_bits}")
    try:
        name = hash_name(hid)
    except KeyError:
        raise DecodeError(f"unknown hash id {hid}") from None
    if bits < WORD_BITS or bits & (bits - 1):
        raise DecodeError(f"bit width {bits} is not a power of two >= {WORD_BITS}")

    offset = HEADER_SIZE
    word_count, offset = _read_count(body, offset, "word count")
    if word_count != (bits + WORD_BITS - 1) // WORD_BITS:
        raise DecodeError(f"{word_count} words do not match {bits} bits")
    end = offset + word_count * WORD_DTYPE.itemsize
    if end > len(body):
        raise DecodeError("truncated word array")
    words = np.frombuffer(body, dtype=WORD_DTYPE, count=word_count, offset=offset).astype(np.uint32)
    offset = end

    salt_count, offset = _read_count(body, offset, "salt count")
    salts = []
    for i in range(salt_count):
        length, offset = _read_count(body, offset, f"salt {i} length")
        if offset + length > len(body):
            raise DecodeError(f"truncated salt {i}")
        salts.append(bytes(body[offset:offset + length]))
        offset += length

    if offset != len(body):
        raise DecodeError(f"{len(body) - offset} unexpected trailing bytes")

    return FilterRecord(
        capacity=capacity,
        elements=elements,
        bits=bits,
        words=words,
        salts=tuple(salts),
        hash_name=name,
    )


def write_record(path: PathLike, record: FilterRecord) -> None:
    """Encode and write a record, replacing any existing file."""
    payload = encode(record)
    with open(path, "wb") as fp:
        fp.write(payload)
    logger.debug("[Codec] wrote %d bytes to %s", len(payload), os.fspath(path))


def read_record(path: PathLike) -> FilterRecord:
    """Read and decode a record. OSError propagates for I/O failures."""
    with open(path, "rb") as fp:
        data = fp.read()
    logger.debug("[Codec] read %d bytes from %s", len(data), os.fspath(path))
    return decode(data)
