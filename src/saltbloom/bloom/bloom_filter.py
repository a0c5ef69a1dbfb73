"""Salted Bloom filter with merge, halving compression and file persistence."""
from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence, Union, runtime_checkable

from saltbloom.bloom.bit_vector import BitVector
from saltbloom.bloom.bloom_params import required_bits, required_salts
from saltbloom.config import DEFAULT_FALSE_POSITIVE_RATE, DEFAULT_HASH, WORD_BITS
from saltbloom.errors import DimensionMismatch
from saltbloom.hashing.hashers import get_hasher
from saltbloom.metrics.metrics import Metrics
from saltbloom.persist import codec
from saltbloom.types.salt_types import generate_salts, pack_salts

logger = logging.getLogger(__name__)

Element = Union[bytes, bytearray, memoryview, str]


@runtime_checkable
class MembershipFilter(Protocol):
    """Operations callers rely on, independent of the backing store."""

    def insert(self, element: Element) -> bool: ...

    def exists(self, element: Element) -> bool: ...

    def len(self) -> int: ...

    def merge(self, other: "MembershipFilter") -> None: ...

    def compress(self) -> None: ...

    def serialize(self, path: codec.PathLike) -> None: ...


def _as_bytes(element: Element) -> bytes:
    if isinstance(element, str):
        return element.encode("utf-8")
    if isinstance(element, (bytes, bytearray, memoryview)):
        return bytes(element)
    raise TypeError(f"element must be str or bytes-like, not {type(element).__name__}")


class BloomFilter:
    """
    Bloom filter over byte strings:
    - one 32-bit hash, made into k independent ones by prefixing k salts
    - bit vector of 32-bit words, width a power of two (>= 1024 at creation)
    - merge() ORs in a filter with the same width and salts
    - compress() folds the vector in half, trading accuracy for space
    - serialize()/deserialize() persist the full state including salt bytes

    Not thread-safe: callers serialise writers (insert/merge/compress) themselves.
    exists() only reads, so concurrent readers need no exclusion among themselves.
    """

    def __init__(
        self,
        capacity: int,
        false_positive_rate: float = DEFAULT_FALSE_POSITIVE_RATE,
        salts: Sequence[int] | None = None,
        hash_name: str = DEFAULT_HASH,
    ) -> None:
        """Size the filter for capacity/rate and store the salts as big-endian bytes.

        At least required_salts(capacity, rate) distinct random salts should be
        given; fewer or duplicated salts silently weaken the error bound. When
        salts is None that many are generated.
        """
        bits = required_bits(capacity, false_positive_rate)
        if salts is None:
            salts = generate_salts(required_salts(capacity, false_positive_rate))
        self._init_state(
            capacity=capacity,
            elements=0,
            vector=BitVector(bits, WORD_BITS),
            salts=pack_salts(salts),
            hash_name=hash_name,
        )
        logger.debug(
            "[BloomFilter Init] bits=%s (~%.1f KB), salts=%d, capacity=%s, target_fpr=%.2f%%, hash=%s",
            f"{bits:,}",
            bits / 8 / 1024,
            len(self._salts),
            f"{capacity:,}",
            false_positive_rate * 100,
            hash_name,
        )

    def _init_state(
        self,
        capacity: int,
        elements: int,
        vector: BitVector,
        salts: tuple[bytes, ...],
        hash_name: str,
    ) -> None:
        self._capacity = capacity
        self._elements = elements
        self._vector = vector
        self._salts = salts
        self._hash_name = hash_name
        self._hash = get_hasher(hash_name)
        self._warned_full = False
        self.metrics = Metrics()

    @classmethod
    def create(
        cls,
        capacity: int,
        false_positive_rate: float = DEFAULT_FALSE_POSITIVE_RATE,
        hash_name: str = DEFAULT_HASH,
    ) -> "BloomFilter":
        """Build a filter with freshly generated random salts."""
        return cls(capacity, false_positive_rate, None, hash_name=hash_name)

    # Core operations
    def _positions(self, data: bytes) -> Iterable[int]:
        bits = self._vector.total_bits
        for salt in self._salts:
            yield self._hash(salt, data) % bits

    def insert(self, element: Element) -> bool:
        """Add an element; return False once capacity is reached (insert still happens)."""
        data = _as_bytes(element)
        for pos in self._positions(data):
            self._vector.set(pos)
        self._elements += 1

        within = self._elements < self._capacity
        self.metrics.record_insertion(within)
        if not within and not self._warned_full:
            self._warned_full = True
            logger.warning(
                "[BloomFilter] capacity %s reached, false positive rate is no longer bounded",
                f"{self._capacity:,}",
            )
        return within

    def insert_many(self, elements: Iterable[Element]) -> bool:
        """Insert each element in order; returns the result of the last insert."""
        within = self._elements < self._capacity
        for element in elements:
            within = self.insert(element)
        return within

    def exists(self, element: Element) -> bool:
        """False means definitely absent; True means possibly present."""
        data = _as_bytes(element)
        for pos in self._positions(data):
            if self._vector.get(pos) == 0:
                return False
        return True

    def __contains__(self, element: Element) -> bool:
        return self.exists(element)

    def len(self) -> int:
        """Number of insert calls so far (not distinct elements)."""
        return self._elements

    def __len__(self) -> int:
        return self._elements

    def merge(self, other: "BloomFilter") -> None:
        """OR other's bits into this filter.

        Both filters must have the same width, hash and identically ordered
        salts. The element count is left unchanged.
        """
        if not isinstance(other, BloomFilter):
            raise DimensionMismatch(f"cannot merge {type(other).__name__} into BloomFilter")
        if other.bits != self.bits or other._vector.word_count != self._vector.word_count:
            raise DimensionMismatch(f"bit width mismatch: {self.bits} vs {other.bits}")
        if other._hash_name != self._hash_name:
            raise DimensionMismatch(f"hash mismatch: {self._hash_name} vs {other._hash_name}")
        if other._salts != self._salts:
            raise DimensionMismatch("salts differ, filters were not built with the same seeds")

        self._vector.or_into(other._vector)
        self.metrics.record_merge()
        logger.debug("[BloomFilter] Merged filter with %d elements (bits=%d)", other.len(), self.bits)

    def compress(self) -> None:
        """Halve the vector by OR-ing its two halves; roughly doubles the error rate."""
        w = self._vector.word_count
        if w & (w - 1) != 0:
            raise DimensionMismatch(f"word count {w} is not a power of two")
        if w <= 1:
            raise DimensionMismatch("filter is already a single word, cannot compress further")

        old_bits = self.bits
        self._vector.fold_half()
        self.metrics.record_compression()
        logger.info("[BloomFilter] Compress %s -> %s bits", f"{old_bits:,}", f"{self.bits:,}")

    # Persistence
    def to_record(self) -> codec.FilterRecord:
        return codec.FilterRecord(
            capacity=self._capacity,
            elements=self._elements,
            bits=self.bits,
            words=self._vector.words,
            salts=self._salts,
            hash_name=self._hash_name,
        )

    @classmethod
    def from_record(cls, record: codec.FilterRecord) -> "BloomFilter":
        bf = cls.__new__(cls)
        bf._init_state(
            capacity=record.capacity,
            elements=record.elements,
            vector=BitVector.from_words(record.words, record.bits, WORD_BITS),
            salts=tuple(record.salts),
            hash_name=record.hash_name,
        )
        return bf

    def to_bytes(self) -> bytes:
        return codec.encode(self.to_record())

    @classmethod
    def from_bytes(cls, data: bytes) -> "BloomFilter":
        return cls.from_record(codec.decode(data))

    def serialize(self, path: codec.PathLike) -> None:
        """Write the full filter state to path, overwriting it."""
        codec.write_record(path, self.to_record())
        logger.info("[BloomFilter] Saved %s elements, %s bits to %s", self._elements, self.bits, path)

    @classmethod
    def deserialize(cls, path: codec.PathLike) -> "BloomFilter":
        """Load a filter written by serialize().

        Raises OSError if the file cannot be read and DecodeError if it is not
        a valid filter.
        """
        bf = cls.from_record(codec.read_record(path))
        logger.info("[BloomFilter] Loaded %s elements, %s bits from %s", bf.len(), bf.bits, path)
        return bf

    # Introspection
    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def bits(self) -> int:
        return self._vector.total_bits

    @property
    def salts(self) -> tuple[bytes, ...]:
        return self._salts

    @property
    def salt_count(self) -> int:
        return len(self._salts)

    @property
    def hash_name(self) -> str:
        return self._hash_name

    @property
    def vector(self) -> BitVector:
        return self._vector

    def fill_ratio(self) -> float:
        return self._vector.count() / self.bits

    def estimate_fpr(self) -> float:
        """Estimate the false positive rate from actual saturation (fill^k)."""
        if self._elements == 0:
            return 0.0
        return self.fill_ratio() ** len(self._salts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return (
            self._capacity == other._capacity
            and self._elements == other._elements
            and self._salts == other._salts
            and self._hash_name == other._hash_name
            and self._vector == other._vector
        )

    def __repr__(self) -> str:
        return (
            f"BloomFilter(bits={self.bits:,}, salts={len(self._salts)}, "
            f"elements={self._elements:,}/{self._capacity:,}, hash={self._hash_name}, "
            f"current_fpr≈{self.estimate_fpr():.4%})"
        )


def new_filter(
    capacity: int,
    false_positive_rate: float,
    salts: Sequence[int],
    hash_name: str = DEFAULT_HASH,
) -> BloomFilter:
    """Functional alias for the BloomFilter constructor."""
    return BloomFilter(capacity, false_positive_rate, salts, hash_name=hash_name)


def deserialize(path: codec.PathLike) -> BloomFilter:
    return BloomFilter.deserialize(path)
