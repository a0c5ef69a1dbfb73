"""Bloom filter sizing helpers."""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from saltbloom.config import MAX_CAPACITY, MIN_FILTER_BITS, MIN_SALTS, SALT_FACTOR
from saltbloom.errors import SizingError


def _validate(capacity: int, false_positive_rate: float) -> None:
    if not 0 < capacity <= MAX_CAPACITY:
        raise SizingError(f"capacity must be in [1, {MAX_CAPACITY}], got {capacity}")
    if not (0 < false_positive_rate < 1):
        raise SizingError(f"false_positive_rate must be in (0,1), got {false_positive_rate}")


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def required_bits(capacity: int, false_positive_rate: float) -> int:
    """Bits needed for `capacity` items at the target rate.

    m = n * -ln(p) / (ln 2)^2, truncated, rounded up to a power of two and
    clamped to MIN_FILTER_BITS. The power of two keeps compress() valid.
    """
    _validate(capacity, false_positive_rate)
    m = capacity * -math.log(false_positive_rate) / (math.log(2.0) * math.log(2.0))
    bits = next_power_of_two(int(m))
    return max(bits, MIN_FILTER_BITS)


def required_salts(capacity: int, false_positive_rate: float) -> int:
    """Number of salts (hash functions) to supply to the filter constructor.

    floor(0.7 * bits / capacity), computed in float32 so sizing matches filters
    built elsewhere with the same formula; never fewer than MIN_SALTS.
    """
    bits = required_bits(capacity, false_positive_rate)
    salts = int(np.float32(SALT_FACTOR) * np.float32(bits / capacity))
    return max(salts, MIN_SALTS)


@dataclass(frozen=True)
class BloomParams:
    bits: int
    salt_count: int

    @staticmethod
    def for_capacity(capacity: int, false_positive_rate: float) -> "BloomParams":
        """Compute bits and salt count for the capacity and target rate."""
        return BloomParams(
            bits=required_bits(capacity, false_positive_rate),
            salt_count=required_salts(capacity, false_positive_rate),
        )

    def estimated_fpr(self, n_items: int) -> float:
        """Theoretical rate (1 - e^(-k*n/m))^k after n_items inserts."""
        if n_items <= 0:
            return 0.0
        k = self.salt_count
        return (1.0 - math.exp(-k * n_items / self.bits)) ** k
