"""Packed bit vector backed by a numpy array of fixed-width words."""
from __future__ import annotations

import numpy as np

from saltbloom.config import WORD_BITS

_DTYPES = {8: np.uint8, 16: np.uint16, 32: np.uint32, 64: np.uint64}


class BitVector:
    def __init__(self, total_bits: int, word_bits: int = WORD_BITS) -> None:
        """Allocate ceil(total_bits / word_bits) zeroed words."""
        if total_bits <= 0:
            raise ValueError("total_bits must be positive")
        if word_bits not in _DTYPES:
            raise ValueError(f"word_bits must be one of {sorted(_DTYPES)}")
        self._word_bits = word_bits
        self._total_bits = total_bits
        self._words = np.zeros((total_bits + word_bits - 1) // word_bits, dtype=_DTYPES[word_bits])

    @classmethod
    def from_words(cls, words, total_bits: int, word_bits: int = WORD_BITS) -> "BitVector":
        """Wrap an existing word array (copied) as a vector of total_bits bits."""
        vec = cls.__new__(cls)
        if word_bits not in _DTYPES:
            raise ValueError(f"word_bits must be one of {sorted(_DTYPES)}")
        arr = np.array(words, dtype=_DTYPES[word_bits])
        if total_bits <= 0 or total_bits > arr.size * word_bits:
            raise ValueError(f"{arr.size} words cannot hold {total_bits} bits")
        vec._word_bits = word_bits
        vec._total_bits = total_bits
        vec._words = arr
        return vec

    # Bit access; the caller keeps bit_index < total_bits
    def get(self, bit_index: int) -> int:
        word, shift = divmod(bit_index, self._word_bits)
        return (int(self._words[word]) >> shift) & 1

    def set(self, bit_index: int) -> None:
        word, shift = divmod(bit_index, self._word_bits)
        self._words[word] |= self._words.dtype.type(1 << shift)

    # Word-level operations used by merge/compress
    def or_into(self, other: "BitVector") -> None:
        """OR other's words into this vector in place."""
        if other._word_bits != self._word_bits or other._words.size != self._words.size:
            raise ValueError(
                f"vector shape mismatch: {self._words.size}x{self._word_bits} "
                f"vs {other._words.size}x{other._word_bits}"
            )
        np.bitwise_or(self._words, other._words, out=self._words)

    def fold_half(self) -> None:
        """Replace the words with old[j] | old[j + half]; total bits halve."""
        half = self._words.size // 2
        # New array so the old buffer can be released
        self._words = np.bitwise_or(self._words[:half], self._words[half:])
        self._total_bits //= 2

    def count(self) -> int:
        """Number of set bits."""
        return int(np.unpackbits(self._words.view(np.uint8)).sum())

    @property
    def words(self) -> np.ndarray:
        return self._words

    @property
    def word_bits(self) -> int:
        return self._word_bits

    @property
    def word_count(self) -> int:
        return int(self._words.size)

    @property
    def total_bits(self) -> int:
        return self._total_bits

    def __len__(self) -> int:
        return self._total_bits

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitVector):
            return NotImplemented
        return (
            self._word_bits == other._word_bits
            and self._total_bits == other._total_bits
            and np.array_equal(self._words, other._words)
        )

    def __repr__(self) -> str:
        return f"BitVector(bits={self._total_bits:,}, words={self.word_count:,}x{self._word_bits})"
