"""Exception types raised by saltbloom."""
from __future__ import annotations


class BloomError(Exception):
    """Base class for every saltbloom error."""


class SizingError(BloomError, ValueError):
    """Capacity or false positive rate outside the supported range."""


class DimensionMismatch(BloomError, ValueError):
    """Merge/compress called on incompatible or malformed filter state."""


class DecodeError(BloomError, ValueError):
    """Persisted filter data is malformed, truncated or not ours."""


class EncodeError(BloomError, ValueError):
    """Filter state cannot be represented in the persisted layout."""
