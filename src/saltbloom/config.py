"""Configuration constants for saltbloom."""
from __future__ import annotations

import logging
import os

# Bit vector layout
WORD_BITS = 32
MIN_FILTER_BITS = 1024

# Sizing: 0.7 stands in for ln(2) when deriving the salt count
SALT_FACTOR = 0.7
MIN_SALTS = 2
SALT_BYTES = 4
MAX_CAPACITY = 2**32 - 1

DEFAULT_FALSE_POSITIVE_RATE = 0.01
DEFAULT_HASH = "fnv1"

# Persisted format
FILE_MAGIC = b"SBF1"
FORMAT_VERSION = 1

# Logging
LOG_LEVEL = os.environ.get("SALTBLOOM_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler using LOG_FORMAT (benchmark / scripts)."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
