"""
tiny-bloom - Compact Bloom Filter Library

tiny-bloom is a Python library for approximate set membership: a Bloom filter
built from a packed bit vector and a deterministic, serializable multi-probe
hasher, with a JSON wire form that round-trips byte for byte.
"""

__version__ = "0.1.0"

# Import main classes to make them available at the top level
from tiny_bloom.algorithms.bloom.base import BloomFilter
from tiny_bloom.core.bitvector import BitVector
from tiny_bloom.core.errors import (
    BloomError,
    ErrorKind,
    InvalidArgumentError,
    OutOfRangeError,
    RangeExceededError,
    UnsupportedAlgorithmError,
)
from tiny_bloom.core.hash import DigestProvider, HashlibDigestProvider
from tiny_bloom.core.probes import HashProbeGenerator

__all__ = [
    # Filter engine
    "BloomFilter",
    # Building blocks
    "BitVector",
    "HashProbeGenerator",
    "DigestProvider",
    "HashlibDigestProvider",
    # Errors
    "BloomError",
    "ErrorKind",
    "InvalidArgumentError",
    "OutOfRangeError",
    "RangeExceededError",
    "UnsupportedAlgorithmError",
]
