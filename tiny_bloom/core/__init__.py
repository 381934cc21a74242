"""
Core functionality for TinyBloom.
"""

from tiny_bloom.core.base import MembershipFilter, Serializable, SerializableMixin
from tiny_bloom.core.bitvector import BitVector
from tiny_bloom.core.errors import (
    BloomError,
    ErrorKind,
    InvalidArgumentError,
    OutOfRangeError,
    RangeExceededError,
    UnsupportedAlgorithmError,
)
from tiny_bloom.core.hash import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGEST_PROVIDER,
    DigestProvider,
    HashlibDigestProvider,
    fnv1a_32,
    murmurhash3_32,
)
from tiny_bloom.core.probes import HashProbeGenerator

__all__ = [
    # Base classes
    "MembershipFilter",
    "Serializable",
    "SerializableMixin",
    # Components
    "BitVector",
    "HashProbeGenerator",
    # Digests
    "DigestProvider",
    "HashlibDigestProvider",
    "DEFAULT_ALGORITHM",
    "DEFAULT_DIGEST_PROVIDER",
    "murmurhash3_32",
    "fnv1a_32",
    # Errors
    "BloomError",
    "ErrorKind",
    "InvalidArgumentError",
    "OutOfRangeError",
    "RangeExceededError",
    "UnsupportedAlgorithmError",
]
