"""
Digest functions and digest providers for TinyBloom.

Probe generation never calls a hash function directly; it asks a
DigestProvider for ``digest(algorithm, data)``. The default provider wraps
``hashlib`` and adds two pure Python 32-bit digests (MurmurHash3 and FNV-1a)
that require no external dependencies. The 32-bit digests are fast but not
cryptographic, and their small output limits the filter sizes they can
address.
"""

import hashlib
from typing import Any, Callable, Dict, Protocol

from tiny_bloom.core.errors import UnsupportedAlgorithmError

DEFAULT_ALGORITHM = "sha1"


def to_bytes(key: Any) -> bytes:
    """
    Normalize an item to the bytes that get hashed.

    bytes-like values are used as is, strings are UTF-8 encoded and anything
    else is hashed through its ``str()`` form.
    """
    if isinstance(key, bytes):
        return key
    if isinstance(key, (bytearray, memoryview)):
        return bytes(key)
    if isinstance(key, str):
        return key.encode("utf-8")
    return str(key).encode("utf-8")


def _key_bytes(key: Any) -> bytes:
    # repr() keeps e.g. 123 and "123" apart for the standalone 32-bit hashes
    if isinstance(key, (bytes, bytearray, memoryview, str)):
        return to_bytes(key)
    return repr(key).encode("utf-8")


def murmurhash3_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python implementation of MurmurHash3 (32-bit variant).

    Args:
        key: The key to hash (converted to bytes if not already)
        seed: Optional seed for the hash

    Returns:
        32-bit hash value
    """
    data = _key_bytes(key)
    length = len(data)

    c1 = 0xCC9E2D51
    c2 = 0x1B873593
    h = seed & 0xFFFFFFFF

    # Body: little-endian 4-byte blocks
    nblocks = length // 4
    for block in range(nblocks):
        k = int.from_bytes(data[block * 4 : block * 4 + 4], "little")
        k = (k * c1) & 0xFFFFFFFF
        k = ((k << 15) | (k >> 17)) & 0xFFFFFFFF
        k = (k * c2) & 0xFFFFFFFF

        h ^= k
        h = ((h << 13) | (h >> 19)) & 0xFFFFFFFF
        h = (h * 5 + 0xE6546B64) & 0xFFFFFFFF

    # Tail: the remaining 0-3 bytes
    tail = data[nblocks * 4 :]
    if tail:
        k = int.from_bytes(tail, "little")
        k = (k * c1) & 0xFFFFFFFF
        k = ((k << 15) | (k >> 17)) & 0xFFFFFFFF
        k = (k * c2) & 0xFFFFFFFF
        h ^= k

    # Finalization mix
    h ^= length
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & 0xFFFFFFFF
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & 0xFFFFFFFF
    h ^= h >> 16

    return h & 0xFFFFFFFF


def fnv1a_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python implementation of FNV-1a hash (32-bit variant).

    Args:
        key: The key to hash (converted to bytes if not already)
        seed: Optional seed value (mixed into the offset basis)

    Returns:
        32-bit hash value
    """
    FNV_PRIME = 16777619
    FNV_OFFSET_BASIS = 2166136261

    h = (FNV_OFFSET_BASIS ^ seed) & 0xFFFFFFFF
    for byte in _key_bytes(key):
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF

    return h


# Library-provided digests: name -> function returning a 32-bit integer
_INT32_DIGESTS: Dict[str, Callable[[bytes], int]] = {
    "murmur3_32": murmurhash3_32,
    "fnv1a_32": fnv1a_32,
}


class DigestProvider(Protocol):
    """
    Protocol for components that compute digests by algorithm name.

    Implementations must be deterministic: the same algorithm and data
    always produce the same fixed-length digest.
    """

    def canonical_name(self, algorithm: str) -> str:
        """Return the provider's canonical spelling of ``algorithm``."""
        ...

    def digest_size(self, algorithm: str) -> int:
        """Return the digest length of ``algorithm`` in bytes."""
        ...

    def digest(self, algorithm: str, data: bytes) -> bytes:
        """Return the digest of ``data`` computed with ``algorithm``."""
        ...


class HashlibDigestProvider:
    """
    DigestProvider backed by :mod:`hashlib`.

    Accepts any fixed-length algorithm in ``hashlib.algorithms_available``
    plus ``murmur3_32`` and ``fnv1a_32``. Names are matched
    case-insensitively, and spellings such as ``"SHA-1"`` or ``"sha_256"``
    resolve to the hashlib name (``"sha1"``, ``"sha256"``).

    Example:
        provider = HashlibDigestProvider()
        provider.digest("SHA-256", b"abc")  # 32-byte digest
    """

    def __init__(self) -> None:
        self._names: Dict[str, str] = {}
        for name in sorted(hashlib.algorithms_available):
            lowered = name.lower()
            if lowered.startswith("shake"):
                # Extendable-output functions have no fixed digest size
                continue
            self._names.setdefault(lowered, lowered)
        for name in _INT32_DIGESTS:
            self._names[name] = name

        # Cache digest sizes; constructing a hash object is not free
        self._sizes: Dict[str, int] = {}

    @property
    def algorithms(self) -> list:
        """Sorted list of canonical algorithm names this provider supports."""
        return sorted(set(self._names.values()))

    def canonical_name(self, algorithm: str) -> str:
        """
        Resolve an algorithm name to its canonical spelling.

        Raises:
            UnsupportedAlgorithmError: If the algorithm is not available.
        """
        if not isinstance(algorithm, str):
            raise UnsupportedAlgorithmError(str(algorithm))

        lowered = algorithm.strip().lower()
        candidates = (
            lowered,
            lowered.replace("-", ""),
            lowered.replace("-", "_"),
            lowered.replace("_", ""),
        )
        for candidate in candidates:
            if candidate in self._names:
                return self._names[candidate]

        raise UnsupportedAlgorithmError(algorithm)

    def digest_size(self, algorithm: str) -> int:
        name = self.canonical_name(algorithm)
        if name not in self._sizes:
            if name in _INT32_DIGESTS:
                self._sizes[name] = 4
            else:
                self._sizes[name] = self._new(name).digest_size
        return self._sizes[name]

    def digest(self, algorithm: str, data: bytes) -> bytes:
        name = self.canonical_name(algorithm)
        if name in _INT32_DIGESTS:
            return _INT32_DIGESTS[name](data).to_bytes(4, "big")
        hasher = self._new(name)
        hasher.update(data)
        return hasher.digest()

    @staticmethod
    def _new(name: str) -> Any:
        # Listed by hashlib but disabled in the linked OpenSSL (e.g. legacy ripemd160)
        try:
            return hashlib.new(name)
        except ValueError as exc:
            raise UnsupportedAlgorithmError(name) from exc


DEFAULT_DIGEST_PROVIDER = HashlibDigestProvider()
