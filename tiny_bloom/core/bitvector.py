"""
Packed bit vector for TinyBloom.

A BitVector stores ``length`` single bits in ``ceil(length / 8)`` bytes. Bit
``i`` lives in byte ``i // 8`` under the mask ``1 << (i % 8)``, i.e. bits are
packed least-significant first within each byte. Residual bits in the last
byte are never addressed but are carried through serialization unchanged, so
a serialize/deserialize round trip is byte-exact.
"""

import array
import base64
import binascii
import sys
from typing import Any, Dict

from tiny_bloom.core.base import SerializableMixin
from tiny_bloom.core.errors import (
    InvalidArgumentError,
    OutOfRangeError,
    require_int,
    require_non_negative_int,
)

BITS_IN_BYTE = 8


def _byte_count(length: int) -> int:
    return (length + BITS_IN_BYTE - 1) // BITS_IN_BYTE


class BitVector(SerializableMixin):
    """
    Fixed-length array of bits over a byte-aligned buffer.

    The buffer is owned by the vector and never shared: ``from_bytes``,
    ``to_bytes`` and ``union`` all copy.

    Example:
        bits = BitVector(12)
        bits[3] = True
        bits.get(3)             # True
        bits.contains_index(12) # False, 12 is out of range
        del bits[3]             # clears bit 3
    """

    def __init__(self, length: int):
        """
        Create a zero-filled bit vector.

        Args:
            length: Number of addressable bits.

        Raises:
            InvalidArgumentError: If length is not an integer or is negative.
        """
        require_non_negative_int(length, "length")
        self._length = length
        # 'B' typecode: one unsigned byte per element
        self._bytes = array.array("B", bytes(_byte_count(length)))

    @classmethod
    def from_bytes(cls, data: bytes, length: int) -> "BitVector":
        """
        Rebuild a vector from its raw buffer.

        Args:
            data: The raw buffer, exactly ``ceil(length / 8)`` bytes.
            length: Number of addressable bits.

        Raises:
            InvalidArgumentError: If data is not bytes-like, length is invalid
                or the byte count does not match it.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidArgumentError(
                f"data must be bytes-like, got {type(data).__name__}"
            )
        require_non_negative_int(length, "length")
        # Size check comes before any allocation
        expected = _byte_count(length)
        if len(data) != expected:
            raise InvalidArgumentError(
                f"Expected {expected} bytes for a {length}-bit vector, got {len(data)}"
            )

        vector = cls.__new__(cls)
        vector._length = length
        vector._bytes = array.array("B", bytes(data))
        return vector

    def _check_index(self, index: Any) -> int:
        require_int(index, "index")
        if index < 0 or index >= self._length:
            raise OutOfRangeError(
                f"Bit index {index} out of range for vector of length {self._length}"
            )
        return index

    def get(self, index: int) -> bool:
        """
        Return whether bit ``index`` is set.

        Raises:
            InvalidArgumentError: If index is not an integer.
            OutOfRangeError: If index < 0 or index >= length.
        """
        self._check_index(index)
        return bool(self._bytes[index // BITS_IN_BYTE] & (1 << (index % BITS_IN_BYTE)))

    def set(self, index: int, value: bool = True) -> None:
        """
        Set or clear bit ``index``; no other bit is touched.

        Raises:
            InvalidArgumentError: If index is not an integer.
            OutOfRangeError: If index < 0 or index >= length.
        """
        self._check_index(index)
        byte_index = index // BITS_IN_BYTE
        mask = 1 << (index % BITS_IN_BYTE)
        if value:
            self._bytes[byte_index] |= mask
        else:
            self._bytes[byte_index] &= 0xFF ^ mask

    def clear(self, index: int) -> None:
        """Clear bit ``index``. Same errors as :meth:`set`."""
        self.set(index, False)

    def contains_index(self, index: Any) -> bool:
        """
        Check whether ``index`` addresses a bit of this vector.

        Never raises: non-integer and out-of-range values return False.
        """
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        return 0 <= index < self._length

    def __getitem__(self, index: int) -> bool:
        return self.get(index)

    def __setitem__(self, index: int, value: bool) -> None:
        self.set(index, value)

    def __delitem__(self, index: int) -> None:
        self.clear(index)

    def __len__(self) -> int:
        return self._length

    @property
    def length(self) -> int:
        """Total addressable bit count."""
        return self._length

    @property
    def byte_length(self) -> int:
        """Size of the backing buffer in bytes."""
        return len(self._bytes)

    def count_set_bits(self) -> int:
        """Number of set bits among the addressable ones."""
        total = sum(bin(byte).count("1") for byte in self._bytes)
        residual = self._length % BITS_IN_BYTE
        if residual and self._bytes:
            # Ignore whatever sits above the last addressable bit
            extra = self._bytes[-1] >> residual
            total -= bin(extra).count("1")
        return total

    def union(self, other: "BitVector") -> "BitVector":
        """
        Return a new vector holding the bitwise OR of two vectors.

        Raises:
            InvalidArgumentError: If the lengths differ.
        """
        if self._length != other._length:
            raise InvalidArgumentError(
                f"Cannot combine bit vectors of length {self._length} and {other._length}"
            )
        result = BitVector(self._length)
        for i in range(len(self._bytes)):
            result._bytes[i] = self._bytes[i] | other._bytes[i]
        return result

    def to_bytes(self) -> bytes:
        """Return a copy of the backing buffer."""
        return self._bytes.tobytes()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the vector to its wire form.

        Returns:
            ``{"len": <bit length>, "arr": <base64 of the full buffer>}``
        """
        return {
            "len": self._length,
            "arr": base64.b64encode(self._bytes.tobytes()).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs: Any) -> "BitVector":
        """
        Rebuild a vector from its wire form.

        Raises:
            InvalidArgumentError: If the document is malformed.
        """
        try:
            length = data["len"]
            encoded = data["arr"]
        except (KeyError, TypeError) as exc:
            raise InvalidArgumentError(f"Malformed bit vector data: {exc!r}") from exc

        if not isinstance(encoded, str):
            raise InvalidArgumentError("Bit vector 'arr' must be a base64 string")
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidArgumentError(f"Invalid base64 in bit vector data: {exc}") from exc

        return cls.from_bytes(raw, length)

    def estimate_size(self) -> int:
        """Approximate memory footprint in bytes."""
        return sys.getsizeof(self) + sys.getsizeof(self._bytes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitVector):
            return NotImplemented
        return self._length == other._length and self._bytes == other._bytes

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"BitVector(length={self._length}, set_bits={self.count_set_bits()})"
