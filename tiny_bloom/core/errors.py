"""
Error types for TinyBloom.

Every failure raised by the library is a BloomError carrying an ErrorKind, so
callers can branch on ``err.kind`` instead of on the class hierarchy. Each
concrete class also derives from the closest builtin exception, which keeps
generic ``except ValueError`` style handlers working.
"""

import enum
from typing import Optional


class ErrorKind(enum.Enum):
    """Categories of failure raised by TinyBloom components."""

    INVALID_ARGUMENT = "invalid_argument"
    OUT_OF_RANGE = "out_of_range"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    RANGE_EXCEEDED = "range_exceeded"


class BloomError(Exception):
    """Base class for all TinyBloom errors."""

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(BloomError, ValueError):
    """A parameter is negative, non-integral or outside its documented domain."""

    kind = ErrorKind.INVALID_ARGUMENT


class OutOfRangeError(BloomError, IndexError):
    """A bit index is negative or not less than the vector length."""

    kind = ErrorKind.OUT_OF_RANGE


class UnsupportedAlgorithmError(BloomError, ValueError):
    """The digest provider does not know the requested algorithm."""

    kind = ErrorKind.UNSUPPORTED_ALGORITHM

    def __init__(self, algorithm: str):
        super().__init__(f"Unsupported digest algorithm: {algorithm!r}")
        self.algorithm = algorithm


class RangeExceededError(BloomError, OverflowError):
    """The requested bound cannot be addressed by the digest or the platform."""

    kind = ErrorKind.RANGE_EXCEEDED


def require_int(value, name: str) -> int:
    """
    Validate that a value is a plain integer (bools are rejected).

    Raises:
        InvalidArgumentError: If the value is not an int.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(
            f"{name} must be an integer, got {type(value).__name__}"
        )
    return value


def require_non_negative_int(value, name: str) -> int:
    """
    Validate that a value is an integer >= 0.

    Raises:
        InvalidArgumentError: If the value is not an int or is negative.
    """
    require_int(value, name)
    if value < 0:
        raise InvalidArgumentError(f"{name} must be non-negative, got {value}")
    return value
