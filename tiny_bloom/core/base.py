"""
Base classes and interfaces for TinyBloom.

This module defines the serialization contract shared by every TinyBloom
component and the abstract base class that membership filters implement,
so that bit vectors, probe generators and filters all expose the same
``to_dict``/``from_dict``/``serialize``/``deserialize`` surface.
"""

import abc
import json
import sys
from typing import Any, Dict, Generic, Protocol, Type, TypeVar, Union

from tiny_bloom.core.errors import InvalidArgumentError

T = TypeVar("T")  # Type for the items being processed
S = TypeVar("S", bound="SerializableMixin")


class Serializable(Protocol):
    """Protocol defining methods for serialization and deserialization."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert the object to a dictionary representation."""
        ...

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Serializable":
        """Create an object from its dictionary representation."""
        ...


class SerializableMixin:
    """
    Text and bytes serialization on top of ``to_dict``/``from_dict``.

    The dictionary form is the wire form: ``serialize`` only adds the JSON
    encoding, so deserializing and re-serializing reproduces the same text.
    """

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_dict(cls: Type[S], data: Dict[str, Any], **kwargs: Any) -> S:
        raise NotImplementedError

    def serialize(self, format: str = "json") -> Union[str, bytes]:
        """
        Serialize the object to a string or bytes.

        Args:
            format: The serialization format ('json' or 'binary').

        Returns:
            The serialized representation of the object.

        Raises:
            InvalidArgumentError: If the format is not supported.
        """
        if format == "json":
            return json.dumps(self.to_dict())
        elif format == "binary":
            # Same document as 'json', UTF-8 encoded for byte-oriented stores
            return json.dumps(self.to_dict()).encode("utf-8")
        else:
            raise InvalidArgumentError(f"Unsupported serialization format: {format}")

    @classmethod
    def deserialize(
        cls: Type[S], data: Union[str, bytes], format: str = "json", **kwargs: Any
    ) -> S:
        """
        Deserialize an object from a string or bytes.

        Args:
            data: The serialized object.
            format: The serialization format ('json' or 'binary').
            **kwargs: Passed through to ``from_dict``.

        Returns:
            A new object of this class.

        Raises:
            InvalidArgumentError: If the format is not supported or the
                payload is not a valid document.
        """
        if format not in ("json", "binary"):
            raise InvalidArgumentError(f"Unsupported serialization format: {format}")

        if isinstance(data, (bytes, bytearray)):
            try:
                data = bytes(data).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise InvalidArgumentError("Serialized data is not UTF-8") from exc

        try:
            decoded = json.loads(data)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Malformed serialized data: {exc}") from exc

        if not isinstance(decoded, dict):
            raise InvalidArgumentError("Serialized data must be a JSON object")

        return cls.from_dict(decoded, **kwargs)


class MembershipFilter(SerializableMixin, Generic[T], abc.ABC):
    """
    Abstract base class for approximate set-membership filters.

    A membership filter answers "possibly present" or "definitely absent".
    Implementations provide adding, querying, merging and serialization; the
    base class tracks how many items have been added and offers default
    size and statistics hooks.
    """

    def __init__(self) -> None:
        self._items_processed = 0

    @abc.abstractmethod
    def add(self, item: T) -> None:
        """
        Add an item to the filter.

        Args:
            item: The item to add.
        """
        self._items_processed += 1

    @abc.abstractmethod
    def exists(self, item: T) -> bool:
        """
        Test whether an item might have been added.

        Args:
            item: The item to test.

        Returns:
            True if the item might be present, False if it is definitely absent.
        """
        pass

    def update(self, item: T) -> None:
        """Stream-style alias for :meth:`add`."""
        self.add(item)

    def query(self, item: T) -> bool:
        """Alias for :meth:`exists`."""
        return self.exists(item)

    def __contains__(self, item: T) -> bool:
        return self.exists(item)

    @abc.abstractmethod
    def merge(self, other: "MembershipFilter[T]") -> "MembershipFilter[T]":
        """
        Merge this filter with another of the same type.

        Args:
            other: Another filter of the same type.

        Returns:
            A new merged filter.

        Raises:
            TypeError: If other is not of the same type.
        """
        pass

    def _check_same_type(self, other: "MembershipFilter[T]") -> None:
        """
        Helper method to check if another filter is of the same type.

        Raises:
            TypeError: If other is not of the same type.
        """
        if not isinstance(other, self.__class__):
            raise TypeError(f"Cannot merge with {other.__class__.__name__}")

    @abc.abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the filter to its dictionary wire form.

        Returns:
            A dictionary representation of the filter.
        """
        pass

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this filter in bytes.

        Derived classes should add the size of their own data structures.

        Returns:
            Estimated memory usage in bytes.
        """
        size = sys.getsizeof(self)
        if hasattr(self, "__dict__"):
            size += sys.getsizeof(self.__dict__)
        return size

    def error_bounds(self) -> Dict[str, Any]:
        """
        Get the theoretical error bounds for this filter.

        The base implementation returns an empty dictionary.
        """
        return {}

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the current state of the filter.

        Derived classes extend this with their specific figures.

        Returns:
            A dictionary of statistics.
        """
        stats: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }
        stats.update(self.error_bounds())
        return stats

    @property
    def items_processed(self) -> int:
        """Number of add calls made on this instance."""
        return self._items_processed
