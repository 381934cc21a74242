"""
Bloom Filter implementation for TinyBloom.

This module provides the Bloom filter engine, a space-efficient probabilistic
data structure for testing set membership with a tunable false positive rate
and no false negatives.

The filter composes a BitVector of ``bound`` bits with a HashProbeGenerator
producing ``probe_count`` indices per item. Both parameters are derived from
the expected number of items and the target false positive rate using the
standard closed-form optimum.

Capacity is fixed at construction: there is no removal, no clearing and no
resizing, so a bit once set stays set and added items are always reported.

References:
    - Bloom, B. H. (1970). Space/time trade-offs in hash coding with allowable errors.
      Communications of the ACM, 13(7), 422-426.
"""

import logging
import math
import numbers
from collections import Counter
from typing import Any, Dict, Optional, TypeVar

from tiny_bloom.core.base import MembershipFilter
from tiny_bloom.core.bitvector import BitVector
from tiny_bloom.core.errors import InvalidArgumentError, require_int
from tiny_bloom.core.hash import DEFAULT_ALGORITHM, DigestProvider
from tiny_bloom.core.probes import HashProbeGenerator

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being processed

LN2 = math.log(2)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _check_expected_count(expected_count: Any) -> int:
    require_int(expected_count, "expected_count")
    if expected_count < 1:
        raise InvalidArgumentError(
            f"expected_count must be a positive integer, got {expected_count}"
        )
    return expected_count


def _check_fp_rate(target_fp_rate: Any) -> float:
    if isinstance(target_fp_rate, bool) or not isinstance(target_fp_rate, numbers.Real):
        raise InvalidArgumentError(
            f"target_fp_rate must be a number, got {type(target_fp_rate).__name__}"
        )
    if not (0 < target_fp_rate < 1):
        raise InvalidArgumentError(
            f"target_fp_rate must be between 0 and 1 (exclusive), got {target_fp_rate}"
        )
    return float(target_fp_rate)


class BloomFilter(MembershipFilter[T]):
    """
    Bloom Filter for efficient set membership testing.

    A Bloom filter answers either "possibly in set" or "definitely not in
    set". False positives are possible at a rate approaching the target once
    ``expected_count`` items have been added; false negatives are not.

    The filter holds no locks. Threads sharing an instance must synchronize
    externally (shared access for ``exists``, exclusive for ``add``).

    Example:
        # Create a filter with a 0.1% false positive rate for 100 items
        bloom = BloomFilter(expected_count=100, target_fp_rate=0.001)

        bloom.add("Paul Atreides")
        bloom.exists("Paul Atreides")  # True
        bloom.exists("Feyd-Rautha")    # False (with high probability)

        # Persist and restore
        text = bloom.serialize()
        restored = BloomFilter.deserialize(text)
    """

    def __init__(
        self,
        expected_count: int = 10000,
        target_fp_rate: float = 0.01,
        algorithm: str = DEFAULT_ALGORITHM,
        digest_provider: Optional[DigestProvider] = None,
    ):
        """
        Initialize a new, empty Bloom filter sized for the given workload.

        Args:
            expected_count: Expected number of unique items to be added.
            target_fp_rate: Target false positive rate (between 0 and 1).
            algorithm: Digest algorithm used for the probes.
            digest_provider: Optional digest provider; the hashlib-backed
                default is used when omitted.

        Raises:
            InvalidArgumentError: If expected_count is not a positive integer
                or target_fp_rate is not in (0, 1).
            UnsupportedAlgorithmError: If the algorithm is not available.
            RangeExceededError: If the computed size is not addressable by
                the algorithm.
        """
        expected_count = _check_expected_count(expected_count)
        target_fp_rate = _check_fp_rate(target_fp_rate)

        bound = self.optimal_bit_size(expected_count, target_fp_rate)
        probe_count = self.optimal_probe_count(expected_count, bound)

        # Build the hasher first: it validates the algorithm and bound before
        # any buffer is allocated
        hasher = HashProbeGenerator(
            algorithm, probe_count, bound, digest_provider=digest_provider
        )
        self._attach(BitVector(bound), hasher)
        self._expected_count: Optional[int] = expected_count
        self._target_fp_rate: Optional[float] = target_fp_rate

        logger.debug(
            "BloomFilter created: bound=%d bits, probe_count=%d, algorithm=%s, "
            "expected_count=%d, target_fp_rate=%g",
            bound,
            probe_count,
            hasher.algorithm,
            expected_count,
            target_fp_rate,
        )

    def _attach(self, bits: BitVector, hasher: HashProbeGenerator) -> None:
        MembershipFilter.__init__(self)
        self._bits = bits
        self._hasher = hasher
        self._expected_count = None
        self._target_fp_rate = None

    @staticmethod
    def optimal_bit_size(expected_count: int, target_fp_rate: float) -> int:
        """
        Calculate the optimal bit vector size.

        Uses m = -(n * ln(p)) / (ln(2)^2), rounded to the nearest integer and
        never less than 1.

        Args:
            expected_count: Expected number of items (n).
            target_fp_rate: Target false positive rate (p).

        Returns:
            Optimal number of bits.
        """
        _check_expected_count(expected_count)
        _check_fp_rate(target_fp_rate)
        m = -(expected_count * math.log(target_fp_rate)) / (LN2**2)
        return max(1, _round_half_up(m))

    @staticmethod
    def optimal_probe_count(expected_count: int, bit_size: int) -> int:
        """
        Calculate the optimal number of probes.

        Uses k = (m / n) * ln(2), rounded to the nearest integer and never
        less than 1.
        """
        _check_expected_count(expected_count)
        require_int(bit_size, "bit_size")
        k = (bit_size / expected_count) * LN2
        return max(1, _round_half_up(k))

    @classmethod
    def from_components(
        cls, bit_vector: BitVector, hasher: HashProbeGenerator
    ) -> "BloomFilter[T]":
        """
        Assemble a filter from an existing bit vector and probe generator.

        The filter takes ownership of ``bit_vector``; callers must not keep
        using it.

        Raises:
            InvalidArgumentError: If the vector length differs from the
                hasher bound.
        """
        if not isinstance(bit_vector, BitVector):
            raise InvalidArgumentError("bit_vector must be a BitVector")
        if not isinstance(hasher, HashProbeGenerator):
            raise InvalidArgumentError("hasher must be a HashProbeGenerator")
        if bit_vector.length != hasher.bound:
            raise InvalidArgumentError(
                f"Bit vector length {bit_vector.length} does not match "
                f"hasher bound {hasher.bound}"
            )

        instance = cls.__new__(cls)
        instance._attach(bit_vector, hasher)
        return instance

    @classmethod
    def create_from_memory_limit(
        cls,
        memory_bytes: int,
        target_fp_rate: float = 0.01,
        algorithm: str = DEFAULT_ALGORITHM,
        digest_provider: Optional[DigestProvider] = None,
    ) -> "BloomFilter[T]":
        """
        Create the largest-capacity filter whose bit buffer fits a byte budget.

        The budget covers the bit vector buffer only, not Python object
        overhead.

        Args:
            memory_bytes: Maximum size of the bit buffer in bytes.
            target_fp_rate: Target false positive rate.
            algorithm: Digest algorithm used for the probes.
            digest_provider: Optional digest provider.

        Returns:
            A new BloomFilter sized for the budget.

        Raises:
            InvalidArgumentError: If memory_bytes is not a positive integer or
                target_fp_rate is not in (0, 1).
        """
        require_int(memory_bytes, "memory_bytes")
        if memory_bytes <= 0:
            raise InvalidArgumentError("Memory limit must be positive")
        target_fp_rate = _check_fp_rate(target_fp_rate)

        # Inverse of the bit size formula: n = -m * ln(2)^2 / ln(p)
        max_bits = memory_bytes * 8
        max_items = int(-(max_bits * LN2**2) / math.log(target_fp_rate))
        max_items = max(1, max_items)

        instance = cls(
            expected_count=max_items,
            target_fp_rate=target_fp_rate,
            algorithm=algorithm,
            digest_provider=digest_provider,
        )

        if instance._bits.byte_length > memory_bytes:
            logger.warning(
                "Memory limit of %d bytes cannot hold a single item at a false "
                "positive rate of %g; using %d bytes instead",
                memory_bytes,
                target_fp_rate,
                instance._bits.byte_length,
            )

        return instance

    def add(self, item: T) -> None:
        """
        Add an item to the filter.

        Sets every probed bit. Adding the same item again changes nothing but
        the ``items_processed`` counter.

        Args:
            item: bytes, str, or any value hashed through its ``str()`` form.
        """
        super().add(item)
        for index in self._hasher.iter_probes(item):
            self._bits.set(index, True)

    def exists(self, item: T) -> bool:
        """
        Test if an item might be in the set.

        Stops at the first unset bit without computing the remaining probes.

        Args:
            item: The item to test.

        Returns:
            True if the item might be in the set, False if definitely not.
        """
        for index in self._hasher.iter_probes(item):
            if not self._bits.get(index):
                return False
        return True

    def merge(self, other: "BloomFilter[T]") -> "BloomFilter[T]":
        """
        Merge this Bloom filter with another one.

        Both filters must share the same probe configuration (algorithm,
        probe count and bound). The result reports every item added to
        either input; the inputs are left untouched.

        Args:
            other: Another BloomFilter with the same configuration.

        Returns:
            A new merged BloomFilter.

        Raises:
            TypeError: If other is not a BloomFilter.
            InvalidArgumentError: If the configurations differ.
        """
        self._check_same_type(other)

        if self._hasher != other._hasher:
            raise InvalidArgumentError(
                f"Cannot merge Bloom filters with different parameters: "
                f"{self._hasher!r} and {other._hasher!r}"
            )

        result = self.from_components(self._bits.union(other._bits), self._hasher)
        result._items_processed = self._items_processed + other._items_processed
        if self._expected_count == other._expected_count:
            result._expected_count = self._expected_count
            result._target_fp_rate = self._target_fp_rate

        logger.debug(
            "Merged Bloom filters: bound=%d, probe_count=%d, set_bits=%d",
            self.bound,
            self.probe_count,
            result._bits.count_set_bits(),
        )
        return result

    @property
    def bound(self) -> int:
        """Number of bits in the filter (m)."""
        return self._bits.length

    @property
    def probe_count(self) -> int:
        """Number of probes per item (k)."""
        return self._hasher.probe_count

    @property
    def algorithm(self) -> str:
        return self._hasher.algorithm

    @property
    def hasher(self) -> HashProbeGenerator:
        """The filter's probe generator (immutable)."""
        return self._hasher

    @property
    def expected_count(self) -> Optional[int]:
        """Sizing input, or None for filters rebuilt from components."""
        return self._expected_count

    @property
    def target_fp_rate(self) -> Optional[float]:
        """Sizing input, or None for filters rebuilt from components."""
        return self._target_fp_rate

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the Bloom filter to its wire form.

        Returns:
            ``{"bit_array": <BitVector form>, "hashers": <hasher form>}``
        """
        return {
            "bit_array": self._bits.to_dict(),
            "hashers": self._hasher.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        digest_provider: Optional[DigestProvider] = None,
        **kwargs: Any,
    ) -> "BloomFilter[T]":
        """
        Create a Bloom filter from its wire form.

        Args:
            data: Dictionary produced by :meth:`to_dict`.
            digest_provider: Provider for the stored algorithm; defaults to
                the hashlib-backed provider.

        Returns:
            A filter that answers every query exactly as the original did.

        Raises:
            InvalidArgumentError: If the document is malformed.
            UnsupportedAlgorithmError: If the stored algorithm is unavailable.
        """
        try:
            bit_data = data["bit_array"]
            hasher_data = data["hashers"]
        except (KeyError, TypeError) as exc:
            raise InvalidArgumentError(f"Malformed Bloom filter data: {exc!r}") from exc

        bits = BitVector.from_dict(bit_data)
        hasher = HashProbeGenerator.from_dict(hasher_data, digest_provider=digest_provider)
        instance = cls.from_components(bits, hasher)

        logger.debug(
            "BloomFilter restored: bound=%d bits, probe_count=%d, algorithm=%s",
            instance.bound,
            instance.probe_count,
            instance.algorithm,
        )
        return instance

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this filter in bytes.

        Returns:
            Estimated memory usage in bytes.
        """
        size = super().estimate_size()
        size += self._bits.estimate_size()
        return size

    def estimate_cardinality(self) -> int:
        """
        Estimate the number of unique items in the filter.

        This is an approximation based on the fill ratio of the bit vector,
        n ~ -m * ln(1 - X/m) / k with X the number of set bits. It becomes
        unreliable as the filter saturates.

        Returns:
            Estimated number of unique items.
        """
        set_bits = self._bits.count_set_bits()
        bit_size = self.bound
        hash_count = self.probe_count

        if hash_count == 0 or bit_size == 0 or set_bits == 0:
            return 0
        if set_bits >= bit_size:
            # Saturated: the formula diverges
            if self._items_processed:
                return self._items_processed
            # Restored filter: treat one bit as still unset, n ~ m * ln(m) / k
            return max(1, int(round(bit_size * math.log(bit_size) / hash_count)))

        estimate = -bit_size * math.log(1.0 - set_bits / bit_size) / hash_count
        if self._items_processed:
            return min(max(0, int(round(estimate))), self._items_processed)
        # Restored filters have no add history to cap against
        return max(1, int(round(estimate)))

    def false_positive_probability(self) -> float:
        """
        Estimate the current false positive probability from the fill ratio.

        Uses FPP ~ (fraction of bits set) ^ k. This reflects the current
        state, not the initial target rate.
        """
        if self.bound == 0:
            return 1.0
        fraction_bits_set = self._bits.count_set_bits() / self.bound
        return max(0.0, min(fraction_bits_set**self.probe_count, 1.0))

    def is_empty(self) -> bool:
        """Check if no bit of the filter is set."""
        return self._bits.count_set_bits() == 0

    def error_bounds(self) -> Dict[str, Any]:
        """
        Calculate the theoretical error bounds for this Bloom filter.

        Returns:
            A dictionary with the theoretical false positive probability at
            the current item count and a coarse error margin label.
        """
        bounds = super().error_bounds()

        bit_size = self.bound
        hash_count = self.probe_count
        items = self._items_processed

        if bit_size > 0 and items > 0:
            fill_ratio = 1 - math.exp(-(hash_count * items) / bit_size)
            bounds["current_theoretical_fpp"] = min(fill_ratio**hash_count, 1.0)
            bounds["theoretical_fill_ratio"] = fill_ratio
            if fill_ratio < 0.5:
                bounds["error_margin"] = "low"
            elif fill_ratio < 0.8:
                bounds["error_margin"] = "moderate"
            else:
                bounds["error_margin"] = "high"

        return bounds

    def get_stats(self) -> Dict[str, Any]:
        """
        Get detailed statistics about the current state of the Bloom filter.

        Returns:
            A dictionary containing sizing, fill and accuracy figures.
        """
        stats = super().get_stats()

        bit_size = self.bound
        set_bits = self._bits.count_set_bits()
        raw = bytearray(self._bits.to_bytes())
        residual = bit_size % 8
        if residual and raw:
            # Only the addressable bits of the last byte count
            raw[-1] &= (1 << residual) - 1
        byte_distribution = Counter(bin(byte).count("1") for byte in raw)

        stats.update(
            {
                "algorithm": self.algorithm,
                "expected_count": self._expected_count,
                "target_fp_rate": self._target_fp_rate,
                "bit_size": bit_size,
                "byte_size": self._bits.byte_length,
                "probe_count": self.probe_count,
                "set_bits": set_bits,
                "fill_ratio": set_bits / bit_size if bit_size > 0 else 0.0,
                "estimated_unique_items": self.estimate_cardinality(),
                "current_fpp": self.false_positive_probability(),
                "byte_stats": {
                    "zero_bytes": byte_distribution.get(0, 0),
                    "full_bytes": byte_distribution.get(8, 0),
                },
            }
        )

        if self._items_processed > 0:
            stats["bits_per_item"] = bit_size / self._items_processed

        return stats

    def __repr__(self) -> str:
        return (
            f"BloomFilter(bound={self.bound}, probe_count={self.probe_count}, "
            f"algorithm={self.algorithm!r})"
        )
