"""
Deterministic multi-probe hashing for TinyBloom.

A HashProbeGenerator turns one item into ``probe_count`` indices in
``[0, bound)`` using a single digest algorithm. Probe ``s`` is the digest of
the decimal seed ``s`` followed by the item bytes, read as a big-endian
unsigned integer and reduced modulo ``bound``:

    probe[s] = int.from_bytes(digest(str(s).encode() + item), "big") % bound

Mixing the seed into the preimage gives ``probe_count`` independent-enough
index streams without needing ``probe_count`` distinct hash functions, and
the whole configuration is plain data ``{algorithm, probe_count, bound}``
that serializes and reproduces identical probes anywhere.
"""

import sys
from typing import Any, Dict, Iterator, List, Optional

from tiny_bloom.core.base import SerializableMixin
from tiny_bloom.core.errors import (
    InvalidArgumentError,
    RangeExceededError,
    require_non_negative_int,
)
from tiny_bloom.core.hash import DEFAULT_DIGEST_PROVIDER, DigestProvider, to_bytes

# Digest bits held back from the modulo reduction
BIAS_HEADROOM_BITS = 8


class HashProbeGenerator(SerializableMixin):
    """
    Maps items to a fixed number of indices below an exclusive bound.

    Instances are immutable and hold no state besides their configuration,
    so ``probe`` is a pure function of (algorithm, probe_count, bound, item).

    Example:
        hasher = HashProbeGenerator("sha256", probe_count=7, bound=100000)
        hasher.probe("meh")        # seven ints in [0, 100000)
        hasher.to_dict()           # {"algo": "sha256", "count": 7, "max": 100000}
    """

    def __init__(
        self,
        algorithm: str,
        probe_count: int,
        bound: int,
        digest_provider: Optional[DigestProvider] = None,
    ):
        """
        Configure a probe generator.

        Args:
            algorithm: Digest algorithm name understood by the provider.
            probe_count: Number of indices produced per item.
            bound: Exclusive upper bound for every index.
            digest_provider: Source of digests. Defaults to the shared
                hashlib-backed provider.

        Raises:
            InvalidArgumentError: If probe_count or bound is not a non-negative
                integer, or bound is 0 while probes are requested.
            UnsupportedAlgorithmError: If the provider does not know algorithm.
            RangeExceededError: If bound exceeds the platform index width, or
                what the digest output can address at this probe_count while
                keeping BIAS_HEADROOM_BITS of headroom (see ``max_bound``).
        """
        require_non_negative_int(probe_count, "probe_count")
        require_non_negative_int(bound, "bound")
        if bound == 0 and probe_count > 0:
            raise InvalidArgumentError("bound must be positive when probe_count > 0")

        provider = digest_provider if digest_provider is not None else DEFAULT_DIGEST_PROVIDER
        name = provider.canonical_name(algorithm)

        digest_bits = provider.digest_size(name) * 8
        max_bound = min(self.max_bound(digest_bits, probe_count), sys.maxsize)
        if bound > max_bound:
            raise RangeExceededError(
                f"bound {bound} exceeds the {max_bound} values addressable by "
                f"{name} ({digest_bits}-bit digest) with {probe_count} probes"
            )

        self._algorithm = name
        self._probe_count = probe_count
        self._bound = bound
        self._provider = provider

    @staticmethod
    def max_bound(digest_bits: int, probe_count: int) -> int:
        """
        Largest bound a digest of ``digest_bits`` bits can serve.

        Reducing a uniform digest modulo ``bound`` favours the lowest
        ``2**digest_bits % bound`` indices by at most ``bound / 2**digest_bits``
        each, and every probe of an item adds to that skew. Keeping
        ``bound * probe_count <= 2**(digest_bits - BIAS_HEADROOM_BITS)`` holds
        the combined skew of one item below ``2**-BIAS_HEADROOM_BITS``.
        """
        usable_bits = max(digest_bits - BIAS_HEADROOM_BITS, 0)
        return 2**usable_bits // max(probe_count, 1)

    @property
    def algorithm(self) -> str:
        """Canonical name of the digest algorithm."""
        return self._algorithm

    @property
    def probe_count(self) -> int:
        return self._probe_count

    @property
    def bound(self) -> int:
        return self._bound

    @property
    def digest_provider(self) -> DigestProvider:
        return self._provider

    def iter_probes(self, item: Any) -> Iterator[int]:
        """
        Lazily yield the probes for ``item``, in seed order.

        Each digest is computed only when the next value is requested, which
        lets membership checks stop at the first unset bit.
        """
        data = to_bytes(item)
        for seed in range(self._probe_count):
            digest = self._provider.digest(self._algorithm, str(seed).encode("ascii") + data)
            yield int.from_bytes(digest, "big") % self._bound

    def probe(self, item: Any) -> List[int]:
        """
        Return the ``probe_count`` indices for ``item``.

        Args:
            item: bytes, or a str (UTF-8 encoded) or any other value (hashed
                through its ``str()`` form).

        Returns:
            List of indices, each in ``[0, bound)``.
        """
        return list(self.iter_probes(item))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the configuration to its wire form.

        Returns:
            ``{"algo": <algorithm>, "count": <probe_count>, "max": <bound>}``
        """
        return {
            "algo": self._algorithm,
            "count": self._probe_count,
            "max": self._bound,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        digest_provider: Optional[DigestProvider] = None,
        **kwargs: Any,
    ) -> "HashProbeGenerator":
        """
        Rebuild a generator from its wire form.

        Raises:
            InvalidArgumentError: If the document is malformed.
            UnsupportedAlgorithmError: If the algorithm is not available.
            RangeExceededError: If the stored bound is not addressable here.
        """
        try:
            algorithm = data["algo"]
            probe_count = data["count"]
            bound = data["max"]
        except (KeyError, TypeError) as exc:
            raise InvalidArgumentError(f"Malformed hasher data: {exc!r}") from exc

        return cls(algorithm, probe_count, bound, digest_provider=digest_provider)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashProbeGenerator):
            return NotImplemented
        return (
            self._algorithm == other._algorithm
            and self._probe_count == other._probe_count
            and self._bound == other._bound
        )

    def __hash__(self) -> int:
        return hash((self._algorithm, self._probe_count, self._bound))

    def __repr__(self) -> str:
        return (
            f"HashProbeGenerator(algorithm={self._algorithm!r}, "
            f"probe_count={self._probe_count}, bound={self._bound})"
        )
