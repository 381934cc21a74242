"""
Unit tests for standard Bloom Filter implementation.
"""

import json
import math
import unittest

from tiny_bloom.algorithms.bloom.base import BloomFilter
from tiny_bloom.core.bitvector import BitVector
from tiny_bloom.core.errors import (
    InvalidArgumentError,
    RangeExceededError,
    UnsupportedAlgorithmError,
)
from tiny_bloom.core.probes import HashProbeGenerator


class TestBloomFilter(unittest.TestCase):
    """Test cases for Bloom Filter."""

    def test_init(self):
        """Test initialization with valid and invalid parameters."""
        bf = BloomFilter(expected_count=100, target_fp_rate=0.001)
        # m = -(n * ln(p)) / (ln(2)^2) = 1437.76 bits, k = (m/n) * ln(2) = 9.97
        self.assertEqual(bf.bound, 1438)
        self.assertEqual(bf.probe_count, 10)
        self.assertEqual(bf.algorithm, "sha1")
        self.assertEqual(bf.expected_count, 100)
        self.assertEqual(bf.target_fp_rate, 0.001)

        bf = BloomFilter(expected_count=1000, target_fp_rate=0.01)
        self.assertEqual(bf.bound, 9585)
        self.assertEqual(bf.probe_count, 7)

        bf = BloomFilter(expected_count=10000, target_fp_rate=0.001)
        self.assertEqual(bf.bound, 143776)
        self.assertEqual(bf.probe_count, 10)

        # Defaults
        bf = BloomFilter()
        self.assertEqual(bf.expected_count, 10000)
        self.assertEqual(bf.target_fp_rate, 0.01)

    def test_tiny_sizes_are_clamped(self):
        """Test that bound and probe_count never drop below 1."""
        bf = BloomFilter(expected_count=1, target_fp_rate=0.9)
        self.assertEqual(bf.bound, 1)
        self.assertEqual(bf.probe_count, 1)

        bf = BloomFilter(expected_count=1, target_fp_rate=0.5)
        self.assertEqual(bf.bound, 1)
        self.assertEqual(bf.probe_count, 1)

        bf.add("anything")
        self.assertTrue(bf.exists("anything"))
        self.assertTrue(bf.exists("everything else"))

    def test_optimal_sizing(self):
        self.assertEqual(BloomFilter.optimal_bit_size(100, 0.001), 1438)
        self.assertEqual(BloomFilter.optimal_bit_size(10, 0.1), 48)
        self.assertEqual(BloomFilter.optimal_probe_count(10, 48), 3)
        self.assertEqual(BloomFilter.optimal_probe_count(100, 1438), 10)
        self.assertEqual(BloomFilter.optimal_probe_count(1000, 1), 1)

    def test_invalid_arguments(self):
        """Test that bad sizing inputs raise InvalidArgumentError."""
        bad_counts = [0, -5, 1.5, "100", None, True]
        for count in bad_counts:
            with self.assertRaises(InvalidArgumentError, msg=repr(count)):
                BloomFilter(expected_count=count)

        bad_rates = [0, 0.0, 1, 1.0, 1.5, -0.1, "0.01", None, True]
        for rate in bad_rates:
            with self.assertRaises(InvalidArgumentError, msg=repr(rate)):
                BloomFilter(target_fp_rate=rate)

        # InvalidArgumentError is also a ValueError
        with self.assertRaises(ValueError):
            BloomFilter(expected_count=0)

        with self.assertRaises(UnsupportedAlgorithmError):
            BloomFilter(100, 0.01, algorithm="no-such-digest")

    def test_range_exceeded(self):
        """Test that a 32-bit digest cannot address a very large filter."""
        # 10**9 items at 1% needs ~9.6e9 bits, far past what a 32-bit digest serves
        with self.assertRaises(RangeExceededError):
            BloomFilter(expected_count=10**9, target_fp_rate=0.01, algorithm="murmur3_32")

    def test_add_and_exists(self):
        """Test the single-item scenario against precomputed probes."""
        bf = BloomFilter(expected_count=100, target_fp_rate=0.001)
        self.assertEqual(
            bf.hasher.probe("Paul Atreides"),
            [472, 957, 1110, 1323, 49, 529, 678, 45, 1193, 76],
        )

        bf.add("Paul Atreides")

        self.assertTrue(bf.exists("Paul Atreides"))
        self.assertTrue(bf.query("Paul Atreides"))
        self.assertIn("Paul Atreides", bf)
        for item in ("unrelated-probe", "Leto", "Jessica", "Gurney Halleck", "", "foo"):
            self.assertFalse(bf.exists(item), item)
            self.assertNotIn(item, bf)

        set_bits = [i for i in range(bf.bound) if bf._bits.get(i)]
        self.assertEqual(set_bits, sorted([472, 957, 1110, 1323, 49, 529, 678, 45, 1193, 76]))
        self.assertEqual(bf.items_processed, 1)

    def test_update_and_query(self):
        """Test the stream-style aliases."""
        bf = BloomFilter(expected_count=100, target_fp_rate=0.01)
        items = ["apple", "banana", "cherry", 123, 45.67, (1, "tuple"), b"bytes"]

        for item in items:
            bf.update(item)
            self.assertTrue(bf.query(item), f"Item {item} should query true after adding")

        for item in items:
            self.assertTrue(bf.exists(item), f"Item {item} should be present")

        self.assertEqual(bf.items_processed, len(items))

    def test_add_is_idempotent_on_bits(self):
        bf = BloomFilter(expected_count=100, target_fp_rate=0.01)
        bf.add("twice")
        snapshot = bf.serialize()
        bf.add("twice")
        self.assertEqual(bf.serialize(), snapshot)
        self.assertEqual(bf.items_processed, 2)

    def test_str_and_bytes_are_interchangeable(self):
        bf = BloomFilter(expected_count=100, target_fp_rate=0.01)
        bf.add("héllo")
        self.assertTrue(bf.exists("héllo".encode("utf-8")))
        bf.add(b"raw")
        self.assertTrue(bf.exists("raw"))

    def test_no_false_negatives(self):
        """Test that false negatives never occur."""
        bf = BloomFilter(expected_count=1000, target_fp_rate=0.01)

        # Add twice the expected capacity
        test_items = [f"item-{i}" for i in range(2000)]
        for item in test_items:
            bf.add(item)

        missing_items = [item for item in test_items if not bf.exists(item)]
        self.assertEqual(missing_items, [], "False negatives detected!")

    def test_false_positives(self):
        """Test that false positives occur at approximately the expected rate."""
        target_fpp = 0.1
        n_items = 1000
        n_tests = 10000

        bf = BloomFilter(expected_count=n_items, target_fp_rate=target_fpp)
        for i in range(n_items):
            bf.add(f"item-{i}")

        false_positives = sum(1 for i in range(n_tests) if bf.exists(f"other-{i}"))

        # Allow +/- 3 standard deviations around the expected count
        expected_fps = n_tests * target_fpp
        margin = 3 * math.sqrt(expected_fps * (1 - target_fpp))
        self.assertLessEqual(false_positives, expected_fps + margin, "Too many false positives")
        self.assertGreaterEqual(false_positives, expected_fps - margin, "Too few false positives")

        # The filter's own estimate from the fill ratio should be near the target
        self.assertAlmostEqual(bf.false_positive_probability(), target_fpp, delta=target_fpp * 0.5)

    def test_empty_filter(self):
        """Test a freshly created filter."""
        bf = BloomFilter(expected_count=100, target_fp_rate=0.001)
        self.assertTrue(bf.is_empty())
        self.assertEqual(bf.estimate_cardinality(), 0)
        self.assertEqual(bf.false_positive_probability(), 0.0)
        for item in ("Paul Atreides", "", "x", b"\x00"):
            self.assertFalse(bf.exists(item))

        bf.add("test")
        self.assertFalse(bf.is_empty())

    def test_serialization(self):
        """Test the wire form and byte-identical round trips."""
        bf = BloomFilter(expected_count=100, target_fp_rate=0.001)
        bf.add("Paul Atreides")

        data = bf.to_dict()
        self.assertEqual(list(data.keys()), ["bit_array", "hashers"])
        self.assertEqual(data["hashers"], {"algo": "sha1", "count": 10, "max": 1438})
        self.assertEqual(data["bit_array"]["len"], 1438)

        text = bf.serialize()
        self.assertEqual(json.loads(text), data)

        restored = BloomFilter.deserialize(text)
        self.assertEqual(restored.bound, 1438)
        self.assertEqual(restored.probe_count, 10)
        self.assertEqual(restored.algorithm, "sha1")
        self.assertTrue(restored.exists("Paul Atreides"))
        self.assertFalse(restored.exists("unrelated-probe"))

        # Re-serializing a restored filter is byte-identical
        self.assertEqual(restored.serialize(), text)
        self.assertEqual(BloomFilter.from_dict(data).to_dict(), data)

        # Sizing inputs and the add counter are not part of the wire form
        self.assertIsNone(restored.expected_count)
        self.assertIsNone(restored.target_fp_rate)
        self.assertEqual(restored.items_processed, 0)

        blob = bf.serialize(format="binary")
        self.assertIsInstance(blob, bytes)
        self.assertEqual(BloomFilter.deserialize(blob, format="binary").serialize(), text)

    def test_serialization_many_items(self):
        """Test that a restored filter answers every query like the original."""
        bf = BloomFilter(expected_count=100, target_fp_rate=0.01, algorithm="sha256")
        added = [f"item-{i}" for i in range(50)]
        for item in added:
            bf.add(item)

        restored = BloomFilter.deserialize(bf.serialize())
        for item in added:
            self.assertTrue(restored.exists(item))
        for i in range(500):
            probe = f"other-{i}"
            self.assertEqual(bf.exists(probe), restored.exists(probe))

    def test_from_dict_malformed(self):
        """Test that broken documents raise InvalidArgumentError."""
        good = BloomFilter(expected_count=10, target_fp_rate=0.1).to_dict()

        bad_documents = [
            {},
            {"bit_array": good["bit_array"]},
            {"hashers": good["hashers"]},
            {"bit_array": {"len": 48}, "hashers": good["hashers"]},
            {"bit_array": good["bit_array"], "hashers": {"algo": "sha1", "count": 3}},
            # Vector length differs from the hasher bound
            {"bit_array": good["bit_array"], "hashers": {"algo": "sha1", "count": 3, "max": 47}},
        ]
        for document in bad_documents:
            with self.assertRaises(InvalidArgumentError, msg=str(document)):
                BloomFilter.from_dict(document)

        with self.assertRaises(InvalidArgumentError):
            BloomFilter.deserialize("not json")
        with self.assertRaises(UnsupportedAlgorithmError):
            BloomFilter.from_dict(
                {"bit_array": good["bit_array"], "hashers": {"algo": "nope", "count": 3, "max": 48}}
            )

    def test_from_components(self):
        bits = BitVector(100)
        hasher = HashProbeGenerator("sha1", 3, 100)
        bf = BloomFilter.from_components(bits, hasher)
        bf.add("foo")
        self.assertEqual([i for i in range(100) if bf._bits.get(i)], [56, 65, 72])
        self.assertTrue(bf.exists("foo"))

        with self.assertRaises(InvalidArgumentError):
            BloomFilter.from_components(BitVector(99), hasher)
        with self.assertRaises(InvalidArgumentError):
            BloomFilter.from_components("bits", hasher)
        with self.assertRaises(InvalidArgumentError):
            BloomFilter.from_components(bits, {"algo": "sha1"})

    def test_merge(self):
        """Test merging two Bloom filters."""
        bf1 = BloomFilter(expected_count=100, target_fp_rate=0.01)
        bf2 = BloomFilter(expected_count=100, target_fp_rate=0.01)

        items1 = [f"filter1-{i}" for i in range(50)]
        items2 = [f"filter2-{i}" for i in range(30)]
        for item in items1:
            bf1.add(item)
        for item in items2:
            bf2.add(item)

        before = (bf1.serialize(), bf2.serialize())
        merged = bf1.merge(bf2)

        # Inputs are untouched
        self.assertEqual((bf1.serialize(), bf2.serialize()), before)

        self.assertEqual(merged.bound, bf1.bound)
        self.assertEqual(merged.probe_count, bf1.probe_count)
        self.assertEqual(merged.expected_count, 100)
        for item in items1 + items2:
            self.assertTrue(merged.exists(item), item)
        self.assertEqual(merged.items_processed, 80)

        # Incompatible configurations
        with self.assertRaises(InvalidArgumentError):
            bf1.merge(BloomFilter(expected_count=200, target_fp_rate=0.01))
        with self.assertRaises(InvalidArgumentError):
            bf1.merge(BloomFilter(expected_count=100, target_fp_rate=0.01, algorithm="md5"))
        with self.assertRaises(TypeError):
            bf1.merge(BitVector(bf1.bound))

    def test_estimate_cardinality(self):
        """Test cardinality estimation."""
        n = 1000
        bf = BloomFilter(expected_count=n, target_fp_rate=0.01)
        self.assertEqual(bf.estimate_cardinality(), 0)

        for i in range(500):
            bf.add(f"item-{i}")
        self.assertAlmostEqual(bf.estimate_cardinality(), 500, delta=500 * 0.15)

        # Never above the number of add calls
        for i in range(500, 2 * n):
            bf.add(f"item-{i}")
        estimate = bf.estimate_cardinality()
        self.assertLessEqual(estimate, 2 * n)
        self.assertGreaterEqual(estimate, 0)

        # Restored filters still estimate from the bits alone
        restored = BloomFilter.deserialize(bf.serialize())
        self.assertGreater(restored.estimate_cardinality(), 0)

    def test_estimate_cardinality_restored_saturated(self):
        """Test that a saturated restored filter still reports its contents."""
        tiny = BloomFilter(expected_count=1, target_fp_rate=0.5)
        tiny.add("x")
        restored = BloomFilter.deserialize(tiny.serialize())
        self.assertFalse(restored.is_empty())
        self.assertEqual(restored.estimate_cardinality(), 1)
        self.assertEqual(restored.get_stats()["estimated_unique_items"], 1)

        # 48 bits, 3 probes, far more items than bits
        bf = BloomFilter(expected_count=10, target_fp_rate=0.1)
        for i in range(1000):
            bf.add(f"item-{i}")
        self.assertEqual(bf._bits.count_set_bits(), bf.bound)
        self.assertEqual(bf.estimate_cardinality(), 1000)

        restored = BloomFilter.deserialize(bf.serialize())
        # m * ln(m) / k = 48 * ln(48) / 3
        self.assertEqual(restored.estimate_cardinality(), 62)

    def test_estimate_cardinality_restored_sparse(self):
        """Test that any set bit yields a non-zero estimate after restore."""
        bits = BitVector(1438)
        bits.set(0, True)
        bf = BloomFilter.from_components(bits, HashProbeGenerator("sha1", 10, 1438))
        self.assertFalse(bf.is_empty())
        self.assertEqual(bf.estimate_cardinality(), 1)

    def test_byte_stats_ignore_residual_bits(self):
        """Test that bits past the last addressable one do not count."""
        hasher = HashProbeGenerator("sha1", 1, 12)

        bf = BloomFilter.from_components(BitVector.from_bytes(bytes([0xFF, 0xFF]), 12), hasher)
        stats = bf.get_stats()
        self.assertEqual(stats["set_bits"], 12)
        self.assertEqual(stats["byte_stats"], {"zero_bytes": 0, "full_bytes": 1})

        bf = BloomFilter.from_components(BitVector.from_bytes(bytes([0x00, 0xF0]), 12), hasher)
        stats = bf.get_stats()
        self.assertEqual(stats["set_bits"], 0)
        self.assertEqual(stats["byte_stats"], {"zero_bytes": 2, "full_bytes": 0})
        self.assertEqual(bf.estimate_cardinality(), 0)

    def test_false_positive_probability(self):
        """Test that the current FPP estimate grows with the fill."""
        n = 1000
        target_fpp = 0.01
        bf = BloomFilter(expected_count=n, target_fp_rate=target_fpp)
        self.assertAlmostEqual(bf.false_positive_probability(), 0.0, places=5)

        for i in range(200):
            bf.add(f"item-{i}")
        partial = bf.false_positive_probability()
        self.assertGreater(partial, 0)
        self.assertLess(partial, target_fpp)

        for i in range(200, n):
            bf.add(f"item-{i}")
        full = bf.false_positive_probability()
        self.assertGreater(full, partial)
        self.assertAlmostEqual(full, target_fpp, delta=target_fpp * 0.5)

    def test_error_bounds_and_stats(self):
        bf = BloomFilter(expected_count=100, target_fp_rate=0.01)
        self.assertEqual(bf.error_bounds(), {})

        for i in range(50):
            bf.add(f"item-{i}")

        bounds = bf.error_bounds()
        self.assertIn("current_theoretical_fpp", bounds)
        self.assertEqual(bounds["error_margin"], "low")

        stats = bf.get_stats()
        self.assertEqual(stats["type"], "BloomFilter")
        self.assertEqual(stats["items_processed"], 50)
        self.assertEqual(stats["algorithm"], "sha1")
        self.assertEqual(stats["bit_size"], 959)
        self.assertEqual(stats["byte_size"], 120)
        self.assertEqual(stats["probe_count"], 7)
        self.assertEqual(stats["expected_count"], 100)
        self.assertEqual(stats["target_fp_rate"], 0.01)
        self.assertEqual(stats["set_bits"], bf._bits.count_set_bits())
        self.assertAlmostEqual(stats["fill_ratio"], stats["set_bits"] / 959)
        self.assertAlmostEqual(stats["bits_per_item"], 959 / 50)
        self.assertGreater(stats["memory_bytes"], 120)
        self.assertIn("zero_bytes", stats["byte_stats"])

        for i in range(50, 400):
            bf.add(f"item-{i}")
        self.assertEqual(bf.error_bounds()["error_margin"], "high")

    def test_create_from_memory_limit(self):
        """Test creating a filter from a bit buffer budget."""
        bf = BloomFilter.create_from_memory_limit(memory_bytes=1024, target_fp_rate=0.01)
        self.assertEqual(bf.expected_count, 854)
        self.assertEqual(bf.bound, 8186)
        self.assertLessEqual(bf._bits.byte_length, 1024)
        self.assertEqual(bf.target_fp_rate, 0.01)

        with self.assertLogs("tiny_bloom.algorithms.bloom.base", level="WARNING"):
            small = BloomFilter.create_from_memory_limit(memory_bytes=1, target_fp_rate=0.001)
        self.assertEqual(small.expected_count, 1)
        self.assertEqual(small._bits.byte_length, 2)

        for limit in (0, -1, 1.5):
            with self.assertRaises(InvalidArgumentError):
                BloomFilter.create_from_memory_limit(memory_bytes=limit)

    def test_logging(self):
        with self.assertLogs("tiny_bloom.algorithms.bloom.base", level="DEBUG") as logs:
            bf = BloomFilter(expected_count=100, target_fp_rate=0.001)
            BloomFilter.deserialize(bf.serialize())
        self.assertEqual(len(logs.records), 2)
        self.assertIn("bound=1438", logs.output[0])

    def test_different_data_types(self):
        """Test that non-string items are hashed through their string form."""
        bf = BloomFilter(expected_count=100, target_fp_rate=0.01)
        items = ["string", 123, 3.14, (1, 2, 3), {"key": "value"}, [1, 2, 3, 4], None, b"bytes"]
        for item in items:
            bf.add(item)
        for item in items:
            self.assertTrue(bf.exists(item), f"Item {item!r} not found")

        # 123 and "123" share a string form
        self.assertTrue(bf.exists("123"))


if __name__ == "__main__":
    unittest.main()
