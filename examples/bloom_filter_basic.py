"""
Basic Bloom Filter Demo for TinyBloom.

This example demonstrates how to use the Bloom filter for space-efficient set
membership testing. It highlights its probabilistic nature (false positives),
its guarantee of no false negatives and its portable JSON wire form.
"""

import logging

from tiny_bloom import BloomFilter, HashProbeGenerator, InvalidArgumentError


def demonstrate_basic_usage():
    """Demonstrate Bloom filter initialization, adding, and checking."""
    print("\n=== Basic Bloom Filter Demo ===")

    # Expecting ~10,000 items with a 1% (0.01) false positive rate
    bf = BloomFilter(expected_count=10000, target_fp_rate=0.01)

    print("Bloom Filter parameters:")
    print(f"  Expected items: {bf.expected_count:,}")
    print(f"  Target false positive rate: {bf.target_fp_rate:.1%}")
    print(f"  Calculated filter size (bits): {bf.bound:,} bits")
    print(f"  Calculated number of probes: {bf.probe_count}")
    print(f"  Digest algorithm: {bf.algorithm}")
    print(f"  Estimated memory usage: {bf.estimate_size():,} bytes")

    print("\nAdding items to the filter...")
    items_to_add = ["apple", "banana", "cherry", "date", "fig", "grape", "kiwi", "lemon"]
    for item in items_to_add:
        bf.add(item)
        print(f"  Added '{item}'")

    print("\nChecking membership:")
    print("  (Note: 'False' means DEFINITELY NOT present)")
    print("  (Note: 'True' means POSSIBLY present - could be a false positive)")
    for item in items_to_add + ["orange", "pear", "plum", "lime"]:
        print(f"  '{item}' in filter? {item in bf}")

    missing = [item for item in items_to_add if not bf.exists(item)]
    if missing:
        print(f"  ERROR: {len(missing)} added items were NOT found!")
    else:
        print("  Confirmed: All items originally added were found.")


def demonstrate_probes():
    """Show the indices a probe generator derives for an item."""
    print("\n=== Probe Generator Demo ===")

    hasher = HashProbeGenerator("sha256", probe_count=7, bound=100000)
    print(f"  Configuration: {hasher.serialize()}")
    print(f"  Probes for 'meh': {hasher.probe('meh')}")

    restored = HashProbeGenerator.deserialize(hasher.serialize())
    print(f"  Restored generator gives the same probes: {restored.probe('meh') == hasher.probe('meh')}")


def demonstrate_fpp_and_fill_ratio():
    """Show how fill ratio affects the actual false positive probability."""
    print("\n=== FPP vs. Fill Ratio Demo ===")

    n = 1000
    bf = BloomFilter(expected_count=n, target_fp_rate=0.05)
    print(f"Filter initialized for {n} items, target FPP: {bf.target_fp_rate:.1%}")

    items = [f"item_{i}" for i in range(n * 2)]
    added = 0
    for step_target in [int(n * 0.1), int(n * 0.5), n, int(n * 1.5)]:
        for item in items[added:step_target]:
            bf.add(item)
        added = step_target

        stats = bf.get_stats()
        print(f"\nAfter adding {added} items:")
        print(f"  Filter fill ratio: {stats['fill_ratio']:.2%}")
        print(f"  Estimated unique items: {stats['estimated_unique_items']}")
        print(f"  Estimated current FPP: {stats['current_fpp']:.4f}")
        print(f"  Error margin: {stats['error_margin']}")

    print("\nNote: As the filter fills (especially beyond expected capacity),")
    print("the actual false positive probability increases above the target rate.")


def demonstrate_merging():
    """Demonstrate merging (union) of two Bloom filters."""
    print("\n=== Bloom Filter Merging (Union) Demo ===")

    params = {"expected_count": 500, "target_fp_rate": 0.02}
    bf_a = BloomFilter(**params)
    bf_b = BloomFilter(**params)

    items_a = {f"set_a_{i}" for i in range(300)}
    items_b = {f"set_b_{i}" for i in range(250)}
    for item in items_a:
        bf_a.add(item)
    for item in items_b:
        bf_b.add(item)

    merged = bf_a.merge(bf_b)
    missing = sum(1 for item in items_a | items_b if not merged.exists(item))
    print(f"  Merged filter total processed: {merged.items_processed}")
    print(f"  Items missing from the merged filter: {missing}")

    try:
        bf_a.merge(BloomFilter(expected_count=1000, target_fp_rate=0.02))
    except InvalidArgumentError as e:
        print(f"  Merging differently sized filters fails: {e}")


def demonstrate_serialization():
    """Persist a filter to JSON and restore it."""
    print("\n=== Serialization Demo ===")

    bf = BloomFilter(expected_count=100, target_fp_rate=0.001)
    bf.add("Paul Atreides")

    text = bf.serialize()
    print(f"  Serialized size: {len(text)} characters")

    restored = BloomFilter.deserialize(text)
    print(f"  'Paul Atreides' in restored filter? {restored.exists('Paul Atreides')}")
    print(f"  'unrelated-probe' in restored filter? {restored.exists('unrelated-probe')}")
    print(f"  Re-serialized text identical: {restored.serialize() == text}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    demonstrate_basic_usage()
    demonstrate_probes()
    demonstrate_fpp_and_fill_ratio()
    demonstrate_merging()
    demonstrate_serialization()
