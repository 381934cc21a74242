"""
Bloom Filter implementation for TinyBloom.

This module provides the standard Bloom filter for efficient set membership
testing with bounded memory usage.
"""

from tiny_bloom.algorithms.bloom.base import BloomFilter

__all__ = [
    "BloomFilter",
]
