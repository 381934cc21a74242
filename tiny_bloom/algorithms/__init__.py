"""
Algorithm implementations for TinyBloom.
"""

from tiny_bloom.algorithms.bloom import BloomFilter

__all__ = [
    "BloomFilter",
]
