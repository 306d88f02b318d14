"""
Abstract base classes for the storage index.
"""

from kvstorage.interfaces.range_iterable import RangeIterable
from kvstorage.interfaces.sorted_container import SortedContainer

__all__ = ["RangeIterable", "SortedContainer"]
