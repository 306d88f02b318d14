"""
Sorted container implementations for the storage index.
"""

from kvstorage.models.sortedcontainers.red_black_tree import RedBlackTree

__all__ = ["RedBlackTree"]
