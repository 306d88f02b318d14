"""
Storage engine and its concurrency primitives.
"""

from kvstorage.engine.engine import DeletePolicy, StorageEngine
from kvstorage.engine.rwlock import ReadWriteLock

__all__ = ["StorageEngine", "DeletePolicy", "ReadWriteLock"]
